"""Unit tests for plan execution.

Example Run:
    pytest tests/unit/hostagent/core/test_executor.py -v
"""

import logging
from unittest.mock import MagicMock

from hostagent.core.executor import RunSummary, describe_plan, execute
from hostagent.core.planner import TopicPlan


def _delete_plan(count):
    plan = TopicPlan("decommission-host", "pc1")
    plan.delete_all(f"homeassistant/sensor/pc1/t{index}/config" for index in range(count))
    return plan


class TestExecute:
    """Test suite for execute()."""

    def test_deletions_publish_empty_retained(self, recording_transport):
        summary = execute(_delete_plan(3), recording_transport, qos=1)

        assert summary.attempted == 3
        assert summary.succeeded == 3
        assert summary.ok
        assert summary.exit_code == 0
        assert all(entry[1:] == ("", True, 1) for entry in recording_transport.published)

    def test_deletions_use_transport_delete(self):
        transport = MagicMock()
        transport.delete.return_value = True

        summary = execute(_delete_plan(2), transport, qos=2)

        assert summary.succeeded == 2
        transport.delete.assert_any_call("homeassistant/sensor/pc1/t0/config", qos=2)
        transport.publish.assert_not_called()

    def test_writes_keep_their_retain_flag(self, recording_transport):
        plan = TopicPlan("publish", "pc1")
        plan.write("windows/pc1/system/cpu_load", "12.3", retain=False)
        plan.write("windows/pc1/availability", "online")

        execute(plan, recording_transport, qos=0)

        assert recording_transport.published == [
            ("windows/pc1/system/cpu_load", "12.3", False, 0),
            ("windows/pc1/availability", "online", True, 0),
        ]

    def test_failures_are_counted_and_run_continues(self, transport_factory):
        transport = transport_factory(fail_topics=["homeassistant/sensor/pc1/t1/config"])

        summary = execute(_delete_plan(3), transport)

        assert summary.attempted == 3
        assert summary.succeeded == 2
        assert summary.failed == 1
        assert summary.failed_topics == ["homeassistant/sensor/pc1/t1/config"]
        assert summary.exit_code == 1
        assert len(transport.published) == 3

    def test_transport_exception_counts_as_failure(self):
        transport = MagicMock()
        transport.delete.side_effect = [True, OSError("socket closed"), True]

        summary = execute(_delete_plan(3), transport)

        assert summary.succeeded == 2
        assert summary.failed == 1

    def test_dry_run_touches_nothing(self):
        transport = MagicMock()

        summary = execute(_delete_plan(4), transport, dry_run=True)

        assert summary == RunSummary()
        transport.publish.assert_not_called()
        transport.delete.assert_not_called()

    def test_progress_logged(self, recording_transport, caplog):
        with caplog.at_level(logging.INFO, logger="hostagent.core.executor"):
            execute(_delete_plan(12), recording_transport, progress_every=5)

        progress = [record.message for record in caplog.records if record.message.startswith("Progress")]
        assert progress == ["Progress: 5/12 topics processed", "Progress: 10/12 topics processed"]

    def test_empty_plan(self, recording_transport):
        summary = execute(TopicPlan("publish", "pc1"), recording_transport)

        assert summary.attempted == 0
        assert summary.ok


class TestDescribePlan:
    """Test suite for describe_plan()."""

    def test_numbered_lines(self):
        lines = describe_plan(_delete_plan(10))

        assert lines[0] == " 1. DELETE homeassistant/sensor/pc1/t0/config"
        assert lines[9] == "10. DELETE homeassistant/sensor/pc1/t9/config"
