"""Execution of topic plans against an MQTT transport.

Every action is independent: a failed publish is counted and the run moves
on. There are no retries; re-running the whole cycle is always safe because
each plan is recomputed from current state.
"""

# Standard library imports
import logging
from dataclasses import dataclass, field
from typing import List

# Local imports
from hostagent.core.messaging import MqttTransport
from hostagent.core.planner import ActionKind, TopicPlan

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Outcome counters of one run."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failed_topics: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def __str__(self) -> str:
        return (
            f"attempted={self.attempted} succeeded={self.succeeded} "
            f"failed={self.failed}"
        )


def describe_plan(plan: TopicPlan) -> List[str]:
    """Numbered, human-readable lines for every planned action."""
    width = len(str(len(plan)))
    return [
        f"{index:>{width}}. {action.describe()}"
        for index, action in enumerate(plan, start=1)
    ]


def execute(
    plan: TopicPlan,
    transport: MqttTransport,
    qos: int = 1,
    progress_every: int = 25,
    dry_run: bool = False,
) -> RunSummary:
    """Apply a plan through the transport.

    Writes are published with their own retain flag; deletions publish an
    empty retained payload, which clears the retained message on the broker.

    Args:
        plan: Actions to apply.
        transport: MqttTransport implementation.
        qos: Quality of service for every publish (0, 1 or 2).
        progress_every: Log a progress line every N topics.
        dry_run: Only log the plan; the transport is not touched.

    Returns:
        RunSummary with attempted/succeeded/failed counts.
    """
    summary = RunSummary()

    if dry_run:
        logger.info(f"Dry run: {len(plan)} actions planned for {plan.target} ({plan.mode})")
        for line in describe_plan(plan):
            logger.info(line)
        return summary

    total = len(plan)
    for action in plan:
        summary.attempted += 1
        try:
            if action.kind is ActionKind.DELETE:
                success = transport.delete(action.topic, qos=qos)
            else:
                success = transport.publish(
                    action.topic, action.payload, retain=action.retain, qos=qos
                )
        except Exception as e:
            logger.error(f"Error publishing to {action.topic}: {e}")
            success = False

        if success:
            summary.succeeded += 1
            logger.debug(f"{action.kind.value}: {action.topic}")
        else:
            summary.failed += 1
            summary.failed_topics.append(action.topic)
            logger.warning(f"Failed to {action.kind.value} {action.topic}")

        if progress_every and summary.attempted % progress_every == 0 and summary.attempted < total:
            logger.info(f"Progress: {summary.attempted}/{total} topics processed")

    log = logger.info if summary.ok else logger.warning
    log(f"Run complete for {plan.target} ({plan.mode}): {summary}")
    return summary
