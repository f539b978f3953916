"""Pytest configuration and global fixtures.

Common Fixtures:
    - mock_mqtt_client: Mocked paho client for testing without a broker
    - agent_config: AgentConfig for host "DESKTOP-ABC" with cleanup catalogues
    - fake_provider: MetricsProvider returning fixed readings
    - recording_transport: MqttTransport that records every call
"""

from unittest.mock import MagicMock

import pytest

from hostagent.core.config import AgentConfig


class RecordingTransport:
    """In-memory MqttTransport that records publishes and answers queries."""

    def __init__(self, query_result=None, fail_topics=()):
        self.published = []
        self.queries = []
        self.query_result = list(query_result or [])
        self.fail_topics = set(fail_topics)

    def publish(self, topic, payload, retain=False, qos=1):
        self.published.append((topic, payload, retain, qos))
        return topic not in self.fail_topics

    def delete(self, topic, qos=1):
        return self.publish(topic, "", retain=True, qos=qos)

    def query_topics(self, pattern, timeout=3.0, max_messages=500):
        self.queries.append((pattern, timeout, max_messages))
        return list(self.query_result)

    @property
    def topics(self):
        return [entry[0] for entry in self.published]


@pytest.fixture
def mock_mqtt_client():
    """Provide a mocked paho-mqtt client.

    Example:
        def test_publish(mock_mqtt_client):
            broker = MessageBroker(mock_mqtt_client)
            broker.publish("windows/test/health", "{}")
            mock_mqtt_client.publish.assert_called_once()
    """
    client = MagicMock()
    client.connect.return_value = 0
    client.publish.return_value = MagicMock(rc=0)
    client.publish.return_value.is_published.return_value = True
    client.subscribe.return_value = (0, 1)
    client.unsubscribe.return_value = (0, 2)
    client.loop_start.return_value = None
    client.loop_stop.return_value = None
    client.disconnect.return_value = None
    return client


@pytest.fixture
def agent_config():
    """AgentConfig for a local host named DESKTOP-ABC."""
    return AgentConfig(
        broker="test.mqtt.broker",
        host_name="DESKTOP-ABC",
        username="test_user",
        password="test_pass",
        legacy_slot_models=("ST1000DM003",),
        legacy_slot_count=2,
        orphan_topics=(
            "{prefix}/sensor/{host}_uptime/config",
            "windows/{host}/status",
        ),
        query_timeout=0.01,
        query_max_messages=50,
        progress_every=5,
    )


@pytest.fixture
def fake_provider():
    """MetricsProvider with one C: volume and one physical disk."""
    provider = MagicMock()
    provider.get_cpu_load_percent.return_value = 12.34
    provider.get_cpu_temperature_celsius.return_value = 48.0
    provider.list_fixed_volumes.return_value = [
        {
            "drive": "C",
            "label": "C:\\",
            "size_bytes": 100000000000,
            "free_bytes": 40000000000,
        }
    ]
    provider.list_physical_disks.return_value = [
        {
            "model": "Samsung HD103SI",
            "serial": "S1VSJD1ZB07989",
            "health": "Healthy",
            "operational_status": "OK",
            "media_type": "HDD",
        }
    ]
    provider.list_removable_drives.return_value = [
        {
            "model": "SanDisk Ultra",
            "serial": "4C530001",
            "manufacturer": "SanDisk",
            "drive_letters": ["e"],
        }
    ]
    return provider


@pytest.fixture
def recording_transport():
    return RecordingTransport()


@pytest.fixture(autouse=True)
def fixed_machine_hostname(monkeypatch):
    """Keep local-host detection independent of the machine running the tests."""
    monkeypatch.setattr("socket.gethostname", lambda: "test-runner")


# Pytest hooks for custom behavior


def pytest_configure(config):
    """Make every run non-interactive so no test waits on a prompt."""
    import os

    os.environ["HOSTAGENT_NON_INTERACTIVE"] = "1"


def pytest_collection_modifyitems(config, items):
    """Mark tests by their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def transport_factory():
    """Build a RecordingTransport with custom query results or failures."""
    return RecordingTransport
