"""Canonical MQTT topic names.

Pure functions only. Two families of topics exist:

    windows/{host}/...                                   data topics
    {prefix}/sensor/{host}/{metric}/config               host-scoped discovery
    {prefix}/sensor/{component_id}_{metric}/config       component discovery

Host-scoped discovery always has the host as its own path segment while
component discovery is a single ``<model>_<serial>_<metric>`` segment, so
the two families never produce the same topic.
"""

from typing import Iterable, List, Sequence

from hostagent.core.config import DATA_ROOT
from hostagent.utils.identity import sanitize

CPU_LOAD = "cpu_load"
CPU_TEMPERATURE = "cpu_temperature"
VOLUME_METRICS = ("free_bytes", "size_bytes", "used_percent")
COMPONENT_METRICS = ("health", "operational_status")


# ----------------------------
# Data topics
# ----------------------------


def cpu_load_topic(host: str) -> str:
    return f"{DATA_ROOT}/{host}/system/cpu_load"


def cpu_temperature_topic(host: str) -> str:
    return f"{DATA_ROOT}/{host}/temp/cpu"


def disks_topic(host: str) -> str:
    return f"{DATA_ROOT}/{host}/disks"


def health_topic(host: str) -> str:
    return f"{DATA_ROOT}/{host}/health"


def availability_topic(host: str) -> str:
    return f"{DATA_ROOT}/{host}/availability"


def data_topics(host: str) -> List[str]:
    """All fixed data topics of a host."""
    return [
        cpu_load_topic(host),
        cpu_temperature_topic(host),
        disks_topic(host),
        health_topic(host),
        availability_topic(host),
    ]


# ----------------------------
# Discovery topics
# ----------------------------


def sensor_config_topic(prefix: str, host: str, metric: str) -> str:
    """Discovery topic of a host-scoped sensor."""
    return f"{prefix}/sensor/{host}/{metric}/config"


def volume_metric(drive: str, metric: str) -> str:
    """Metric name of a per-drive sensor (e.g. ``disk_c_free_bytes``)."""
    return f"disk_{sanitize(drive)}_{metric}"


def volume_discovery_topics(prefix: str, host: str, drive: str) -> List[str]:
    return [
        sensor_config_topic(prefix, host, volume_metric(drive, metric))
        for metric in VOLUME_METRICS
    ]


def host_discovery_topics(prefix: str, host: str, drives: Iterable[str] = ()) -> List[str]:
    """Discovery topics owned by a host: CPU sensors plus one set per drive."""
    topics = [
        sensor_config_topic(prefix, host, CPU_LOAD),
        sensor_config_topic(prefix, host, CPU_TEMPERATURE),
    ]
    for drive in drives:
        topics.extend(volume_discovery_topics(prefix, host, drive))
    return topics


def component_config_topic(prefix: str, component_id: str, metric: str) -> str:
    return f"{prefix}/sensor/{component_id}_{metric}/config"


def component_discovery_topics(prefix: str, component_id: str) -> List[str]:
    """Root-level discovery topics of a portable component."""
    return [
        component_config_topic(prefix, component_id, metric)
        for metric in COMPONENT_METRICS
    ]


def binary_sensor_topics(prefix: str, host: str) -> List[str]:
    """Binary sensor discovery topics of a host (none are published yet)."""
    return []


def host_query_pattern(prefix: str, host: str) -> str:
    """Wildcard subscription that matches every host-scoped discovery topic."""
    return f"{prefix}/sensor/{host}/#"


# ----------------------------
# Cleanup topics
# ----------------------------


def legacy_slot_topics(
    prefix: str, host: str, models: Sequence[str], slot_count: int
) -> List[str]:
    """Topics written by the old ``<model>_slot<N>`` component naming.

    Older releases keyed physical disks by model and enumeration slot and
    published them both nested under the host and flat with a host prefix.

    Example:
        >>> legacy_slot_topics("homeassistant", "pc1", ["st1000dm003"], 1)[0]
        'homeassistant/sensor/pc1/st1000dm003_slot0_health/config'
    """
    topics = []
    for model in models:
        model_token = sanitize(model)
        for slot in range(slot_count):
            key = f"{model_token}_slot{slot}"
            for metric in COMPONENT_METRICS:
                topics.append(sensor_config_topic(prefix, host, f"{key}_{metric}"))
                topics.append(f"{prefix}/sensor/{host}_{key}_{metric}/config")
    return topics


def orphan_topics(prefix: str, host: str, templates: Iterable[str]) -> List[str]:
    """Expand the operator-maintained orphan list for a host."""
    return [
        template.strip().replace("{host}", host).replace("{prefix}", prefix)
        for template in templates
        if template.strip()
    ]


def dedupe(topics: Iterable[str]) -> List[str]:
    """Drop repeated topics, keeping first-seen order."""
    return list(dict.fromkeys(topics))
