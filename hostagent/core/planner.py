"""Topic set planning for publish and decommission runs.

The planner decides, for a single run, exactly which topics are written and
which are deleted. It never talks to the broker except for the read-only
leftover query of a host decommission.

Modes:
    publish                 data topics (+ discovery on the full cycle)
    decommission host       everything a host ever owned, minus portable
                            components of other machines
    decommission component  the two discovery topics of one component
"""

# Standard library imports
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional

# Local imports
from hostagent.core import topics
from hostagent.core.config import AgentConfig
from hostagent.core.discovery import (
    SensorOptions,
    build_sensor,
    encode_payload,
    host_device,
    json_value_template,
)
from hostagent.core.snapshot import HardwareSnapshot
from hostagent.utils.identity import sanitize

logger = logging.getLogger(__name__)


class ActionKind(Enum):
    WRITE = "write"
    DELETE = "delete"


@dataclass(frozen=True)
class PlannedAction:
    """One topic operation. Deletions are empty retained writes."""

    topic: str
    kind: ActionKind
    payload: str = ""
    retain: bool = True

    def describe(self) -> str:
        if self.kind is ActionKind.DELETE:
            return f"DELETE {self.topic}"
        flag = " (retained)" if self.retain else ""
        return f"WRITE  {self.topic}{flag}: {self.payload}"


class TopicPlan:
    """Ordered set of planned actions, at most one per topic.

    Adding the same action twice is a no-op. Adding a different action for
    a topic that is already planned keeps the first one and logs a warning.
    """

    def __init__(self, mode: str, target: str = ""):
        self.mode = mode
        self.target = target
        self._actions: Dict[str, PlannedAction] = {}

    def add(self, action: PlannedAction) -> None:
        existing = self._actions.get(action.topic)
        if existing is None:
            self._actions[action.topic] = action
        elif existing != action:
            logger.warning(f"Conflicting actions planned for {action.topic}, keeping first")

    def write(self, topic: str, payload: str, retain: bool = True) -> None:
        self.add(PlannedAction(topic, ActionKind.WRITE, payload, retain))

    def delete(self, topic: str) -> None:
        self.add(PlannedAction(topic, ActionKind.DELETE))

    def delete_all(self, topic_list: Iterable[str]) -> None:
        for topic in topic_list:
            self.delete(topic)

    @property
    def actions(self) -> List[PlannedAction]:
        return list(self._actions.values())

    @property
    def topics(self) -> List[str]:
        return list(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[PlannedAction]:
        return iter(self.actions)

    def __contains__(self, topic: str) -> bool:
        return topic in self._actions


# ----------------------------
# Helpers
# ----------------------------


def is_local_host(host_name: str, config: AgentConfig) -> bool:
    """True when ``host_name`` names the machine this process runs on."""
    token = sanitize(host_name)
    return token in (config.host, sanitize(socket.gethostname()))


def _discovery_documents(config: AgentConfig, snapshot: HardwareSnapshot):
    """Yield (config_topic, document) for every sensor of this host."""
    host = config.host
    prefix = config.discovery_prefix
    device = host_device(host, config.host_name)

    yield topics.sensor_config_topic(prefix, host, topics.CPU_LOAD), build_sensor(
        f"{config.host_name} CPU Load",
        f"{host}_{topics.CPU_LOAD}",
        topics.cpu_load_topic(host),
        SensorOptions(
            object_id=f"{host}_{topics.CPU_LOAD}",
            state_class="measurement",
            unit_of_measurement="%",
            suggested_display_precision=1,
            device=device,
        ),
    )

    if snapshot.cpu_temperature is not None:
        yield topics.sensor_config_topic(prefix, host, topics.CPU_TEMPERATURE), build_sensor(
            f"{config.host_name} CPU Temperature",
            f"{host}_{topics.CPU_TEMPERATURE}",
            topics.cpu_temperature_topic(host),
            SensorOptions(
                object_id=f"{host}_{topics.CPU_TEMPERATURE}",
                device_class="temperature",
                state_class="measurement",
                unit_of_measurement="°C",
                suggested_display_precision=1,
                device=device,
            ),
        )

    volume_sensors = {
        "size_bytes": ("Size", "data_size", "B", 0),
        "free_bytes": ("Free", "data_size", "B", 0),
        "used_percent": ("Used", None, "%", 1),
    }
    for volume in snapshot.volumes:
        for metric in topics.VOLUME_METRICS:
            label, device_class, unit, precision = volume_sensors[metric]
            name = topics.volume_metric(volume.drive, metric)
            yield topics.sensor_config_topic(prefix, host, name), build_sensor(
                f"{config.host_name} Disk {volume.drive.upper()} {label}",
                f"{host}_{name}",
                topics.disks_topic(host),
                SensorOptions(
                    object_id=f"{host}_{name}",
                    device_class=device_class,
                    state_class="measurement",
                    unit_of_measurement=unit,
                    suggested_display_precision=precision,
                    device=device,
                    value_template=json_value_template(f"{volume.drive}_{metric}"),
                ),
            )

    # Component IDs are host independent; only the device grouping follows
    # the machine the disk currently sits in.
    for disk in snapshot.disks:
        for metric, label in (("health", "Health"), ("operational_status", "Status")):
            unique_id = f"{disk.component_id}_{metric}"
            yield topics.component_config_topic(
                prefix, disk.component_id, metric
            ), build_sensor(
                f"{disk.model} {label}",
                unique_id,
                topics.health_topic(host),
                SensorOptions(
                    object_id=unique_id,
                    device=device,
                    value_template=json_value_template(unique_id),
                ),
            )


def _format_reading(value: float) -> str:
    return f"{value:.1f}"


# ----------------------------
# Publish mode
# ----------------------------


def plan_publish(
    config: AgentConfig, snapshot: HardwareSnapshot, full: bool = True
) -> TopicPlan:
    """Plan the writes of one monitoring cycle.

    Args:
        config: Run configuration.
        snapshot: Readings of this cycle.
        full: Include physical disk health and discovery documents.

    Returns:
        TopicPlan containing only WRITE actions.
    """
    host = config.host
    plan = TopicPlan("publish" if full else "publish-light", host)

    if snapshot.cpu_load is not None:
        plan.write(topics.cpu_load_topic(host), _format_reading(snapshot.cpu_load), retain=False)
    else:
        logger.warning("CPU load unavailable, skipping")

    if snapshot.cpu_temperature is not None:
        plan.write(
            topics.cpu_temperature_topic(host),
            _format_reading(snapshot.cpu_temperature),
            retain=False,
        )
    else:
        logger.debug("CPU temperature unavailable, skipping")

    if snapshot.volumes:
        disks = {}
        for volume in snapshot.volumes:
            disks.update(volume.to_payload())
        plan.write(topics.disks_topic(host), encode_payload(disks))

    if full:
        if snapshot.disks:
            health = {}
            for disk in snapshot.disks:
                health.update(disk.to_payload())
            plan.write(topics.health_topic(host), encode_payload(health))

        for topic, document in _discovery_documents(config, snapshot):
            plan.write(topic, document.to_json())

    plan.write(topics.availability_topic(host), "online")

    logger.info(f"Planned {len(plan)} writes for {host} ({plan.mode})")
    return plan


# ----------------------------
# Decommission modes
# ----------------------------


def query_leftover_topics(config: AgentConfig, host: str, transport) -> List[str]:
    """Ask the broker for retained host topics the naming rules did not predict.

    Best effort: any failure or timeout yields an empty list.
    """
    if transport is None:
        return []

    pattern = topics.host_query_pattern(config.discovery_prefix, host)
    scope = pattern[:-1]
    try:
        found = transport.query_topics(
            pattern, timeout=config.query_timeout, max_messages=config.query_max_messages
        )
    except Exception as e:
        logger.warning(f"Live topic query for {pattern} failed: {e}")
        return []

    leftovers = [topic for topic in (found or []) if topic.startswith(scope)]
    logger.info(f"Live query found {len(leftovers)} retained topics under {pattern}")
    return leftovers


def plan_host_decommission(
    config: AgentConfig,
    host_name: str,
    snapshot: Optional[HardwareSnapshot] = None,
    transport=None,
) -> TopicPlan:
    """Plan deletion of every topic a host owns.

    Local hosts are enumerated from ``snapshot``. Remote hosts cannot be
    enumerated, so a fixed set of common drive letters is assumed; volumes
    on other letters are only caught by the live query.

    Portable component topics are included only for the local host, where
    the disks are known to be attached. They are never host-owned.

    Args:
        config: Run configuration.
        host_name: Host to decommission (raw or sanitized).
        snapshot: Current local hardware, used when the target is local.
        transport: MqttTransport used for the read-only leftover query.

    Returns:
        TopicPlan containing only DELETE actions.
    """
    host = sanitize(host_name)
    prefix = config.discovery_prefix
    local = is_local_host(host_name, config)
    plan = TopicPlan("decommission-host", host)

    if local and snapshot is not None:
        drives = snapshot.drives
    else:
        drives = [sanitize(drive) for drive in config.fallback_drives]
        logger.info(f"Host {host} is not local, assuming drives {', '.join(drives)}")

    candidates = []
    candidates.extend(topics.data_topics(host))
    candidates.extend(topics.host_discovery_topics(prefix, host, drives))
    candidates.extend(
        topics.legacy_slot_topics(
            prefix, host, config.legacy_slot_models, config.legacy_slot_count
        )
    )
    candidates.extend(topics.orphan_topics(prefix, host, config.orphan_topics))
    if local and snapshot is not None:
        for cid in snapshot.component_ids:
            candidates.extend(topics.component_discovery_topics(prefix, cid))
    candidates.extend(topics.binary_sensor_topics(prefix, host))
    candidates.extend(query_leftover_topics(config, host, transport))

    plan.delete_all(topics.dedupe(candidates))
    logger.info(f"Planned {len(plan)} deletions for host {host}")
    return plan


def plan_component_decommission(config: AgentConfig, component_id: str) -> TopicPlan:
    """Plan deletion of one portable component's discovery topics."""
    cid = sanitize(component_id)
    plan = TopicPlan("decommission-component", cid)
    plan.delete_all(topics.component_discovery_topics(config.discovery_prefix, cid))
    logger.info(f"Planned {len(plan)} deletions for component {cid}")
    return plan
