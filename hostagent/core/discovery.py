"""Home Assistant MQTT discovery documents for Host Agent.

This module builds the sensor registration payloads. It never publishes:
documents are handed to the planner, which turns them into retained writes.
"""

# Standard library imports
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class DeviceInfo:
    """Device grouping descriptor attached to a sensor.

    Home Assistant clusters every sensor sharing ``identifiers`` under one
    device card.
    """

    identifiers: Tuple[str, ...]
    name: str
    manufacturer: Optional[str] = None
    model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        device = {"identifiers": list(self.identifiers), "name": self.name}
        if self.manufacturer:
            device["manufacturer"] = self.manufacturer
        if self.model:
            device["model"] = self.model
        return device


@dataclass(frozen=True)
class SensorOptions:
    """Optional fields of a sensor discovery document.

    Attributes:
        object_id: Explicit entity slug.
        device_class: Home Assistant device class (e.g. "temperature").
        state_class: State class (e.g. "measurement").
        unit_of_measurement: Unit (e.g. "%", "B", "°C").
        suggested_display_precision: Decimal places; 0 or None omits the field.
        device: Device grouping descriptor.
        json_attributes_topic: Topic holding a JSON blob of extra attributes.
        value_template: Template extracting the value from a JSON state payload.
    """

    object_id: Optional[str] = None
    device_class: Optional[str] = None
    state_class: Optional[str] = None
    unit_of_measurement: Optional[str] = None
    suggested_display_precision: Optional[int] = None
    device: Optional[DeviceInfo] = None
    json_attributes_topic: Optional[str] = None
    value_template: Optional[str] = None


@dataclass(frozen=True)
class DiscoveryDocument:
    """A sensor registration payload."""

    name: str
    unique_id: str
    state_topic: str
    options: SensorOptions = field(default_factory=SensorOptions)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, keeping only non-empty optional fields."""
        config = {
            "name": self.name,
            "unique_id": self.unique_id,
            "state_topic": self.state_topic,
        }
        opts = self.options

        if opts.object_id:
            config["object_id"] = opts.object_id
        if opts.device_class:
            config["device_class"] = opts.device_class
        if opts.state_class:
            config["state_class"] = opts.state_class
        if opts.unit_of_measurement:
            config["unit_of_measurement"] = opts.unit_of_measurement
        if opts.suggested_display_precision:
            config["suggested_display_precision"] = int(opts.suggested_display_precision)
        if opts.device:
            config["device"] = opts.device.to_dict()
        if opts.json_attributes_topic:
            config["json_attributes_topic"] = opts.json_attributes_topic
        if opts.value_template:
            config["value_template"] = opts.value_template

        return config

    def to_json(self) -> str:
        return encode_payload(self.to_dict())


def encode_payload(data: Dict[str, Any]) -> str:
    """Canonical JSON encoder for every structured payload."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def json_value_template(key: str) -> str:
    """Template extracting ``key`` from a JSON state payload."""
    return f"{{{{ value_json.{key} }}}}"


def host_device(host: str, host_name: str) -> DeviceInfo:
    """Device descriptor grouping sensors under the machine they run on."""
    return DeviceInfo(
        identifiers=(host,),
        name=host_name,
        manufacturer="Host Agent",
        model="Windows Host",
    )


def build_sensor(
    name: str,
    unique_id: str,
    state_topic: str,
    options: Optional[SensorOptions] = None,
) -> DiscoveryDocument:
    """Build a sensor discovery document.

    Args:
        name: Friendly name shown in Home Assistant.
        unique_id: Stable unique ID (entity history follows it).
        state_topic: Topic carrying the sensor's value.
        options: Optional fields; unset ones are left out of the payload.

    Returns:
        DiscoveryDocument ready to be serialized.

    Example:
        >>> doc = build_sensor(
        ...     "PC1 CPU Load",
        ...     "pc1_cpu_load",
        ...     "windows/pc1/system/cpu_load",
        ...     SensorOptions(unit_of_measurement="%", state_class="measurement"),
        ... )
        >>> doc.to_dict()["unit_of_measurement"]
        '%'
    """
    return DiscoveryDocument(
        name=name,
        unique_id=unique_id,
        state_topic=state_topic,
        options=options or SensorOptions(),
    )
