"""Core infrastructure modules for Host Agent.

Modules:
    config: Immutable run configuration
    messaging: MQTT transport (paho-mqtt)
    discovery: Home Assistant discovery documents
    topics: Canonical topic names
    snapshot: Per-run hardware readings
    planner: Topic set planning
    executor: Plan execution and run summaries
"""

from .config import AgentConfig, ConfigError, load_config
from .discovery import DeviceInfo, DiscoveryDocument, SensorOptions, build_sensor
from .executor import RunSummary, execute
from .messaging import MessageBroker, MqttTransport
from .planner import (
    TopicPlan,
    plan_component_decommission,
    plan_host_decommission,
    plan_publish,
)

__all__ = [
    "AgentConfig",
    "ConfigError",
    "load_config",
    "DeviceInfo",
    "DiscoveryDocument",
    "SensorOptions",
    "build_sensor",
    "RunSummary",
    "execute",
    "MessageBroker",
    "MqttTransport",
    "TopicPlan",
    "plan_publish",
    "plan_host_decommission",
    "plan_component_decommission",
]
