"""Monitor implementations that publish collected data to MQTT.

Modules:
    system: One publishing cycle of host metrics
"""

from .system import SystemMonitor

__all__ = ["SystemMonitor"]
