"""Host Agent - Windows host telemetry for Home Assistant over MQTT."""

__version__ = "1.0.0"
