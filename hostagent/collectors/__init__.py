"""Data collection classes for Host Agent.

Collectors only gather data; they don't publish or format payloads.

Modules:
    system: CPU, volume and physical disk readings
"""

from .system import SystemMetricsProvider

__all__ = ["SystemMetricsProvider"]
