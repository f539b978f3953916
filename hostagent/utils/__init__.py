"""Utility functions and helpers for Host Agent.

Modules:
    identity: Sanitized host tokens and component identifiers
    logs: Logging configuration for the entry points
"""

from .identity import component_id, host_token, resolve_component_ids, sanitize
from .logs import setup_logging

__all__ = [
    "sanitize",
    "component_id",
    "host_token",
    "resolve_component_ids",
    "setup_logging",
]
