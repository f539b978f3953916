"""Stable identifiers for hosts and hardware components.

Every namespace segment that ends up in an MQTT topic (host names, drive
letters, volume labels, disk models, serial numbers) goes through the same
``sanitize`` rule so topic names compose predictably.
"""

import logging
import re
from typing import Any, Iterable, List, Tuple

logger = logging.getLogger(__name__)

PLACEHOLDER = "unknown"

_INVALID_CHARS = re.compile(r"[^a-z0-9]")
_REPEATED_SEPARATORS = re.compile(r"_+")


def sanitize(text: Any) -> str:
    """Sanitize any value into a topic-safe token.

    Converts to lowercase, replaces every character outside ``[a-z0-9]``
    with an underscore, collapses repeated underscores and strips them from
    both ends. Never raises.

    Args:
        text: Raw value as reported by the OS (may be None, a bool or a number).

    Returns:
        Token matching ``^[a-z0-9_]+$``, ``"unknown"`` when nothing is left.

    Example:
        >>> sanitize("DESKTOP-ABC")
        'desktop_abc'
        >>> sanitize("  Samsung  HD103SI ")
        'samsung_hd103si'
        >>> sanitize(None)
        'unknown'
    """
    if text is None or isinstance(text, bool):
        return PLACEHOLDER

    try:
        raw = str(text).strip()
    except Exception:
        return PLACEHOLDER
    if not raw or raw.lower() in ("true", "false", "none", "null"):
        return PLACEHOLDER

    token = _INVALID_CHARS.sub("_", raw.lower())
    token = _REPEATED_SEPARATORS.sub("_", token).strip("_")
    return token or PLACEHOLDER


def component_id(model: Any, serial: Any = None) -> str:
    """Build the host-independent identifier of a portable component.

    Example:
        >>> component_id("Samsung HD103SI", "S1VSJD1ZB07989")
        'samsung_hd103si_s1vsjd1zb07989'
    """
    return f"{sanitize(model)}_{sanitize(serial)}"


def host_token(host_name: Any) -> str:
    """Sanitized token for a machine name."""
    return sanitize(host_name)


def resolve_component_ids(pairs: Iterable[Tuple[Any, Any]]) -> List[str]:
    """Resolve component IDs for a batch of (model, serial) pairs.

    Two disks that report the same model and no usable serial would share
    an ID. The second and later ones get a ``_2``, ``_3`` suffix in
    enumeration order. A suffix already taken by another ID in the batch
    is skipped, so the result never contains the same ID twice.
    """
    bases = [component_id(model, serial) for model, serial in pairs]
    taken = set(bases)
    seen = set()
    resolved = []
    for base in bases:
        if base not in seen:
            seen.add(base)
            resolved.append(base)
            continue

        count = 2
        while f"{base}_{count}" in taken:
            count += 1
        candidate = f"{base}_{count}"
        taken.add(candidate)
        logger.warning(
            f"Ambiguous component identity '{base}', publishing as '{candidate}'"
        )
        resolved.append(candidate)
    return resolved
