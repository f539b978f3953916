"""Per-run hardware snapshot.

A snapshot is taken once per run from a MetricsProvider and then only read.
Readings that cannot be obtained become ``None`` or empty lists so the rest
of the run proceeds.
"""

# Standard library imports
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

# Local imports
from hostagent.utils.identity import resolve_component_ids, sanitize

logger = logging.getLogger(__name__)


class MetricsProvider(Protocol):
    """Source of raw host readings."""

    def get_cpu_load_percent(self) -> Optional[float]: ...

    def get_cpu_temperature_celsius(self) -> Optional[float]: ...

    def list_fixed_volumes(self) -> List[Dict[str, Any]]: ...

    def list_physical_disks(self) -> List[Dict[str, Any]]: ...

    def list_removable_drives(self) -> List[Dict[str, Any]]: ...


@dataclass(frozen=True)
class VolumeMetric:
    drive: str
    label: str
    size_bytes: int
    free_bytes: int

    @property
    def used_bytes(self) -> int:
        return self.size_bytes - self.free_bytes

    @property
    def used_percent(self) -> float:
        if self.size_bytes <= 0:
            return 0.0
        return round(self.used_bytes / self.size_bytes * 100, 1)

    def to_payload(self) -> Dict[str, Any]:
        """Flat fields for the ``disks`` payload."""
        return {
            f"{self.drive}_size_bytes": self.size_bytes,
            f"{self.drive}_free_bytes": self.free_bytes,
            f"{self.drive}_used_bytes": self.used_bytes,
            f"{self.drive}_used_percent": self.used_percent,
        }


@dataclass(frozen=True)
class DiskHealthRecord:
    component_id: str
    model: str
    health: str
    operational_status: str
    media_type: str

    def to_payload(self) -> Dict[str, str]:
        """Flat fields for the ``health`` payload."""
        return {
            f"{self.component_id}_health": self.health,
            f"{self.component_id}_operational_status": self.operational_status,
            f"{self.component_id}_media_type": self.media_type,
        }


@dataclass(frozen=True)
class HardwareSnapshot:
    cpu_load: Optional[float] = None
    cpu_temperature: Optional[float] = None
    volumes: List[VolumeMetric] = field(default_factory=list)
    disks: List[DiskHealthRecord] = field(default_factory=list)
    removable: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def drives(self) -> List[str]:
        return [volume.drive for volume in self.volumes]

    @property
    def component_ids(self) -> List[str]:
        return [disk.component_id for disk in self.disks]


def _safe_call(name: str, func: Callable[[], Any], default: Any) -> Any:
    """Call a provider method, logging and substituting ``default`` on failure."""
    try:
        result = func()
    except Exception as e:
        logger.warning(f"Could not read {name}: {e}")
        return default
    return default if result is None else result


def _as_int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _as_text(value: Any) -> str:
    if value is None:
        return "Unknown"
    text = str(value).strip()
    return text or "Unknown"


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return round(float(value), 1)
    except (TypeError, ValueError):
        return None


def build_volumes(raw_volumes: List[Dict[str, Any]]) -> List[VolumeMetric]:
    """Convert raw volume listings, dropping repeated drive tokens."""
    volumes = []
    seen = set()
    for raw in raw_volumes:
        if not isinstance(raw, dict):
            continue
        drive = sanitize(raw.get("drive"))
        if drive in seen:
            logger.warning(f"Skipping duplicate volume for drive '{drive}'")
            continue
        seen.add(drive)
        volumes.append(
            VolumeMetric(
                drive=drive,
                label=_as_text(raw.get("label")),
                size_bytes=_as_int(raw.get("size_bytes")),
                free_bytes=_as_int(raw.get("free_bytes")),
            )
        )
    return volumes


def build_disk_records(raw_disks: List[Dict[str, Any]]) -> List[DiskHealthRecord]:
    """Convert raw physical disk listings into health records with stable IDs."""
    raw_disks = [raw for raw in raw_disks if isinstance(raw, dict)]
    ids = resolve_component_ids((raw.get("model"), raw.get("serial")) for raw in raw_disks)
    return [
        DiskHealthRecord(
            component_id=cid,
            model=_as_text(raw.get("model")),
            health=_as_text(raw.get("health")),
            operational_status=_as_text(raw.get("operational_status")),
            media_type=_as_text(raw.get("media_type")),
        )
        for cid, raw in zip(ids, raw_disks)
    ]


def take_snapshot(provider: MetricsProvider, full: bool = True) -> HardwareSnapshot:
    """Read everything a run needs from the provider.

    Args:
        provider: Metrics source.
        full: Also enumerate physical and removable disks (the light
            cycle only needs CPU and volumes).

    Returns:
        HardwareSnapshot; failed readings are None or empty.
    """
    cpu_load = _as_float(_safe_call("CPU load", provider.get_cpu_load_percent, None))
    cpu_temperature = _as_float(
        _safe_call("CPU temperature", provider.get_cpu_temperature_celsius, None)
    )
    volumes = build_volumes(_safe_call("fixed volumes", provider.list_fixed_volumes, []))

    disks = []
    removable = []
    if full:
        disks = build_disk_records(
            _safe_call("physical disks", provider.list_physical_disks, [])
        )
        removable = [
            raw
            for raw in _safe_call("removable drives", provider.list_removable_drives, [])
            if isinstance(raw, dict)
        ]

    logger.debug(
        f"Snapshot: cpu_load={cpu_load} cpu_temperature={cpu_temperature} "
        f"volumes={len(volumes)} disks={len(disks)} removable={len(removable)}"
    )
    return HardwareSnapshot(
        cpu_load=cpu_load,
        cpu_temperature=cpu_temperature,
        volumes=volumes,
        disks=disks,
        removable=removable,
    )
