"""System metrics collection for Host Agent.

``SystemMetricsProvider`` is the MetricsProvider used in production. CPU and
volume readings come from psutil; physical and removable disk inventories
come from PowerShell storage cmdlets on Windows.

Collectors only gather data. Failures are logged and reported as None or
empty lists; nothing here publishes or raises.
"""

# Standard library imports
import json
import logging
import string
import subprocess
import sys
from typing import Any, Dict, List, Optional

# Third-party imports
import psutil

logger = logging.getLogger(__name__)

POWERSHELL = ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command"]

PHYSICAL_DISKS_SCRIPT = (
    "Get-PhysicalDisk | Where-Object { $_.BusType -ne 'USB' } | "
    "Select-Object FriendlyName, Model, SerialNumber, HealthStatus, "
    "OperationalStatus, MediaType | ConvertTo-Json -Compress"
)

REMOVABLE_DRIVES_SCRIPT = (
    "Get-CimInstance Win32_DiskDrive | Where-Object { $_.MediaType -like 'Removable*' "
    "-or $_.InterfaceType -eq 'USB' } | ForEach-Object { $disk = $_; "
    "$letters = @($disk | Get-CimAssociatedInstance -ResultClassName Win32_DiskPartition | "
    "Get-CimAssociatedInstance -ResultClassName Win32_LogicalDisk | "
    "ForEach-Object { $_.DeviceID }); "
    "[pscustomobject]@{ Model = $disk.Model; SerialNumber = $disk.SerialNumber; "
    "Manufacturer = $disk.Manufacturer; DriveLetters = $letters } } | "
    "ConvertTo-Json -Compress -Depth 3"
)

# Windows CIM enums come back as numbers when ConvertTo-Json serializes them.
HEALTH_STATUS = {0: "Healthy", 1: "Warning", 2: "Unhealthy", 5: "Unknown"}
OPERATIONAL_STATUS = {
    1: "Other",
    2: "OK",
    3: "Degraded",
    5: "Predictive Failure",
    6: "Error",
    10: "Stopped",
    53264: "Online",
    53265: "Not Ready",
    53266: "No Media",
    53270: "Offline",
    53271: "Failed",
}
MEDIA_TYPE = {0: "Unspecified", 3: "HDD", 4: "SSD", 5: "SCM"}

SKIPPED_OPTS = ("cdrom", "removable", "remote")


def drive_letter(mountpoint: str) -> Optional[str]:
    """Drive letter of a Windows mount point ("C:\\" -> "c"), None otherwise."""
    if len(mountpoint) >= 2 and mountpoint[1] == ":" and mountpoint[0] in string.ascii_letters:
        return mountpoint[0].lower()
    return None


def _enum_text(value: Any, names: Dict[int, str]) -> str:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, int) and not isinstance(value, bool):
        return names.get(value, str(value))
    if value is None or value == "":
        return "Unknown"
    return str(value)


def run_powershell_json(script: str, timeout: float = 30.0) -> List[Dict[str, Any]]:
    """Run a PowerShell snippet that ends in ConvertTo-Json.

    Returns:
        List of objects (a single object is wrapped in a list); empty on
        any failure or on non-Windows platforms.
    """
    if not sys.platform.startswith("win"):
        return []

    try:
        result = subprocess.run(
            POWERSHELL + [script],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"PowerShell query failed: {e}")
        return []

    if result.returncode != 0:
        logger.warning(f"PowerShell query exited with {result.returncode}: {result.stderr.strip()}")
        return []

    output = result.stdout.strip()
    if not output:
        return []

    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse PowerShell output: {e}")
        return []

    if isinstance(data, dict):
        return [data]
    return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []


class SystemMetricsProvider:
    """Collects the host readings published by the agent.

    Example:
        >>> provider = SystemMetricsProvider()
        >>> provider.get_cpu_load_percent()
        12.5
        >>> provider.list_fixed_volumes()[0]["drive"]
        'c'
    """

    def __init__(self, cpu_interval: float = 1.0):
        """Initialize the provider.

        Args:
            cpu_interval: Seconds psutil samples CPU time over.
        """
        self.cpu_interval = cpu_interval

    def get_cpu_load_percent(self) -> Optional[float]:
        """Get current CPU usage percentage, None if unavailable."""
        try:
            return round(psutil.cpu_percent(interval=self.cpu_interval), 1)
        except Exception as e:
            logger.error(f"Error getting CPU usage: {e}")
            return None

    def get_cpu_temperature_celsius(self) -> Optional[float]:
        """Get CPU package temperature in Celsius.

        Note:
            psutil does not expose temperatures on Windows, so this is
            usually None there. The sensor is simply skipped in that case.
        """
        try:
            if hasattr(psutil, "sensors_temperatures"):
                temps = psutil.sensors_temperatures()
                for sensor_name in ["coretemp", "k10temp", "zenpower", "cpu_thermal"]:
                    entries = temps.get(sensor_name) or []
                    for entry in entries:
                        if entry.label and ("Package" in entry.label or "Tctl" in entry.label):
                            return entry.current
                    if entries:
                        return entries[0].current
        except (AttributeError, OSError) as e:
            logger.debug(f"Could not get CPU temperature: {e}")
        return None

    def list_fixed_volumes(self) -> List[Dict[str, Any]]:
        """List local fixed volumes with their capacity.

        Returns:
            List of dicts with drive, label, size_bytes and free_bytes.
        """
        volumes = []
        for partition in psutil.disk_partitions(all=False):
            opts = partition.opts.lower()
            if any(skip in opts for skip in SKIPPED_OPTS) or not partition.fstype:
                continue

            drive = drive_letter(partition.mountpoint) or partition.mountpoint
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (PermissionError, OSError) as e:
                logger.debug(f"Skipping inaccessible volume {partition.mountpoint}: {e}")
                continue

            volumes.append(
                {
                    "drive": drive,
                    "label": partition.mountpoint,
                    "size_bytes": usage.total,
                    "free_bytes": usage.free,
                }
            )
        return volumes

    def list_physical_disks(self) -> List[Dict[str, Any]]:
        """List internal physical disks with their health state."""
        disks = []
        for raw in run_powershell_json(PHYSICAL_DISKS_SCRIPT):
            disks.append(
                {
                    "model": raw.get("Model") or raw.get("FriendlyName"),
                    "serial": str(raw.get("SerialNumber") or "").strip() or None,
                    "health": _enum_text(raw.get("HealthStatus"), HEALTH_STATUS),
                    "operational_status": _enum_text(
                        raw.get("OperationalStatus"), OPERATIONAL_STATUS
                    ),
                    "media_type": _enum_text(raw.get("MediaType"), MEDIA_TYPE),
                }
            )
        return disks

    def list_removable_drives(self) -> List[Dict[str, Any]]:
        """List removable drives. Informational only, not published."""
        drives = []
        for raw in run_powershell_json(REMOVABLE_DRIVES_SCRIPT):
            letters = raw.get("DriveLetters") or []
            if isinstance(letters, str):
                letters = [letters]
            drives.append(
                {
                    "model": raw.get("Model"),
                    "serial": str(raw.get("SerialNumber") or "").strip() or None,
                    "manufacturer": raw.get("Manufacturer"),
                    "drive_letters": [drive_letter(letter) or letter for letter in letters],
                }
            )
        return drives
