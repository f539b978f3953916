"""Configuration management for Host Agent.

This module loads settings from config.ini (plus a few environment
overrides), validates them and returns a single immutable ``AgentConfig``
that is passed explicitly to every component.

Configuration Structure:
    [device]
        name: Host name to publish under (default: this machine's hostname)

    [mqtt]
        broker: MQTT broker hostname or IP address
        port: MQTT broker port (typically 1883)
        username: MQTT authentication username
        password: MQTT authentication password
        qos: Quality of service for data and deletions (0, 1 or 2; default 1)
        keepalive: MQTT keepalive in seconds (default: 60)
        connection_timeout: Seconds to wait for the broker CONNACK (default: 10)
        discovery_prefix: Home Assistant discovery prefix (default: homeassistant)

    [cleanup]
        legacy_slot_models: Disk model tokens once published as <model>_slot<N>
        legacy_slot_count: Number of slots per legacy model (default: 4)
        orphan_topics: Extra topics to delete, one per line. Supports the
            {host} and {prefix} placeholders.
        fallback_drives: Drive letters assumed for remote hosts (default: c,d,e,f)
        query_timeout: Seconds to listen for leftover retained topics (default: 3)
        query_max_messages: Cap on topics gathered by that query (default: 500)
        progress_every: Log progress every N topics (default: 25)

Usage:
    from hostagent.core.config import load_config

    config = load_config()
    client.connect(config.broker, config.port)
"""

# Standard library imports
import configparser
import logging
import os
import socket
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

# Local imports
from hostagent import __version__
from hostagent.utils.identity import host_token

logger = logging.getLogger(__name__)


# ----------------------------
# Paths
# ----------------------------

BASE_DIR = Path(__file__).resolve().parent.parent.parent
CONFIG_PATH = BASE_DIR / "data" / "config.ini"
VERSION = __version__

DATA_ROOT = "windows"
DEFAULT_FALLBACK_DRIVES = ("c", "d", "e", "f")


class ConfigError(ValueError):
    """Raised when the configuration is missing or invalid."""


# ----------------------------
# Helper Functions
# ----------------------------


def is_interactive_environment() -> bool:
    """
    Determine if running in interactive environment.

    Returns True if:
    - stdin is a TTY (terminal)
    - HOSTAGENT_NON_INTERACTIVE env var is NOT set
    """
    if os.getenv("HOSTAGENT_NON_INTERACTIVE"):
        return False

    return sys.stdin.isatty()


def prompt_yes_no(prompt: str, default: bool = False) -> bool:
    """
    Prompt user for yes/no question with validation.

    Accepts: y, yes, n, no (case insensitive)
    Returns: boolean
    """
    default_str = "Y/n" if default else "y/N"

    while True:
        response = input(f"{prompt} [{default_str}]: ").strip().lower()

        if not response:
            return default

        if response in ("y", "yes"):
            return True
        elif response in ("n", "no"):
            return False
        else:
            print("  Invalid input. Please enter 'y' for yes or 'n' for no.")


def _split_list(value: str, commas: bool = True) -> Tuple[str, ...]:
    """Split a newline (and optionally comma) separated ini value into stripped items."""
    if commas:
        value = value.replace(",", "\n")
    items = []
    for line in value.splitlines():
        line = line.strip()
        if line:
            items.append(line)
    return tuple(items)


# ----------------------------
# Validation Functions
# ----------------------------


def validate_required_mqtt(broker: str, port: str) -> tuple[bool, str]:
    """
    Validate required MQTT settings.

    Returns (is_valid, error_message).
    """
    if not broker or not broker.strip():
        return False, "MQTT broker cannot be empty"

    try:
        port_int = int(port)
        if not (1 <= port_int <= 65535):
            return False, f"MQTT port must be between 1-65535, got {port}"
    except (TypeError, ValueError):
        return False, f"MQTT port must be a number, got '{port}'"

    return True, ""


# ----------------------------
# Configuration object
# ----------------------------


@dataclass(frozen=True)
class AgentConfig:
    """Immutable run configuration.

    Attributes:
        host_name: Configured machine name (raw, unsanitized).
        broker: MQTT broker hostname or IP address.
        port: MQTT broker port.
        username: MQTT username (optional).
        password: MQTT password (optional).
        qos: QoS used for data writes and deletions.
        keepalive: MQTT keepalive in seconds.
        connection_timeout: Seconds to wait for the broker to accept the connection.
        discovery_prefix: Home Assistant discovery prefix.
        legacy_slot_models: Model tokens from the old ``<model>_slot<N>`` naming.
        legacy_slot_count: Slots enumerated per legacy model.
        orphan_topics: Topic templates that must always be deleted on host cleanup.
        fallback_drives: Drive letters assumed when a host cannot be enumerated.
        query_timeout: Seconds the live broker query may run.
        query_max_messages: Maximum number of topics the live query collects.
        progress_every: Progress logging interval in topics.
    """

    broker: str
    host_name: str = field(default_factory=socket.gethostname)
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1
    keepalive: int = 60
    connection_timeout: float = 10.0
    discovery_prefix: str = "homeassistant"
    legacy_slot_models: Tuple[str, ...] = ()
    legacy_slot_count: int = 4
    orphan_topics: Tuple[str, ...] = ()
    fallback_drives: Tuple[str, ...] = DEFAULT_FALLBACK_DRIVES
    query_timeout: float = 3.0
    query_max_messages: int = 500
    progress_every: int = 25

    def __post_init__(self):
        valid, error = validate_required_mqtt(self.broker, self.port)
        if not valid:
            raise ConfigError(error)
        if self.qos not in (0, 1, 2):
            raise ConfigError(f"MQTT qos must be 0, 1 or 2, got {self.qos}")
        if self.connection_timeout <= 0 or self.query_timeout < 0:
            raise ConfigError("Timeouts must be positive")
        if self.legacy_slot_count < 0 or self.query_max_messages < 0:
            raise ConfigError("Counts cannot be negative")
        if self.progress_every < 1:
            raise ConfigError("progress_every must be at least 1")
        if not self.discovery_prefix.strip("/"):
            raise ConfigError("Discovery prefix cannot be empty")
        if self.username and not self.password:
            logger.warning("MQTT password is empty - ensure your broker allows this")

    @property
    def host(self) -> str:
        """Sanitized token for the configured host."""
        return host_token(self.host_name)


# ----------------------------
# Load configuration
# ----------------------------


def load_config(config_path: Optional[Path] = None) -> AgentConfig:
    """
    Load configuration from config.ini and environment overrides.

    Args:
        config_path: Path to config.ini (default: data/config.ini).

    Returns:
        Validated AgentConfig.

    Raises:
        ConfigError: If the file is corrupt or required settings are invalid.
    """
    config_path = Path(config_path) if config_path else CONFIG_PATH
    config = configparser.ConfigParser()

    if config_path.exists():
        try:
            files_read = config.read(config_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigError(f"Configuration file is corrupt: {e}") from e
        if not files_read:
            raise ConfigError(f"Config file exists but couldn't be read: {config_path}")
        logger.debug(f"Loaded configuration from {config_path}")
    else:
        logger.warning(f"Config file not found at {config_path}, using environment")

    for section in ("device", "mqtt", "cleanup"):
        if not config.has_section(section):
            config.add_section(section)

    host_name = os.getenv("HOSTAGENT_DEVICE_NAME") or config.get(
        "device", "name", fallback=""
    ).strip() or socket.gethostname()
    broker = os.getenv("HOSTAGENT_MQTT_BROKER") or config.get(
        "mqtt", "broker", fallback=""
    )
    port = os.getenv("HOSTAGENT_MQTT_PORT") or config.get("mqtt", "port", fallback="1883")
    username = os.getenv("HOSTAGENT_MQTT_USER") or config.get(
        "mqtt", "username", fallback=""
    )
    password = os.getenv("HOSTAGENT_MQTT_PASS") or config.get(
        "mqtt", "password", fallback=""
    )

    valid, error = validate_required_mqtt(broker, port)
    if not valid:
        raise ConfigError(error)

    fallback_drives = _split_list(config.get("cleanup", "fallback_drives", fallback=""))

    try:
        return AgentConfig(
            host_name=host_name,
            broker=broker.strip(),
            port=int(port),
            username=username or None,
            password=password or None,
            qos=config.getint("mqtt", "qos", fallback=1),
            keepalive=config.getint("mqtt", "keepalive", fallback=60),
            connection_timeout=config.getfloat("mqtt", "connection_timeout", fallback=10.0),
            discovery_prefix=config.get(
                "mqtt", "discovery_prefix", fallback="homeassistant"
            ).strip().strip("/"),
            legacy_slot_models=_split_list(
                config.get("cleanup", "legacy_slot_models", fallback="")
            ),
            legacy_slot_count=config.getint("cleanup", "legacy_slot_count", fallback=4),
            orphan_topics=_split_list(
                config.get("cleanup", "orphan_topics", fallback=""), commas=False
            ),
            fallback_drives=fallback_drives or DEFAULT_FALLBACK_DRIVES,
            query_timeout=config.getfloat("cleanup", "query_timeout", fallback=3.0),
            query_max_messages=config.getint("cleanup", "query_max_messages", fallback=500),
            progress_every=config.getint("cleanup", "progress_every", fallback=25),
        )
    except ValueError as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"Invalid configuration value: {e}") from e
