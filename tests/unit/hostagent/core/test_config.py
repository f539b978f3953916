"""Unit tests for configuration management.

Key Testing Patterns:
    - Test validation and fail-fast construction of AgentConfig
    - Test loading config.ini files from a temporary directory
    - Test environment overrides and helper functions

Example Run:
    pytest tests/unit/hostagent/core/test_config.py -v
"""

import dataclasses
from unittest.mock import patch

import pytest

from hostagent.core.config import (
    DEFAULT_FALLBACK_DRIVES,
    AgentConfig,
    ConfigError,
    is_interactive_environment,
    load_config,
    prompt_yes_no,
    validate_required_mqtt,
)

CONFIG_TEXT = """
[device]
name = Office PC

[mqtt]
broker = test.broker.local
port = 1884
username = testuser
password = testpass
qos = 2
discovery_prefix = ha/

[cleanup]
legacy_slot_models =
    ST1000DM003
    WDC WD10EZEX
legacy_slot_count = 3
orphan_topics =
    {prefix}/sensor/{host}_uptime/config
    windows/{host}/status
fallback_drives = c, d
query_timeout = 1.5
query_max_messages = 10
progress_every = 7
"""


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "HOSTAGENT_MQTT_BROKER",
        "HOSTAGENT_MQTT_PORT",
        "HOSTAGENT_MQTT_USER",
        "HOSTAGENT_MQTT_PASS",
        "HOSTAGENT_DEVICE_NAME",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_config_file(tmp_path):
    config_file = tmp_path / "config.ini"
    config_file.write_text(CONFIG_TEXT, encoding="utf-8")
    return config_file


class TestValidationFunctions:
    """Test suite for configuration validation functions."""

    def test_validate_required_mqtt_success(self):
        assert validate_required_mqtt("test.broker.com", "1883") == (True, "")

    def test_validate_required_mqtt_empty_broker(self):
        is_valid, error = validate_required_mqtt("  ", "1883")
        assert is_valid is False
        assert "broker" in error.lower()

    def test_validate_required_mqtt_invalid_port_string(self):
        is_valid, error = validate_required_mqtt("broker", "abc")
        assert is_valid is False
        assert "number" in error.lower()

    def test_validate_required_mqtt_port_out_of_range(self):
        is_valid, error = validate_required_mqtt("broker", "70000")
        assert is_valid is False
        assert "1-65535" in error


class TestAgentConfig:
    """Test suite for the AgentConfig dataclass."""

    def test_defaults(self):
        config = AgentConfig(broker="broker", host_name="DESKTOP-ABC")

        assert config.port == 1883
        assert config.qos == 1
        assert config.discovery_prefix == "homeassistant"
        assert config.fallback_drives == DEFAULT_FALLBACK_DRIVES
        assert config.host == "desktop_abc"

    def test_is_immutable(self, agent_config):
        with pytest.raises(dataclasses.FrozenInstanceError):
            agent_config.qos = 0

    @pytest.mark.parametrize(
        "overrides",
        [
            {"broker": ""},
            {"port": 0},
            {"qos": 3},
            {"connection_timeout": 0},
            {"query_timeout": -1},
            {"legacy_slot_count": -1},
            {"progress_every": 0},
            {"discovery_prefix": "/"},
        ],
    )
    def test_invalid_values_fail_fast(self, overrides):
        values = {"broker": "broker", "host_name": "pc"}
        values.update(overrides)
        with pytest.raises(ConfigError):
            AgentConfig(**values)


class TestLoadConfig:
    """Test suite for load_config()."""

    def test_load_from_file(self, temp_config_file, clean_env):
        config = load_config(temp_config_file)

        assert config.host_name == "Office PC"
        assert config.host == "office_pc"
        assert config.broker == "test.broker.local"
        assert config.port == 1884
        assert config.username == "testuser"
        assert config.password == "testpass"
        assert config.qos == 2
        assert config.discovery_prefix == "ha"
        assert config.legacy_slot_models == ("ST1000DM003", "WDC WD10EZEX")
        assert config.legacy_slot_count == 3
        assert config.orphan_topics == (
            "{prefix}/sensor/{host}_uptime/config",
            "windows/{host}/status",
        )
        assert config.fallback_drives == ("c", "d")
        assert config.query_timeout == 1.5
        assert config.query_max_messages == 10
        assert config.progress_every == 7

    def test_environment_overrides(self, temp_config_file, clean_env, monkeypatch):
        monkeypatch.setenv("HOSTAGENT_MQTT_BROKER", "env.broker")
        monkeypatch.setenv("HOSTAGENT_MQTT_PORT", "1999")
        monkeypatch.setenv("HOSTAGENT_DEVICE_NAME", "Env Host")

        config = load_config(temp_config_file)

        assert config.broker == "env.broker"
        assert config.port == 1999
        assert config.host == "env_host"

    def test_missing_file_uses_environment(self, tmp_path, clean_env, monkeypatch):
        monkeypatch.setenv("HOSTAGENT_MQTT_BROKER", "env.broker")

        config = load_config(tmp_path / "missing.ini")

        assert config.broker == "env.broker"
        assert config.host == "test_runner"
        assert config.legacy_slot_models == ()
        assert config.orphan_topics == ()

    def test_orphan_templates_keep_commas(self, tmp_path, clean_env):
        config_file = tmp_path / "config.ini"
        config_file.write_text(
            "[mqtt]\nbroker = b\n\n[cleanup]\n"
            "orphan_topics =\n    windows/{host}/a,b\n    windows/{host}/status\n"
            "legacy_slot_models = ST1000DM003, WDC WD10EZEX\n",
            encoding="utf-8",
        )

        config = load_config(config_file)

        assert config.orphan_topics == ("windows/{host}/a,b", "windows/{host}/status")
        assert config.legacy_slot_models == ("ST1000DM003", "WDC WD10EZEX")

    def test_missing_broker_raises(self, tmp_path, clean_env):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.ini")

    def test_corrupt_file_raises(self, tmp_path, clean_env):
        config_file = tmp_path / "config.ini"
        config_file.write_text("this is not [ an ini file", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_invalid_number_raises(self, tmp_path, clean_env):
        config_file = tmp_path / "config.ini"
        config_file.write_text("[mqtt]\nbroker = b\nqos = high\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(config_file)


class TestHelperFunctions:
    """Test suite for interactive helpers."""

    def test_non_interactive_env_var(self, monkeypatch):
        monkeypatch.setenv("HOSTAGENT_NON_INTERACTIVE", "1")
        assert is_interactive_environment() is False

    def test_interactive_follows_tty(self, monkeypatch):
        monkeypatch.delenv("HOSTAGENT_NON_INTERACTIVE", raising=False)
        with patch("hostagent.core.config.sys") as mock_sys:
            mock_sys.stdin.isatty.return_value = True
            assert is_interactive_environment() is True

    @pytest.mark.parametrize(
        "answer, expected", [("y", True), ("YES", True), ("n", False), ("", False)]
    )
    def test_prompt_yes_no(self, answer, expected):
        with patch("builtins.input", return_value=answer):
            assert prompt_yes_no("Continue?") is expected

    def test_prompt_yes_no_retries_invalid_input(self, capsys):
        with patch("builtins.input", side_effect=["maybe", "y"]):
            assert prompt_yes_no("Continue?") is True
        assert "Invalid input" in capsys.readouterr().out
