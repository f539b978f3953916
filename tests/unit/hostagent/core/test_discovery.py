"""Unit tests for discovery document building.

Example Run:
    pytest tests/unit/hostagent/core/test_discovery.py -v
"""

import json

from hostagent.core.discovery import (
    DeviceInfo,
    SensorOptions,
    build_sensor,
    encode_payload,
    host_device,
    json_value_template,
)


class TestBuildSensor:
    """Test suite for build_sensor()."""

    def test_required_fields_only(self):
        doc = build_sensor("CPU Load", "pc1_cpu_load", "windows/pc1/system/cpu_load")

        assert doc.to_dict() == {
            "name": "CPU Load",
            "unique_id": "pc1_cpu_load",
            "state_topic": "windows/pc1/system/cpu_load",
        }

    def test_all_optional_fields(self):
        device = DeviceInfo(identifiers=("pc1",), name="PC1", manufacturer="Host Agent", model="Windows Host")
        doc = build_sensor(
            "Disk C Used",
            "pc1_disk_c_used_percent",
            "windows/pc1/disks",
            SensorOptions(
                object_id="pc1_disk_c_used_percent",
                device_class="data_size",
                state_class="measurement",
                unit_of_measurement="%",
                suggested_display_precision=1,
                device=device,
                json_attributes_topic="windows/pc1/disks",
                value_template=json_value_template("c_used_percent"),
            ),
        )

        config = doc.to_dict()
        assert config["object_id"] == "pc1_disk_c_used_percent"
        assert config["device_class"] == "data_size"
        assert config["state_class"] == "measurement"
        assert config["unit_of_measurement"] == "%"
        assert config["suggested_display_precision"] == 1
        assert config["device"] == {
            "identifiers": ["pc1"],
            "name": "PC1",
            "manufacturer": "Host Agent",
            "model": "Windows Host",
        }
        assert config["json_attributes_topic"] == "windows/pc1/disks"
        assert config["value_template"] == "{{ value_json.c_used_percent }}"

    def test_zero_precision_and_empty_fields_omitted(self):
        doc = build_sensor(
            "Disk C Size",
            "pc1_disk_c_size_bytes",
            "windows/pc1/disks",
            SensorOptions(suggested_display_precision=0, device_class="", unit_of_measurement=None),
        )

        config = doc.to_dict()
        assert "suggested_display_precision" not in config
        assert "device_class" not in config
        assert "unit_of_measurement" not in config
        assert "device" not in config

    def test_to_json_is_compact(self):
        doc = build_sensor("CPU", "pc1_cpu", "windows/pc1/system/cpu_load")
        payload = doc.to_json()

        assert " " not in payload.replace("CPU", "")
        assert json.loads(payload)["unique_id"] == "pc1_cpu"


class TestHelpers:
    """Test suite for helper functions."""

    def test_encode_payload_preserves_order_and_units(self):
        assert encode_payload({"b": 1, "a": "°C"}) == '{"b":1,"a":"°C"}'

    def test_host_device(self):
        device = host_device("desktop_abc", "DESKTOP-ABC")
        assert device.to_dict()["identifiers"] == ["desktop_abc"]
        assert device.to_dict()["name"] == "DESKTOP-ABC"

    def test_device_minimal(self):
        assert DeviceInfo(identifiers=("x",), name="X").to_dict() == {"identifiers": ["x"], "name": "X"}
