"""Tests for fiberstat.sensors."""

from __future__ import annotations

import logging

import pytest

from fiberstat.sensors import (
    CorrelationKey,
    InventoryError,
    discover_sensors,
    load_sensor,
)

KEY = b"\xaa\xbb\xcc\xdd"


# ── CorrelationKey ─────────────────────────────────────────────────────────


class TestCorrelationKey:
    def test_bytewise_equality(self) -> None:
        assert CorrelationKey(KEY) == CorrelationKey(bytes(KEY))
        assert CorrelationKey(KEY) != CorrelationKey(b"\xaa\xbb\xcc\xde")

    def test_hashable(self) -> None:
        lookup = {CorrelationKey(KEY): "hwmon0"}
        assert lookup[CorrelationKey(b"\xaa\xbb\xcc\xdd")] == "hwmon0"

    def test_str(self) -> None:
        assert str(CorrelationKey(KEY)) == "aa:bb:cc:dd"

    @pytest.mark.parametrize("raw", [b"", b"\x01\x02\x03", b"\x01\x02\x03\x04\x05"])
    def test_wrong_size_rejected(self, raw: bytes) -> None:
        with pytest.raises(ValueError):
            CorrelationKey(raw)


# ── load_sensor ────────────────────────────────────────────────────────────


class TestLoadSensor:
    def test_valid_device(self, sysfs) -> None:
        d = sysfs.add_hwmon("hwmon0")
        sensor = load_sensor(d)
        assert sensor is not None
        assert sensor.name == "hwmon0"
        assert sensor.key == CorrelationKey(KEY)
        assert sensor.tx_power_path == d / "power1_input"
        assert sensor.rx_power_path == d / "power2_input"

    def test_labels_without_newline_accepted(self, sysfs) -> None:
        d = sysfs.add_hwmon("hwmon0", tx_label="TX_power", rx_label="RX_power")
        assert load_sensor(d) is not None

    @pytest.mark.parametrize(
        ("tx_label", "rx_label"),
        [
            ("RX_power\n", "TX_power\n"),
            ("TX_power_extra\n", "RX_power\n"),
            ("TX_pow", "RX_power\n"),
            ("temp1\n", "RX_power\n"),
            (None, "RX_power\n"),
            ("TX_power\n", None),
        ],
    )
    def test_wrong_labels_rejected(self, sysfs, tx_label, rx_label) -> None:
        d = sysfs.add_hwmon("hwmon0", tx_label=tx_label, rx_label=rx_label)
        assert load_sensor(d) is None

    def test_missing_tx_input(self, sysfs) -> None:
        d = sysfs.add_hwmon("hwmon0", tx=None)
        assert load_sensor(d) is None

    def test_missing_rx_input(self, sysfs) -> None:
        d = sysfs.add_hwmon("hwmon0", rx=None)
        assert load_sensor(d) is None

    def test_empty_input_still_valid(self, sysfs) -> None:
        # Existence is enough at discovery time
        d = sysfs.add_hwmon("hwmon0", tx="", rx="")
        assert load_sensor(d) is not None

    def test_missing_phandle(self, sysfs) -> None:
        d = sysfs.add_hwmon("hwmon0", phandle=None)
        assert load_sensor(d) is None

    def test_short_phandle(self, sysfs, caplog: pytest.LogCaptureFixture) -> None:
        d = sysfs.add_hwmon("hwmon0", phandle=b"\xaa\xbb")
        with caplog.at_level(logging.WARNING, logger="fiberstat"):
            assert load_sensor(d) is None
        assert "hwmon0" in caplog.text


# ── discover_sensors ───────────────────────────────────────────────────────


class TestDiscoverSensors:
    def test_collects_valid_devices(self, sysfs) -> None:
        sysfs.add_hwmon("hwmon0", phandle=b"\x00\x00\x00\x01")
        sysfs.add_hwmon("hwmon1", phandle=b"\x00\x00\x00\x02")
        sysfs.add_hwmon("hwmon2", tx_label="temp\n")
        sensors = discover_sensors(sysfs.hwmon_root)
        assert {s.name for s in sensors.values()} == {"hwmon0", "hwmon1"}
        assert sensors[CorrelationKey(b"\x00\x00\x00\x02")].name == "hwmon1"

    def test_empty_directory_is_not_fatal(self, sysfs, caplog) -> None:
        with caplog.at_level(logging.ERROR, logger="fiberstat"):
            assert discover_sensors(sysfs.hwmon_root) == {}
        assert "no hwmon entries found" in caplog.text

    def test_missing_root_is_fatal(self, tmp_path) -> None:
        with pytest.raises(InventoryError):
            discover_sensors(tmp_path / "nope")

    def test_duplicate_key_first_wins(self, sysfs, caplog) -> None:
        # Natural order visits hwmon2 before hwmon10
        sysfs.add_hwmon("hwmon10")
        sysfs.add_hwmon("hwmon2")
        with caplog.at_level(logging.WARNING, logger="fiberstat"):
            sensors = discover_sensors(sysfs.hwmon_root)
        assert len(sensors) == 1
        assert sensors[CorrelationKey(KEY)].name == "hwmon2"
        assert "hwmon10" in caplog.text

    def test_keys_unique(self, sysfs) -> None:
        for i in range(6):
            sysfs.add_hwmon(f"hwmon{i}", phandle=bytes([0, 0, 0, i % 3]))
        sensors = discover_sensors(sysfs.hwmon_root)
        assert len(sensors) == 3
        assert len({s.name for s in sensors.values()}) == 3
