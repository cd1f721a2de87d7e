"""Sensor inventory: hwmon devices that expose SFP TX/RX optical power.

A valid device carries ``power1_label`` = ``TX_power``, ``power2_label`` =
``RX_power``, the two matching ``powerN_input`` files, and the 4-byte
device-tree handle of its SFP cage in ``of_node/phandle``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from fiberstat.sysfs import file_exists, file_matches, natural_key, read_exact

logger = logging.getLogger(__name__)

PHANDLE_SIZE = 4

POWER1_INPUT_FILE = "power1_input"
POWER2_INPUT_FILE = "power2_input"
POWER1_LABEL_FILE = "power1_label"
POWER2_LABEL_FILE = "power2_label"
TX_POWER_LABEL = "TX_power"
RX_POWER_LABEL = "RX_power"
PHANDLE_FILE = "of_node/phandle"


class InventoryError(Exception):
    """A sensor or interface inventory could not be built."""


@dataclass(frozen=True)
class CorrelationKey:
    """Fixed-width hardware handle shared by a sensor and its interface."""

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != PHANDLE_SIZE:
            raise ValueError(
                f"correlation key needs {PHANDLE_SIZE} bytes, got {len(self.raw)}"
            )

    def __str__(self) -> str:
        return ":".join(f"{b:02x}" for b in self.raw)


@dataclass(frozen=True)
class SensorDevice:
    key: CorrelationKey
    name: str
    tx_power_path: Path
    rx_power_path: Path


def read_key(path: Path, owner: str) -> CorrelationKey | None:
    """Read a correlation key file, logging why it couldn't be used."""
    data = read_exact(path, PHANDLE_SIZE)
    if data is None:
        logger.debug("'%s' doesn't have %s file", owner, path.name)
        return None
    if len(data) < PHANDLE_SIZE:
        logger.warning("couldn't read '%s' %s file", owner, path.name)
        return None
    return CorrelationKey(data)


def _power_input_paths(hwmon_dir: Path) -> tuple[Path, Path] | None:
    name = hwmon_dir.name
    if not file_matches(hwmon_dir / POWER1_LABEL_FILE, TX_POWER_LABEL):
        logger.debug("hwmon '%s' doesn't have expected tx power label file", name)
        return None
    if not file_matches(hwmon_dir / POWER2_LABEL_FILE, RX_POWER_LABEL):
        logger.debug("hwmon '%s' doesn't have expected rx power label file", name)
        return None

    tx_path = hwmon_dir / POWER1_INPUT_FILE
    if not file_exists(tx_path):
        logger.debug("hwmon '%s' doesn't have tx power input file", name)
        return None
    rx_path = hwmon_dir / POWER2_INPUT_FILE
    if not file_exists(rx_path):
        logger.debug("hwmon '%s' doesn't have rx power input file", name)
        return None
    return tx_path, rx_path


def load_sensor(hwmon_dir: Path) -> SensorDevice | None:
    """Validate one hwmon candidate. Returns None if it isn't an SFP sensor."""
    paths = _power_input_paths(hwmon_dir)
    if paths is None:
        return None
    key = read_key(hwmon_dir / PHANDLE_FILE, f"hwmon {hwmon_dir.name}")
    if key is None:
        return None
    return SensorDevice(
        key=key,
        name=hwmon_dir.name,
        tx_power_path=paths[0],
        rx_power_path=paths[1],
    )


def discover_sensors(root: Path) -> dict[CorrelationKey, SensorDevice]:
    """Build the sensor inventory from the hwmon class directory at *root*.

    Entries are visited in natural name order. When two devices report the
    same key, the first one visited is kept and the later one is skipped.

    Raises:
        InventoryError: If *root* can't be listed.
    """
    try:
        entries = sorted(os.listdir(root), key=natural_key)
    except OSError as e:
        raise InventoryError(f"couldn't open hwmon directory {root}: {e}") from e

    sensors: dict[CorrelationKey, SensorDevice] = {}
    for entry in entries:
        sensor = load_sensor(root / entry)
        if sensor is None:
            continue
        existing = sensors.get(sensor.key)
        if existing is not None:
            logger.warning(
                "hwmon '%s' shares sfp handle %s with '%s': skipped",
                sensor.name, sensor.key, existing.name,
            )
            continue
        sensors[sensor.key] = sensor
        logger.info(
            "hwmon '%s' is a valid monitor with sfp handle %s", sensor.name, sensor.key
        )

    if sensors:
        logger.info("hwmon entries found: %u", len(sensors))
    else:
        logger.error("no hwmon entries found")
    return sensors
