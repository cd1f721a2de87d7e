"""Interface inventory and sensor correlation.

Each network interface with an SFP cage exposes the cage's device-tree handle
in ``of_node/sfp``; the hwmon device with the same handle reports its optical
power. Interfaces without a matching sensor are not tracked.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import psutil

from fiberstat.sensors import CorrelationKey, InventoryError, SensorDevice, read_key
from fiberstat.sysfs import natural_key

logger = logging.getLogger(__name__)

NET_PHANDLE_FILE = "of_node/sfp"
NET_OPERSTATE_FILE = "operstate"

# dBm; below any value the gauges can show
POWER_UNKNOWN = -40.0


class MissingInterfacesError(InventoryError):
    """Interfaces explicitly requested on the command line weren't tracked."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            "explicit interface requested doesn't exist: " + ", ".join(missing)
        )


@dataclass
class NetworkInterface:
    """One tracked interface with its open sysfs handles and cached readings."""

    name: str
    sensor: SensorDevice | None = None
    tx_file: BinaryIO | None = None
    rx_file: BinaryIO | None = None
    state_file: BinaryIO | None = None
    tx_power: float = POWER_UNKNOWN
    rx_power: float = POWER_UNKNOWN
    link_state: str = ""

    def close(self) -> None:
        for f in (self.tx_file, self.rx_file, self.state_file):
            if f is not None:
                f.close()
        self.tx_file = self.rx_file = self.state_file = None


def _open_for_polling(path: Path, what: str, iface: str) -> BinaryIO | None:
    try:
        return open(path, "rb", buffering=0)
    except OSError:
        logger.warning("couldn't open %s file for interface '%s' at %s", what, iface, path)
        return None


def _track(
    name: str, net_root: Path, sensor: SensorDevice | None
) -> NetworkInterface:
    logger.info("tracking interface '%s'...", name)
    iface = NetworkInterface(name=name, sensor=sensor)
    if sensor is not None:
        iface.tx_file = _open_for_polling(sensor.tx_power_path, "TX power", name)
        iface.rx_file = _open_for_polling(sensor.rx_power_path, "RX power", name)
    iface.state_file = _open_for_polling(
        net_root / name / NET_OPERSTATE_FILE, "operstate", name
    )
    return iface


def correlate(
    name: str, net_root: Path, sensors: dict[CorrelationKey, SensorDevice]
) -> SensorDevice | None:
    """Find the sensor whose handle matches the interface's ``of_node/sfp``."""
    key = read_key(net_root / name / NET_PHANDLE_FILE, f"iface {name}")
    if key is None:
        return None
    sensor = sensors.get(key)
    if sensor is None:
        logger.warning("couldn't match hwmon entry for net iface '%s'", name)
    return sensor


def _candidate_names(net_root: Path, correlated: bool) -> list[str]:
    if not correlated:
        # Reduced mode: the kernel's interface list, no sysfs walk
        return list(psutil.net_if_stats())
    try:
        return os.listdir(net_root)
    except OSError as e:
        raise InventoryError(f"couldn't open net directory {net_root}: {e}") from e


def discover_interfaces(
    sensors: dict[CorrelationKey, SensorDevice],
    allow_list: Iterable[str],
    net_root: Path,
    correlated: bool = True,
) -> list[NetworkInterface]:
    """Build the list of interfaces to monitor, sorted by natural name order.

    With *correlated* unset, every interface is tracked without a sensor and
    its power readings stay unknown.

    Raises:
        InventoryError: If the interface list can't be read.
        MissingInterfacesError: If *allow_list* names interfaces that ended up
            untracked. Handles opened so far are closed first.
    """
    wanted = list(dict.fromkeys(allow_list))
    interfaces: list[NetworkInterface] = []

    for name in _candidate_names(net_root, correlated):
        if wanted and name not in wanted:
            continue
        sensor = None
        if correlated:
            sensor = correlate(name, net_root, sensors)
            if sensor is None:
                continue
        interfaces.append(_track(name, net_root, sensor))

    interfaces.sort(key=lambda iface: natural_key(iface.name))

    if wanted and len(interfaces) != len(wanted):
        tracked = {iface.name for iface in interfaces}
        missing = [name for name in wanted if name not in tracked]
        for name in missing:
            logger.error("explicit interface requested doesn't exist: %s", name)
        close_interfaces(interfaces)
        raise MissingInterfacesError(missing)

    logger.debug("detected %u interfaces", len(interfaces))
    return interfaces


def close_interfaces(interfaces: Iterable[NetworkInterface]) -> None:
    for iface in interfaces:
        iface.close()
