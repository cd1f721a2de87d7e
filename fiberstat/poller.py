"""Per-tick re-read of optical power and link state, with change detection."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import BinaryIO

from fiberstat.interfaces import POWER_UNKNOWN, NetworkInterface

logger = logging.getLogger(__name__)

READ_SIZE = 255
# dBm; smaller deltas are ADC jitter
POWER_EPSILON = 0.001
# uW; log10 is undefined at 0 and the kernel reports 0 with no module
MIN_POWER_UW = 0.1


def _read(f: BinaryIO) -> bytes:
    f.seek(0)
    return f.read(READ_SIZE) or b""


def decode_power(raw: bytes) -> float:
    """Convert a raw hwmon reading in uW to dBm."""
    try:
        value = float(raw.decode("ascii", errors="replace").strip())
    except ValueError:
        return POWER_UNKNOWN
    if not math.isfinite(value) or value < MIN_POWER_UW:
        return POWER_UNKNOWN
    return 10 * math.log10(value / 1000.0)


def read_power(f: BinaryIO, iface: str) -> float:
    try:
        raw = _read(f)
    except OSError as e:
        logger.debug("couldn't read power for '%s': %s", iface, e)
        return POWER_UNKNOWN
    return decode_power(raw)


def read_state(f: BinaryIO, iface: str) -> str | None:
    """Read an operstate file. None if nothing could be read."""
    try:
        raw = _read(f)
    except OSError as e:
        logger.debug("couldn't read operational state for '%s': %s", iface, e)
        return None
    if not raw:
        return None
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def power_changed(new: float, cached: float) -> bool:
    return abs(new - cached) >= POWER_EPSILON


def _update_iface(iface: NetworkInterface) -> int:
    updates = 0

    if iface.tx_file is not None:
        power = read_power(iface.tx_file, iface.name)
        if power_changed(power, iface.tx_power):
            iface.tx_power = power
            logger.debug("'%s' interface TX power updated: %.2f", iface.name, power)
            updates += 1

    if iface.rx_file is not None:
        power = read_power(iface.rx_file, iface.name)
        if power_changed(power, iface.rx_power):
            iface.rx_power = power
            logger.debug("'%s' interface RX power updated: %.2f", iface.name, power)
            updates += 1

    if iface.state_file is not None:
        state = read_state(iface.state_file, iface.name)
        if state is not None and state != iface.link_state:
            iface.link_state = state
            logger.debug(
                "'%s' interface operational state updated: %s", iface.name, state
            )
            updates += 1

    return updates


def poll_tick(interfaces: Iterable[NetworkInterface]) -> bool:
    """Refresh every interface's cached readings.

    All changes are applied. Returns True if anything changed, meaning the
    content area needs one redraw.
    """
    updates = sum(_update_iface(iface) for iface in interfaces)
    if updates:
        logger.debug("need to refresh contents: %u values updated", updates)
    return updates > 0
