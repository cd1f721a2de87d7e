"""Small helpers for reading sysfs attribute files."""

from __future__ import annotations

import re
from pathlib import Path

HWMON_DIR = "sys/class/hwmon"
NET_DIR = "sys/class/net"

_DIGITS = re.compile(r"(\d+)")


def sysfs_root(prefix: str, subdir: str) -> Path:
    """Join a sysfs subdirectory onto an optional test prefix."""
    return Path(prefix or "/") / subdir


def natural_key(name: str) -> list[int | str]:
    """Sort key that orders embedded numbers numerically: eth2 < eth10."""
    return [int(part) if part.isdigit() else part for part in _DIGITS.split(name)]


def read_exact(path: Path, size: int) -> bytes | None:
    """Read *size* bytes from *path*.

    Returns None if the file can't be opened. A short read returns what was
    read, so callers can tell a missing file from a truncated one.
    """
    try:
        with open(path, "rb") as f:
            return f.read(size)
    except OSError:
        return None


def file_matches(path: Path, contents: str) -> bool:
    """True if *path* holds exactly *contents*, ignoring one trailing newline."""
    try:
        with open(path, "rb") as f:
            data = f.read(len(contents) + 2)
    except OSError:
        return False
    if data.endswith(b"\n"):
        data = data[:-1]
    return data == contents.encode()


def file_exists(path: Path) -> bool:
    """True if *path* can be opened for reading."""
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False
