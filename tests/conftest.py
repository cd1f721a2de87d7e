"""Shared fixtures: a fake sysfs tree and a recording curses window."""

from __future__ import annotations

import curses
from pathlib import Path

import pytest


class FakeSysfs:
    """Builds hwmon and net class directories under a temporary root."""

    def __init__(self, root: Path) -> None:
        self.prefix = root
        self.hwmon_root = root / "sys" / "class" / "hwmon"
        self.net_root = root / "sys" / "class" / "net"
        self.hwmon_root.mkdir(parents=True)
        self.net_root.mkdir(parents=True)

    def add_hwmon(
        self,
        name: str,
        phandle: bytes | None = b"\xaa\xbb\xcc\xdd",
        tx: str | None = "1000\n",
        rx: str | None = "500\n",
        tx_label: str | None = "TX_power\n",
        rx_label: str | None = "RX_power\n",
    ) -> Path:
        d = self.hwmon_root / name
        d.mkdir()
        for filename, content in (
            ("power1_label", tx_label),
            ("power2_label", rx_label),
            ("power1_input", tx),
            ("power2_input", rx),
        ):
            if content is not None:
                (d / filename).write_text(content)
        if phandle is not None:
            (d / "of_node").mkdir()
            (d / "of_node" / "phandle").write_bytes(phandle)
        return d

    def add_iface(
        self,
        name: str,
        sfp: bytes | None = b"\xaa\xbb\xcc\xdd",
        operstate: str | None = "up\n",
    ) -> Path:
        d = self.net_root / name
        d.mkdir()
        if sfp is not None:
            (d / "of_node").mkdir()
            (d / "of_node" / "sfp").write_bytes(sfp)
        if operstate is not None:
            (d / "operstate").write_text(operstate)
        return d


class FakeWindow:
    """Minimal stand-in for a curses window that records every cell."""

    def __init__(self, height: int = 60, width: int = 200) -> None:
        self.height = height
        self.width = width
        self.cells: dict[tuple[int, int], tuple[str, int]] = {}
        self.refreshed = 0

    def getmaxyx(self) -> tuple[int, int]:
        return self.height, self.width

    def addstr(self, y: int, x: int, text: str, attr: int = 0) -> None:
        if not (0 <= y < self.height and 0 <= x < self.width):
            raise curses.error("addstr() returned ERR")
        for i, ch in enumerate(text):
            if x + i >= self.width:
                raise curses.error("addstr() returned ERR")
            self.cells[(y, x + i)] = (ch, attr)

    def erase(self) -> None:
        self.cells.clear()

    def refresh(self) -> None:
        self.refreshed += 1

    def row(self, y: int) -> str:
        return "".join(
            self.cells.get((y, x), (" ", 0))[0] for x in range(self.width)
        ).rstrip()

    def text(self) -> str:
        return "\n".join(self.row(y) for y in range(self.height))


@pytest.fixture
def sysfs(tmp_path: Path) -> FakeSysfs:
    return FakeSysfs(tmp_path)


@pytest.fixture
def window() -> FakeWindow:
    return FakeWindow()


@pytest.fixture
def make_window():
    return FakeWindow
