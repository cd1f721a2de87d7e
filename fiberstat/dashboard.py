"""Interactive terminal dashboard: fiberstat's optical power monitor.

Shows one panel per SFP-equipped interface with TX/RX power gauges and the
link state, refreshed every timeout and on terminal resize. Left/right arrows
scroll when not every interface fits.

Usage:
    uv run fiberstat
    uv run fiberstat -i eth0 -i eth1 --timeout 500 --debug
"""

from __future__ import annotations

import argparse
import curses
import locale
import logging
import os
import signal
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from fiberstat.config import TIMEOUT_MAX_MS, dump_default_config, load_config
from fiberstat.interfaces import NetworkInterface, close_interfaces, discover_interfaces
from fiberstat.layout import LayoutGrid, compute_layout, scroll_left, scroll_right
from fiberstat.log import setup_logging, teardown_logging
from fiberstat.poller import poll_tick
from fiberstat.render import (
    ASCII_GLYPHS,
    C_MAIN,
    C_SHORTCUT,
    C_TITLE,
    UTF8_GLYPHS,
    GlyphSet,
    PowerScale,
    RenderConfig,
    RenderConfigError,
    band_palette,
    build_render_config,
    centered,
    init_colors,
    render_panel,
    safe_addstr,
)
from fiberstat.sensors import CorrelationKey, InventoryError, SensorDevice, discover_sensors
from fiberstat.sysfs import HWMON_DIR, NET_DIR, sysfs_root

logger = logging.getLogger("fiberstat.dashboard")

PROGRAM_NAME = "fiberstat"
__version__ = "0.1.0"

# Exit codes per failing setup stage (argparse errors exit with 2)
EXIT_CONFIG = 1
EXIT_SENSORS = 3
EXIT_INTERFACES = 4
EXIT_TERMINAL = 5

QUIT_KEYS = (ord("q"), ord("Q"))


# ── Application state ──────────────────────────────────────────────────────


@dataclass
class AppState:
    """Everything the main loop owns, from inventories to dirty flags."""

    sensors: dict[CorrelationKey, SensorDevice]
    interfaces: list[NetworkInterface]
    render: RenderConfig
    offset: int = 0
    grid: LayoutGrid | None = None
    # Written by signal handlers; read once per loop iteration
    stop: bool = False
    resize_pending: bool = True
    title_dirty: bool = False
    content_dirty: bool = False
    header_win: Any = field(default=None, repr=False)
    content_win: Any = field(default=None, repr=False)


def install_signal_handlers(state: AppState) -> dict[int, Any]:
    """Route SIGTERM/SIGWINCH to flag writes. Returns the previous handlers."""

    def request_terminate(signum: int, frame: object) -> None:
        state.stop = True

    def request_resize(signum: int, frame: object) -> None:
        state.resize_pending = True

    previous = {
        signal.SIGTERM: signal.signal(signal.SIGTERM, request_terminate),
        signal.SIGWINCH: signal.signal(signal.SIGWINCH, request_resize),
    }
    return previous


def restore_signal_handlers(previous: dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


# ── Charset ────────────────────────────────────────────────────────────────


def select_glyphs(charset: str) -> GlyphSet:
    """Pick box glyphs: UTF-8 blocks when the locale allows them."""
    if charset == "utf8":
        return UTF8_GLYPHS
    if charset == "ascii":
        return ASCII_GLYPHS
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        logger.warning("couldn't apply the environment's locale")
    codeset = locale.nl_langinfo(locale.CODESET)
    logger.debug("locale codeset: %s", codeset)
    if codeset.replace("-", "").lower() == "utf8":
        return UTF8_GLYPHS
    return ASCII_GLYPHS


def render_config_from(config: dict[str, Any], glyphs: GlyphSet) -> RenderConfig:
    power = config["power"]
    gauges = config["gauges"]
    scale = PowerScale(
        max=float(power["max"]),
        good=float(power["good"]),
        bad=float(power["bad"]),
        min=float(power["min"]),
    )
    # Palette needs curses; filled in once the terminal is up
    return build_render_config(
        scale,
        glyphs,
        palette={},
        tx_thresholds=gauges["tx_thresholds"],
        rx_thresholds=gauges["rx_thresholds"],
    )


# ── Screen regions ─────────────────────────────────────────────────────────


def _sync_terminal_size() -> None:
    try:
        size = os.get_terminal_size(sys.__stdout__.fileno())
    except (OSError, AttributeError, ValueError):
        return
    if curses.is_term_resized(size.lines, size.columns):
        curses.resizeterm(size.lines, size.columns)


def setup_windows(stdscr: curses.window, state: AppState) -> None:
    """(Re)create the header and content windows for the current size."""
    curses.endwin()
    _sync_terminal_size()
    stdscr.refresh()
    max_y, max_x = stdscr.getmaxyx()
    logger.debug("terminal size: %ux%u", max_x, max_y)

    attr = curses.color_pair(C_MAIN)
    state.header_win = curses.newwin(1, max_x, 0, 0)
    state.header_win.bkgd(" ", attr)
    state.content_win = curses.newwin(max(1, max_y - 1), max_x, min(1, max_y - 1), 0)
    state.content_win.bkgd(" ", attr)

    state.title_dirty = True
    state.content_dirty = True


def refresh_title(state: AppState) -> None:
    win = state.header_win
    win.erase()
    _, max_x = win.getmaxyx()

    title = f"{PROGRAM_NAME} {__version__}"
    attr = curses.color_pair(C_TITLE) | curses.A_BOLD | curses.A_UNDERLINE
    safe_addstr(win, 0, centered(0, max_x, title), title, attr)
    hint = "q: quit"
    if max_x > len(title) + 2 * (len(hint) + 2):
        safe_addstr(win, 0, max_x - len(hint) - 1, hint, curses.color_pair(C_SHORTCUT))

    win.refresh()


def refresh_contents(state: AppState) -> None:
    win = state.content_win
    win.erase()
    max_y, max_x = win.getmaxyx()

    grid = compute_layout(max_x, max_y, len(state.interfaces), state.offset)
    state.grid = grid

    if not state.interfaces:
        msg = "no interfaces to monitor"
        safe_addstr(win, max_y // 2, centered(0, max_x, msg), msg)

    arrow_y, left_x, right_x = grid.arrow_positions(max_x)
    if grid.more_before:
        safe_addstr(win, arrow_y, left_x, "<", curses.A_BOLD)
    if grid.more_after:
        safe_addstr(win, arrow_y, right_x, ">", curses.A_BOLD)

    for index, x, y in grid.positions():
        iface = state.interfaces[index]
        render_panel(
            win, x, y, iface.tx_power, iface.rx_power, iface.name, iface.link_state,
            state.render,
        )

    win.refresh()


# ── Input ──────────────────────────────────────────────────────────────────


def handle_key(state: AppState, key: int) -> None:
    if key in QUIT_KEYS:
        state.stop = True
    elif key == curses.KEY_RESIZE:
        state.resize_pending = True
    elif key in (curses.KEY_LEFT, curses.KEY_RIGHT) and state.grid is not None:
        shift = scroll_left if key == curses.KEY_LEFT else scroll_right
        offset = shift(state.grid)
        if offset != state.offset:
            state.offset = offset
            state.content_dirty = True
            logger.debug("scroll, first interface index %u", offset)


# ── Main loop ──────────────────────────────────────────────────────────────


def _dashboard_loop(stdscr: curses.window, state: AppState, timeout_ms: int) -> None:
    init_colors()
    state.render = replace(state.render, palette=band_palette(state.render.resolution))
    curses.curs_set(0)
    stdscr.keypad(True)
    stdscr.timeout(timeout_ms)

    while not state.stop:
        if poll_tick(state.interfaces):
            state.content_dirty = True

        if state.resize_pending:
            state.resize_pending = False
            setup_windows(stdscr, state)

        if state.title_dirty:
            state.title_dirty = False
            refresh_title(state)

        if state.content_dirty:
            state.content_dirty = False
            refresh_contents(state)

        # Bounded wait: returns -1 on timeout or when a signal interrupts it
        handle_key(state, stdscr.getch())


def _fatal(message: str, error: Exception) -> None:
    logger.error("%s: %s", message, error)
    print(f"{PROGRAM_NAME}: error: {message}: {error}", file=sys.stderr)


def run(config: dict[str, Any], allow_list: list[str], timeout_ms: int) -> int:
    """Build inventories, run the dashboard and tear everything down.

    Returns the process exit status.
    """
    prefix = config["sysfs_prefix"]

    try:
        sensors = discover_sensors(sysfs_root(prefix, HWMON_DIR))
    except InventoryError as e:
        _fatal("couldn't setup hwmon list", e)
        return EXIT_SENSORS

    try:
        interfaces = discover_interfaces(
            sensors,
            allow_list,
            sysfs_root(prefix, NET_DIR),
            correlated=config["correlation"] == "phandle",
        )
    except InventoryError as e:
        sensors.clear()
        _fatal("couldn't setup interfaces", e)
        return EXIT_INTERFACES

    status = 0
    previous_handlers: dict[int, Any] = {}
    try:
        render = render_config_from(config, select_glyphs(config["charset"]))
        state = AppState(sensors=sensors, interfaces=interfaces, render=render)
        previous_handlers = install_signal_handlers(state)
        curses.wrapper(_dashboard_loop, state, timeout_ms)
    except RenderConfigError as e:
        _fatal("invalid power levels", e)
        status = EXIT_CONFIG
    except curses.error as e:
        _fatal("couldn't setup curses", e)
        status = EXIT_TERMINAL
    except KeyboardInterrupt:
        pass
    finally:
        restore_signal_handlers(previous_handlers)
        close_interfaces(interfaces)
        sensors.clear()
    return status


# ── CLI entry point ────────────────────────────────────────────────────────


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        number = 0
    if not 0 < number <= TIMEOUT_MAX_MS:
        raise argparse.ArgumentTypeError(f"invalid timeout: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="Live TX/RX optical power of SFP network interfaces.",
        epilog="-i/--iface may be given multiple times to monitor more than "
        "one explicit interface.",
    )
    parser.add_argument(
        "-i",
        "--iface",
        action="append",
        default=[],
        metavar="IFACE",
        help="Monitor the specific interface",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=_positive_int,
        default=None,
        metavar="MS",
        help="How often to reload values, in ms (default: 1000)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Verbose output in the log file (default: /tmp/fiberstat.log)",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default configuration as TOML and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.dump_config:
        print(dump_default_config(), end="")
        return

    config = load_config(args.config)
    timeout_ms = args.timeout if args.timeout is not None else config["timeout_ms"]

    setup_logging(args.debug, config["log_file"])
    logger.info("-----------------------------------------------------------")
    logger.info("starting program %s (v%s)...", PROGRAM_NAME, __version__)
    try:
        status = run(config, args.iface, timeout_ms)
    finally:
        teardown_logging()
    if status:
        raise SystemExit(status)


if __name__ == "__main__":
    main()
