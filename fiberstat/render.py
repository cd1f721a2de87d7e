"""Gauge rendering for one interface panel.

One panel shows the TX and RX gauges side by side, then the interface name
and link state::

    ┌────┐ ┌────┐
    │    │ │    │
    │    │ │    │      box:        17 rows (15 content, 2 border)
    │    │ │████│      box info:    2 rows
    │    │ │████│      iface info:  2 rows
    │▄▄▄▄│ │████│
    │████│ │████│      width: 6 + 1 + 6 columns
    └────┘ └────┘
    -20.00 -3.01
    TX dBm RX dBm
         eth0
      link up

The 21-row panel plus the title line fits a 23-row serial console.
"""

from __future__ import annotations

import curses
import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# ── Geometry ───────────────────────────────────────────────────────────────

BOX_CONTENT_WIDTH = 4
BOX_BORDER_WIDTH = 2
BOX_WIDTH = BOX_CONTENT_WIDTH + BOX_BORDER_WIDTH
BOX_CONTENT_HEIGHT = 15
BOX_BORDER_HEIGHT = 2
BOX_INFO_HEIGHT = 2
BOX_HEIGHT = BOX_CONTENT_HEIGHT + BOX_BORDER_HEIGHT + BOX_INFO_HEIGHT
BOX_SEPARATION = 1
IFACE_INFO_HEIGHT = 2

PANEL_WIDTH = BOX_WIDTH + BOX_SEPARATION + BOX_WIDTH
PANEL_HEIGHT = BOX_HEIGHT + IFACE_INFO_HEIGHT

# ── Colours ────────────────────────────────────────────────────────────────

# Curses colour-pair IDs
C_MAIN = 1
C_TITLE = 2
C_SHORTCUT = 3
C_BG_GREEN = 4
C_BG_YELLOW = 5
C_BG_RED = 6
C_BG_WHITE = 7
C_TEXT_GREEN = 8
C_TEXT_YELLOW = 9
C_TEXT_RED = 10
C_TEXT_WHITE = 11

BAND_GREEN = "green"
BAND_YELLOW = "yellow"
BAND_RED = "red"
BAND_WHITE = "white"

# Display names for states too wide for a panel
SHORT_STATES = {"lowerlayerdown": "lowerdown"}


def init_colors() -> None:
    curses.start_color()
    curses.init_pair(C_MAIN, curses.COLOR_WHITE, curses.COLOR_BLACK)
    curses.init_pair(C_TITLE, curses.COLOR_GREEN, curses.COLOR_BLACK)
    curses.init_pair(C_SHORTCUT, curses.COLOR_CYAN, curses.COLOR_BLACK)
    curses.init_pair(C_BG_GREEN, curses.COLOR_BLACK, curses.COLOR_GREEN)
    curses.init_pair(C_BG_YELLOW, curses.COLOR_BLACK, curses.COLOR_YELLOW)
    curses.init_pair(C_BG_RED, curses.COLOR_BLACK, curses.COLOR_RED)
    curses.init_pair(C_BG_WHITE, curses.COLOR_BLACK, curses.COLOR_WHITE)
    curses.init_pair(C_TEXT_GREEN, curses.COLOR_GREEN, curses.COLOR_BLACK)
    curses.init_pair(C_TEXT_YELLOW, curses.COLOR_YELLOW, curses.COLOR_BLACK)
    curses.init_pair(C_TEXT_RED, curses.COLOR_RED, curses.COLOR_BLACK)
    curses.init_pair(C_TEXT_WHITE, curses.COLOR_WHITE, curses.COLOR_BLACK)


def band_palette(resolution: int) -> dict[str, int]:
    """Attributes for each colour band. Needs colours initialised.

    Whole-cell fills are blank cells on a coloured background; partial fills
    are block glyphs in a coloured foreground.
    """
    if resolution == 1:
        pairs = (C_BG_GREEN, C_BG_YELLOW, C_BG_RED, C_BG_WHITE)
    else:
        pairs = (C_TEXT_GREEN, C_TEXT_YELLOW, C_TEXT_RED, C_TEXT_WHITE)
    bands = (BAND_GREEN, BAND_YELLOW, BAND_RED, BAND_WHITE)
    return {band: curses.color_pair(pair) for band, pair in zip(bands, pairs)}


# ── Glyph sets ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GlyphSet:
    vertical: str
    horizontal: str
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    resolution: int
    # blocks[n - 1] fills n of `resolution` levels of one cell
    blocks: tuple[str, ...]


ASCII_GLYPHS = GlyphSet(
    vertical="|",
    horizontal="-",
    top_left="-",
    top_right="-",
    bottom_left="-",
    bottom_right="-",
    resolution=1,
    blocks=(" ",),
)

UTF8_GLYPHS = GlyphSet(
    vertical="│",
    horizontal="─",
    top_left="┌",
    top_right="┐",
    bottom_left="└",
    bottom_right="┘",
    resolution=8,
    blocks=("▁", "▂", "▃", "▄", "▅", "▆", "▇", "█"),
)


# ── Scale ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PowerScale:
    """Gauge levels in dBm."""

    max: float = 0.0
    good: float = -18.4
    bad: float = -21.7
    min: float = -25.0


def power_to_percentage(power: float, scale: PowerScale) -> float:
    if power >= scale.max:
        return 100.0
    if power <= scale.min:
        return 0.0
    return 100.0 * (power - scale.min) / (scale.max - scale.min)


def fill_height(pct: float, content_height: int, resolution: int) -> int:
    """Number of filled levels, in 1/resolution row units, rounded half up."""
    return math.floor(pct * content_height * resolution / 100.0 + 0.5)


# ── Render configuration ───────────────────────────────────────────────────


class RenderConfigError(ValueError):
    """Configured levels don't land on whole gauge rows."""


@dataclass(frozen=True)
class RenderConfig:
    scale: PowerScale
    glyphs: GlyphSet
    palette: dict[str, int]
    max_rows: int
    good_rows: int
    bad_rows: int
    tx_thresholds: bool = True
    rx_thresholds: bool = True
    content_width: int = BOX_CONTENT_WIDTH
    content_height: int = BOX_CONTENT_HEIGHT

    @property
    def resolution(self) -> int:
        return self.glyphs.resolution


def _threshold_rows(
    label: str, power: float, scale: PowerScale, resolution: int
) -> int:
    pct = power_to_percentage(power, scale)
    height = fill_height(pct, BOX_CONTENT_HEIGHT, resolution)
    rows, partial = divmod(height, resolution)
    logger.debug(
        "%s level fill percent: %.1f, fill height: %u (res: %u, N %u, partial %u), "
        "power: %.2f dBm",
        label, pct, height, resolution, rows, partial, power,
    )
    if partial:
        raise RenderConfigError(
            f"{label} level {power} dBm doesn't fall on a gauge row boundary "
            f"({height} of {BOX_CONTENT_HEIGHT * resolution} levels)"
        )
    return rows


def build_render_config(
    scale: PowerScale,
    glyphs: GlyphSet,
    palette: dict[str, int],
    tx_thresholds: bool = True,
    rx_thresholds: bool = True,
) -> RenderConfig:
    """Precompute the threshold rows for *scale* at the glyph set's resolution.

    Raises:
        RenderConfigError: If a level would need a partial row.
    """
    res = glyphs.resolution
    return RenderConfig(
        scale=scale,
        glyphs=glyphs,
        palette=palette,
        max_rows=_threshold_rows("max", scale.max, scale, res),
        good_rows=_threshold_rows("good", scale.good, scale, res),
        bad_rows=_threshold_rows("bad", scale.bad, scale, res),
        tx_thresholds=tx_thresholds,
        rx_thresholds=rx_thresholds,
    )


# ── Drawing ────────────────────────────────────────────────────────────────


def safe_addstr(win: curses.window, *args: object) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)  # type: ignore[arg-type]
    except curses.error:
        pass


def centered(x: int, width: int, text: str) -> int:
    """Column at which *text* is centred over a *width*-wide span at *x*."""
    return max(0, x + width // 2 - len(text) // 2)


def band_for_row(row: int, config: RenderConfig, thresholds: bool) -> str:
    """Colour band of gauge row *row*, counted from the bottom."""
    if not thresholds:
        return BAND_WHITE
    if row < config.bad_rows:
        return BAND_RED
    if row < config.good_rows:
        return BAND_YELLOW
    return BAND_GREEN


def gauge_cells(power: float, config: RenderConfig) -> list[tuple[int, str]]:
    """Filled rows of a gauge as (row from bottom, glyph), bottom first."""
    res = config.resolution
    pct = power_to_percentage(power, config.scale)
    height = fill_height(pct, config.content_height, res)
    full_rows, partial = divmod(height, res)
    logger.debug(
        "fill percent: %.1f, fill height: %u (res: %u, N %u, partial %u), "
        "power: %.2f dBm",
        pct, height, res, full_rows, partial, power,
    )
    cells = [(row, config.glyphs.blocks[-1]) for row in range(full_rows)]
    if partial:
        cells.append((full_rows, config.glyphs.blocks[partial - 1]))
    return cells


def draw_gauge(
    win: curses.window,
    x: int,
    y: int,
    power: float,
    thresholds: bool,
    label: str,
    config: RenderConfig,
) -> None:
    """Draw one bordered gauge with its value and label underneath."""
    g = config.glyphs
    inner_w = config.content_width
    inner_h = config.content_height
    box_w = inner_w + BOX_BORDER_WIDTH

    safe_addstr(win, y, x, g.top_left + g.horizontal * inner_w + g.top_right)
    for i in range(inner_h):
        safe_addstr(win, y + 1 + i, x, g.vertical)
        safe_addstr(win, y + 1 + i, x + 1 + inner_w, g.vertical)
    safe_addstr(win, y + 1 + inner_h, x, g.bottom_left + g.horizontal * inner_w + g.bottom_right)

    for row, glyph in gauge_cells(power, config):
        attr = config.palette.get(band_for_row(row, config, thresholds), 0)
        safe_addstr(win, y + inner_h - row, x + 1, glyph * inner_w, attr)

    value = f"{power:.2f}"
    safe_addstr(win, y + 2 + inner_h, centered(x, box_w, value), value)
    safe_addstr(win, y + 3 + inner_h, centered(x, box_w, label), label)


def link_text(state: str) -> str:
    return f"link {SHORT_STATES.get(state, state) or '?'}"


def draw_iface_info(win: curses.window, x: int, y: int, name: str, state: str) -> None:
    safe_addstr(win, y, centered(x, PANEL_WIDTH, name), name)
    text = link_text(state)
    safe_addstr(win, y + 1, centered(x, PANEL_WIDTH, text), text)


def render_panel(
    win: curses.window,
    x: int,
    y: int,
    tx_power: float,
    rx_power: float,
    name: str,
    link_state: str,
    config: RenderConfig,
) -> None:
    """Draw the TX and RX gauges for one interface plus its name and link state."""
    x = max(0, x)
    y = max(0, y)
    draw_gauge(win, x, y, tx_power, config.tx_thresholds, "TX dBm", config)
    draw_gauge(
        win, x + BOX_WIDTH + BOX_SEPARATION, y, rx_power, config.rx_thresholds,
        "RX dBm", config,
    )
    draw_iface_info(win, x, y + BOX_HEIGHT, name, link_state)
