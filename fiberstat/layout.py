"""Panel packing, scrolling and centring for the content area."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from fiberstat.render import PANEL_HEIGHT, PANEL_WIDTH

logger = logging.getLogger(__name__)

# Room on each side for the scroll arrows, drawn 2 columns into the margin
MARGIN_HORIZONTAL = 5
ARROW_INSET = 2
SEPARATION_HORIZONTAL = 3
SEPARATION_VERTICAL = 3


@dataclass(frozen=True)
class LayoutGrid:
    per_row: int
    per_column: int
    rows: int
    columns: int
    offset: int
    total: int
    origin_x: int
    origin_y: int
    width: int
    height: int

    @property
    def capacity(self) -> int:
        return self.per_row * self.per_column

    @property
    def visible(self) -> int:
        """Number of interfaces drawn on this screen."""
        return max(0, min(self.total - self.offset, self.capacity))

    @property
    def more_before(self) -> bool:
        return self.offset > 0

    @property
    def more_after(self) -> bool:
        return self.offset + self.capacity < self.total

    def positions(self) -> list[tuple[int, int, int]]:
        """(interface index, x, y) of each visible panel, in reading order."""
        result = []
        for n in range(self.visible):
            row, col = divmod(n, self.per_row)
            x = self.origin_x + col * (PANEL_WIDTH + SEPARATION_HORIZONTAL)
            y = self.origin_y + row * (PANEL_HEIGHT + SEPARATION_VERTICAL)
            result.append((self.offset + n, x, y))
        return result

    def arrow_positions(self, extent_width: int) -> tuple[int, int, int]:
        """(y, left x, right x) of the scroll arrows, clamped to the extent."""
        y = self.origin_y + self.height // 2
        left = self.origin_x - MARGIN_HORIZONTAL + ARROW_INSET
        right = self.origin_x + self.width + MARGIN_HORIZONTAL - ARROW_INSET
        return max(0, y), max(0, left), max(0, min(right, extent_width - 1))


def fit_count(available: int, size: int, separation: int, what: str) -> int:
    """How many items of *size* plus *separation* gaps fit strictly inside *available*.

    Never returns less than 1: a too-small terminal still gets one panel.
    """
    count = 0
    while (count + 1) * size + count * separation < available:
        count += 1
    if count == 0:
        logger.warning(
            "window doesn't allow one full interface per %s: forcing it anyway", what
        )
        count = 1
    return count


def compute_layout(width: int, height: int, total: int, offset: int) -> LayoutGrid:
    """Decide how panels are packed into a *width* x *height* area.

    *offset* is the index of the first visible interface.
    """
    per_row = fit_count(
        width - 2 * MARGIN_HORIZONTAL, PANEL_WIDTH, SEPARATION_HORIZONTAL, "row"
    )
    per_column = fit_count(height, PANEL_HEIGHT, SEPARATION_VERTICAL, "column")
    capacity = per_row * per_column
    logger.debug(
        "window allows up to %u interfaces (%u per row and %u per column)",
        capacity, per_row, per_column,
    )

    shown = max(0, min(total - offset, capacity))
    rows = min(math.ceil(shown / per_row), per_column)
    columns = min(per_row, shown)

    block_w = max(0, columns * PANEL_WIDTH + (columns - 1) * SEPARATION_HORIZONTAL)
    block_h = max(0, rows * PANEL_HEIGHT + (rows - 1) * SEPARATION_VERTICAL)
    logger.debug(
        "printing %u rows with up to %u interfaces per row (%ux%u)",
        rows, columns, block_w, block_h,
    )

    return LayoutGrid(
        per_row=per_row,
        per_column=per_column,
        rows=rows,
        columns=columns,
        offset=offset,
        total=total,
        origin_x=max(0, (width - block_w) // 2),
        origin_y=max(0, (height - block_h) // 2),
        width=block_w,
        height=block_h,
    )


def scroll_left(grid: LayoutGrid) -> int:
    """Offset after a left-shift request; unchanged if nothing is before."""
    if grid.more_before:
        return grid.offset - 1
    return grid.offset


def scroll_right(grid: LayoutGrid) -> int:
    """Offset after a right-shift request; unchanged if nothing is after."""
    if grid.more_after:
        return grid.offset + 1
    return grid.offset
