"""Tests for fiberstat.layout."""

from __future__ import annotations

import logging

import pytest

from fiberstat.layout import (
    MARGIN_HORIZONTAL,
    SEPARATION_HORIZONTAL,
    SEPARATION_VERTICAL,
    compute_layout,
    fit_count,
    scroll_left,
    scroll_right,
)
from fiberstat.render import PANEL_HEIGHT, PANEL_WIDTH


# ── fit_count ──────────────────────────────────────────────────────────────


class TestFitCount:
    @pytest.mark.parametrize(
        ("available", "expected"),
        [(14, 1), (29, 1), (30, 2), (45, 2), (46, 3)],
    )
    def test_strict_fit(self, available: int, expected: int) -> None:
        assert fit_count(available, PANEL_WIDTH, SEPARATION_HORIZONTAL, "row") == expected

    @pytest.mark.parametrize("available", range(14, 200))
    def test_packing_is_maximal(self, available: int) -> None:
        n = fit_count(available, PANEL_WIDTH, SEPARATION_HORIZONTAL, "row")
        assert n * PANEL_WIDTH + (n - 1) * SEPARATION_HORIZONTAL < available
        assert (n + 1) * PANEL_WIDTH + n * SEPARATION_HORIZONTAL >= available

    @pytest.mark.parametrize("available", [-10, 0, 5, 13])
    def test_forced_to_one(self, available: int, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="fiberstat"):
            assert fit_count(available, PANEL_WIDTH, SEPARATION_HORIZONTAL, "row") == 1
        assert "forcing it anyway" in caplog.text


# ── compute_layout ─────────────────────────────────────────────────────────


class TestComputeLayout:
    def test_two_per_row_five_total(self) -> None:
        grid = compute_layout(50, 50, 5, 0)
        assert grid.per_row == 2
        assert grid.per_column == 2
        assert grid.capacity == 4
        assert grid.rows == 2
        assert grid.columns == 2
        assert grid.visible == 4
        assert grid.more_after
        assert not grid.more_before

    def test_right_shift_then_left(self) -> None:
        grid = compute_layout(50, 30, 5, 0)
        assert grid.capacity == 2
        assert not grid.more_before and grid.more_after

        offset = scroll_right(grid)
        assert offset == 1
        grid = compute_layout(50, 30, 5, offset)
        assert grid.more_before and grid.more_after

        assert scroll_left(grid) == 0

    def test_partial_last_row(self) -> None:
        grid = compute_layout(50, 50, 3, 0)
        assert grid.rows == 2
        assert grid.columns == 2
        assert grid.visible == 3
        assert not grid.more_after

    def test_single_interface_centred(self) -> None:
        grid = compute_layout(100, 40, 1, 0)
        assert (grid.rows, grid.columns) == (1, 1)
        assert (grid.width, grid.height) == (PANEL_WIDTH, PANEL_HEIGHT)
        assert grid.origin_x == (100 - PANEL_WIDTH) // 2
        assert grid.origin_y == (40 - PANEL_HEIGHT) // 2

    def test_block_dimensions(self) -> None:
        grid = compute_layout(200, 60, 20, 0)
        assert grid.width == grid.columns * PANEL_WIDTH + (grid.columns - 1) * SEPARATION_HORIZONTAL
        assert grid.height == grid.rows * PANEL_HEIGHT + (grid.rows - 1) * SEPARATION_VERTICAL
        assert grid.origin_x + grid.width <= 200 - MARGIN_HORIZONTAL

    def test_no_interfaces(self) -> None:
        grid = compute_layout(80, 24, 0, 0)
        assert grid.visible == 0
        assert grid.positions() == []
        assert (grid.rows, grid.columns) == (0, 0)
        assert (grid.width, grid.height) == (0, 0)
        assert not grid.more_before and not grid.more_after

    def test_tiny_terminal_still_shows_one(self) -> None:
        grid = compute_layout(5, 3, 4, 0)
        assert grid.per_row == 1 and grid.per_column == 1
        assert grid.visible == 1
        assert grid.origin_x == 0 and grid.origin_y == 0
        assert grid.more_after

    def test_positions_reading_order(self) -> None:
        grid = compute_layout(50, 50, 5, 1)
        positions = grid.positions()
        assert [index for index, _, _ in positions] == [1, 2, 3, 4]
        (_, x0, y0), (_, x1, y1), (_, x2, y2), _ = positions
        assert y0 == y1 and x1 - x0 == PANEL_WIDTH + SEPARATION_HORIZONTAL
        assert x2 == x0 and y2 - y0 == PANEL_HEIGHT + SEPARATION_VERTICAL

    def test_arrows_outside_block(self) -> None:
        grid = compute_layout(100, 40, 5, 0)
        y, left, right = grid.arrow_positions(100)
        assert left < grid.origin_x
        assert right >= grid.origin_x + grid.width
        assert grid.origin_y <= y < grid.origin_y + grid.height

    def test_arrows_clamped(self) -> None:
        grid = compute_layout(10, 10, 5, 0)
        y, left, right = grid.arrow_positions(10)
        assert y >= 0 and left >= 0
        assert right <= 9


# ── Scroll bounds ──────────────────────────────────────────────────────────


class TestScrollBounds:
    def test_left_at_start_ignored(self) -> None:
        grid = compute_layout(50, 50, 5, 0)
        assert scroll_left(grid) == 0

    def test_right_stops_at_end(self) -> None:
        offset = 0
        for _ in range(10):
            offset = scroll_right(compute_layout(50, 30, 5, offset))
        # capacity 2, so the last screen starts at index 3
        assert offset == 3
        grid = compute_layout(50, 30, 5, offset)
        assert not grid.more_after
        assert scroll_right(grid) == offset

    def test_everything_fits(self) -> None:
        grid = compute_layout(200, 60, 3, 0)
        assert scroll_left(grid) == 0
        assert scroll_right(grid) == 0

    @pytest.mark.parametrize("total", range(0, 12))
    def test_offset_stays_in_range(self, total: int) -> None:
        offset = 0
        for shift in [scroll_right] * 15 + [scroll_left] * 20:
            offset = shift(compute_layout(50, 30, total, offset))
            assert 0 <= offset < max(total, 1)
