"""Anchored placement of pixel patterns on the grid, with live preview."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Sequence

from contributions import HistoryStack, OverrideStore
from grid_logic import MAX_PATTERN_WIDTH, ROWS, to_grid
from paint_engine import Brush

logger = logging.getLogger(__name__)

PatternMatrix = list[list[int]]


def normalize_pattern(rows: Sequence[Sequence]) -> PatternMatrix | None:
    """Return a rectangular int matrix of 1–7 rows and 1–52 columns.

    Booleans become 0/1 and negative values 0. Ragged rows are padded with
    zeros. Returns None if the shape cannot be used.
    """
    if not rows or len(rows) > ROWS:
        return None
    width = max((len(r) for r in rows), default=0)
    if width < 1 or width > MAX_PATTERN_WIDTH:
        return None
    matrix: PatternMatrix = []
    for r in rows:
        cells = [max(0, int(v)) for v in r]
        matrix.append(cells + [0] * (width - len(cells)))
    return matrix


def place_pattern(pattern: PatternMatrix, anchor: date,
                  store: OverrideStore) -> dict[date, int]:
    """Map every non-zero cell of ``pattern`` to a date, centred on ``anchor``.

    Cell ``(py, px)`` is offset by ``(py - h // 2, px - w // 2)`` from the
    anchor's grid position. Cells that fall off the 7 rows, left of column
    0, outside the displayed year or in the future are skipped.
    """
    a_col, a_row = to_grid(anchor, store.year)
    half_h = len(pattern) // 2
    half_w = len(pattern[0]) // 2 if pattern else 0
    anchor_index = a_col * 7 + a_row

    placed: dict[date, int] = {}
    for py, row in enumerate(pattern):
        for px, value in enumerate(row):
            if not value:
                continue
            r = a_row + py - half_h
            c = a_col + px - half_w
            if r < 0 or r >= ROWS or c < 0:
                continue
            d = anchor + timedelta(days=c * 7 + r - anchor_index)
            if store.is_paintable(d):
                placed[d] = value
    return placed


class PatternOverlay:
    """Preview-then-commit stamping of a glyph or image-derived pattern."""

    def __init__(self, store: OverrideStore, history: HistoryStack) -> None:
        self.store = store
        self.history = history
        self.pattern: PatternMatrix | None = None
        self.affected: dict[date, int] = {}
        self._anchor: date | None = None

    @property
    def active(self) -> bool:
        return self.pattern is not None

    def start_preview(self, pattern: Sequence[Sequence]) -> bool:
        matrix = normalize_pattern(pattern)
        if matrix is None:
            logger.debug("Rejected pattern with unusable shape")
            return False
        self.pattern = matrix
        self.affected = {}
        self._anchor = None
        logger.debug("Preview started: %dx%d", len(matrix[0]), len(matrix))
        return True

    def update_preview(self, hovered: date) -> set[date]:
        """Recompute the affected dates for a new hover position."""
        if self.pattern is None:
            return set()
        if hovered != self._anchor:
            self._anchor = hovered
            self.affected = place_pattern(self.pattern, hovered, self.store)
        return set(self.affected)

    def commit(self, brush: Brush) -> int:
        """Apply the brush's stroke rule to every previewed date and exit.

        With nothing previewed yet this does nothing and preview stays on.
        Returns the number of dates that changed.
        """
        if self.pattern is None or not self.affected:
            return 0
        affected = sorted(self.affected)
        self.cancel()
        before = self.store.snapshot()
        changed = sum(1 for d in affected if brush.apply(self.store, d))
        if changed:
            self.history.push(before)
        logger.debug("Pattern committed: %d of %d dates changed", changed, len(affected))
        return changed

    def cancel(self) -> None:
        self.pattern = None
        self.affected = {}
        self._anchor = None
