"""Rectangular copy / paste of painted cells."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from contributions import HistoryStack, OverrideStore
from grid_logic import to_grid
from pattern_overlay import PatternMatrix, place_pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionRegion:
    """Axis-aligned rectangle between two (column, row) grid positions."""

    anchor: tuple[int, int]
    current: tuple[int, int]

    def bounds(self) -> tuple[int, int, int, int]:
        """Return ``(min_col, max_col, min_row, max_row)``, inclusive."""
        (c1, r1), (c2, r2) = self.anchor, self.current
        return min(c1, c2), max(c1, c2), min(r1, r2), max(r1, r2)

    def contains(self, column: int, row: int) -> bool:
        c_lo, c_hi, r_lo, r_hi = self.bounds()
        return c_lo <= column <= c_hi and r_lo <= row <= r_hi


@dataclass(frozen=True)
class ClipboardSnapshot:
    """Copied paint cropped to its tight bounding box."""

    width: int
    height: int
    data: PatternMatrix


class ClipboardBuffer:
    """Drag-selection, copy and anchored paste.

    The copied snapshot outlives the selection: clearing or cancelling a
    selection never touches it, only a new successful copy replaces it.
    """

    def __init__(self, store: OverrideStore, history: HistoryStack) -> None:
        self.store = store
        self.history = history
        self.region: SelectionRegion | None = None
        self.selected_dates: set[date] = set()
        self.snapshot: ClipboardSnapshot | None = None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def begin_selection(self, d: date) -> None:
        pos = to_grid(d, self.store.year)
        self.region = SelectionRegion(pos, pos)
        self._collect()

    def update_selection(self, d: date) -> bool:
        if self.region is None:
            return False
        pos = to_grid(d, self.store.year)
        if pos == self.region.current:
            return False
        self.region = SelectionRegion(self.region.anchor, pos)
        self._collect()
        return True

    def clear_selection(self) -> None:
        self.region = None
        self.selected_dates = set()

    def _collect(self) -> None:
        year = self.store.year
        self.selected_dates = {
            d for d in self.store.dates() if self.region.contains(*to_grid(d, year))
        }

    # ------------------------------------------------------------------
    # Copy / paste
    # ------------------------------------------------------------------
    def copy(self) -> bool:
        """Copy the painted cells of the selection.

        Returns False, leaving the buffer unchanged, if nothing is painted.
        """
        year = self.store.year
        painted = {
            to_grid(d, year): self.store.effective_count(d)
            for d in self.selected_dates
            if self.store.effective_count(d) > 0
        }
        if not painted:
            logger.debug("Nothing to copy in a selection of %d dates",
                         len(self.selected_dates))
            return False

        cols = [c for c, _ in painted]
        rows = [r for _, r in painted]
        c0, r0 = min(cols), min(rows)
        width = max(cols) - c0 + 1
        height = max(rows) - r0 + 1
        data = [[0] * width for _ in range(height)]
        for (c, r), count in painted.items():
            data[r - r0][c - c0] = count
        self.snapshot = ClipboardSnapshot(width, height, data)
        logger.debug("Copied %d cells into a %dx%d buffer", len(painted), width, height)
        return True

    def preview_paste(self, anchor: date) -> dict[date, int]:
        if self.snapshot is None:
            return {}
        return place_pattern(self.snapshot.data, anchor, self.store)

    def paste_anchored_at(self, anchor: date) -> int:
        """Write the buffer centred on ``anchor``, overwriting existing values.

        Returns the number of dates that changed; 0 with an empty buffer.
        """
        targets = self.preview_paste(anchor)
        if not targets:
            return 0
        before = self.store.snapshot()
        changed = sum(1 for d, value in targets.items() if self.store.set(d, value))
        if changed:
            self.history.push(before)
        logger.debug("Pasted at %s: %d dates changed", anchor, changed)
        return changed
