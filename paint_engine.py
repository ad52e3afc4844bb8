"""Pen / eraser state machine that turns pointer events into override edits."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date

from contributions import HistoryStack, OverrideStore
from grid_logic import INTENSITIES

logger = logging.getLogger(__name__)

PRIMARY = 1
SECONDARY = 3


class Tool(enum.Enum):
    PEN = "pen"
    ERASER = "eraser"


class PenMode(enum.Enum):
    AUTO = "auto"
    MANUAL = "manual"


def next_auto_intensity(current: int) -> int:
    """Step up the 1 → 3 → 6 → 9 ladder; never lowers a value."""
    for step in INTENSITIES:
        if current < step:
            return step
    return current


@dataclass
class Brush:
    """Tool plus pen sub-mode; the single stroke rule shared by every writer."""

    tool: Tool = Tool.PEN
    pen_mode: PenMode = PenMode.AUTO
    intensity: int = INTENSITIES[0]

    def set_intensity(self, value: int) -> bool:
        if value not in INTENSITIES:
            return False
        self.intensity = value
        return True

    def toggle_tool(self) -> Tool:
        self.tool = Tool.ERASER if self.tool is Tool.PEN else Tool.PEN
        return self.tool

    def apply(self, store: OverrideStore, d: date) -> bool:
        """Apply one stroke to ``d``. Returns True if the store changed."""
        if store.is_future(d):
            return False
        if self.tool is Tool.ERASER:
            return store.clear(d)
        if self.pen_mode is PenMode.MANUAL:
            return store.set(d, self.intensity)
        current = store.effective_count(d)
        step = next_auto_intensity(current)
        if step == current:
            return False
        return store.set(d, step)


class PaintEngine:
    """Idle / Painting state machine for drag-painting.

    One continuous stroke becomes one undo step, pushed when the stroke ends
    and only if it changed anything.
    """

    def __init__(self, store: OverrideStore, history: HistoryStack,
                 brush: Brush | None = None) -> None:
        self.store = store
        self.history = history
        self.brush = brush or Brush()
        self._painting = False
        self._last_date: date | None = None
        self._before: dict[date, int] | None = None

    @property
    def is_painting(self) -> bool:
        return self._painting

    def pointer_down(self, d: date, button: int = PRIMARY) -> bool:
        """Start a stroke on ``d``; a secondary button toggles pen/eraser."""
        if button != PRIMARY:
            tool = self.brush.toggle_tool()
            logger.debug("Tool toggled to %s", tool.value)
            return False
        if self._painting:
            self.pointer_up()
        self._painting = True
        self._last_date = d
        self._before = self.store.snapshot()
        logger.debug("Stroke start at %s (%s)", d, self.brush.tool.value)
        return self.brush.apply(self.store, d)

    def pointer_enter(self, d: date) -> bool:
        """Continue the stroke onto ``d``; re-entering the same cell is a no-op."""
        if not self._painting or d == self._last_date:
            return False
        self._last_date = d
        return self.brush.apply(self.store, d)

    def pointer_up(self) -> bool:
        """End the stroke (also used for a release outside the grid).

        Returns True if the stroke produced an undo step.
        """
        if not self._painting:
            return False
        self._painting = False
        self._last_date = None
        before, self._before = self._before, None
        if before is not None and before != self.store.snapshot():
            self.history.push(before)
            logger.debug("Stroke end: %d overrides", len(self.store))
            return True
        return False
