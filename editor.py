"""Interactive editing session: one explicit mode routes every grid event.

The session owns the override store and its history. Views feed it pointer
and keyboard events and read back effective levels, previewed dates and
advisory notices; external collaborators only ever get the finalized list.
"""

from __future__ import annotations

import enum
import logging
from datetime import date
from typing import Callable, Iterable, Sequence

from PIL import Image

from clipboard import ClipboardBuffer
from contributions import (
    ContributionDay,
    DayRecord,
    HistoryStack,
    OverrideStore,
    SynthesisResult,
    build_year_records,
    parse_contribution_list,
)
from grid_logic import is_valid_year, utc_today
from image_quantizer import QuantizeOptions, QuantizedGrid, quantize_image
from paint_engine import PRIMARY, Brush, PaintEngine
from pattern_overlay import PatternOverlay
from patterns import get_pattern_by_id, text_pattern
from random_paint import RandomPaintRequest, random_contributions

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    IDLE = "idle"
    PAINTING = "painting"
    SELECTING = "selecting"
    PATTERN_PREVIEW = "pattern_preview"
    PASTE_PREVIEW = "paste_preview"


class CollaboratorError(Exception):
    """Failure reported by an export or repository-synthesis backend."""


NOTHING_TO_COPY = "Nothing to copy: the selection has no painted cells."
CLIPBOARD_EMPTY = "Clipboard is empty: copy a selection first."
FLAT_IMAGE = "The image has no brightness variation to quantize."
UNKNOWN_PATTERN = "Unknown pattern."


class EditorSession:
    def __init__(self, base: Iterable[DayRecord | dict] = (), year: int | None = None,
                 today: Callable[[], date] = utc_today,
                 history_limit: int | None = None) -> None:
        self._base = list(base)
        self._today = today
        self.brush = Brush()
        self.history = HistoryStack(history_limit)
        self.mode = Mode.IDLE
        self.selection_tool = False
        self.last_notice: str | None = None
        self.paste_targets: dict[date, int] = {}
        # Last date hovered while a preview is shown
        self.preview_anchor: date | None = None

        start_year = year if year is not None and is_valid_year(year, today()) else today().year
        self.store = OverrideStore(build_year_records(self._base, start_year),
                                   start_year, today)
        self.engine = PaintEngine(self.store, self.history, self.brush)
        self.overlay = PatternOverlay(self.store, self.history)
        self.clipboard = ClipboardBuffer(self.store, self.history)

    @property
    def year(self) -> int:
        return self.store.year

    # ------------------------------------------------------------------
    # Year switch
    # ------------------------------------------------------------------
    def set_year(self, year: int) -> bool:
        """Show another year; overrides and history start fresh.

        The clipboard buffer survives so paint can be carried across years.
        """
        if not is_valid_year(year, self._today()):
            return False
        if year == self.store.year:
            return True
        self.cancel()
        self.store = OverrideStore(build_year_records(self._base, year), year, self._today)
        for part in (self.engine, self.overlay, self.clipboard):
            part.store = self.store
        self.history.clear()
        logger.info("Switched to year %d", year)
        return True

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------
    def pointer_down(self, d: date, button: int = PRIMARY) -> None:
        self.last_notice = None
        if self.mode is Mode.PATTERN_PREVIEW:
            if button == PRIMARY:
                self.preview_anchor = d
                self.overlay.update_preview(d)
                self.overlay.commit(self.brush)
                if not self.overlay.active:
                    self.mode = Mode.IDLE
            else:
                self.cancel()
            return
        if self.mode is Mode.PASTE_PREVIEW:
            if button == PRIMARY:
                self.paste_at(d)
            self.cancel()
            return

        if self.mode is not Mode.IDLE:
            self.pointer_up()
        if button != PRIMARY:
            self.engine.pointer_down(d, button)
            return
        if self.selection_tool:
            self.clipboard.begin_selection(d)
            self.mode = Mode.SELECTING
            return
        self.engine.pointer_down(d)
        self.mode = Mode.PAINTING

    def pointer_down_blank(self, button: int = PRIMARY) -> None:
        """Press on a grid cell that holds no date (before Jan 1 / after Dec 31).

        While previewing, the press acts on the last hovered date, so a
        commit or cancel works from anywhere on the grid. Otherwise ignored.
        """
        if self.mode not in (Mode.PATTERN_PREVIEW, Mode.PASTE_PREVIEW):
            return
        if self.preview_anchor is not None:
            self.pointer_down(self.preview_anchor, button)
        elif button != PRIMARY:
            self.cancel()

    def pointer_enter(self, d: date) -> None:
        if self.mode is Mode.PAINTING:
            self.engine.pointer_enter(d)
        elif self.mode is Mode.SELECTING:
            self.clipboard.update_selection(d)
        elif self.mode is Mode.PATTERN_PREVIEW:
            self.preview_anchor = d
            self.overlay.update_preview(d)
        elif self.mode is Mode.PASTE_PREVIEW:
            self.preview_anchor = d
            self.paste_targets = self.clipboard.preview_paste(d)

    def pointer_up(self) -> None:
        """Pointer released, on the grid or anywhere else."""
        if self.mode is Mode.PAINTING:
            self.engine.pointer_up()
            self.mode = Mode.IDLE
        elif self.mode is Mode.SELECTING:
            self.mode = Mode.IDLE

    def previewed_dates(self) -> set[date]:
        if self.mode is Mode.PATTERN_PREVIEW:
            return set(self.overlay.affected)
        if self.mode is Mode.PASTE_PREVIEW:
            return set(self.paste_targets)
        return set()

    def cancel(self) -> None:
        """Leave any preview or selection; the clipboard buffer is kept."""
        if self.mode is Mode.PAINTING:
            self.engine.pointer_up()
        self.overlay.cancel()
        self.paste_targets = {}
        self.preview_anchor = None
        self.clipboard.clear_selection()
        self.mode = Mode.IDLE

    # ------------------------------------------------------------------
    # Pattern stamping
    # ------------------------------------------------------------------
    def start_pattern_preview(self, pattern: Sequence[Sequence[int]]) -> bool:
        self.cancel()
        if not self.overlay.start_preview(pattern):
            self.last_notice = UNKNOWN_PATTERN
            return False
        self.mode = Mode.PATTERN_PREVIEW
        return True

    def start_glyph_preview(self, pattern_id: str) -> bool:
        pattern = get_pattern_by_id(pattern_id)
        if pattern is None:
            self.last_notice = UNKNOWN_PATTERN
            return False
        return self.start_pattern_preview(pattern)

    def start_text_preview(self, text: str) -> bool:
        pattern = text_pattern(text)
        if pattern is None:
            self.last_notice = UNKNOWN_PATTERN
            return False
        return self.start_pattern_preview(pattern)

    def start_image_preview(self, img: Image.Image,
                            options: QuantizeOptions | None = None) -> QuantizedGrid | None:
        """Quantize ``img`` and preview it as a pattern.

        An image without brightness variance (or with nothing lit) only sets
        the advisory notice and leaves mode and selection untouched.
        """
        grid = quantize_image(img, options)
        if grid.flat or not grid.active_cells:
            self.last_notice = FLAT_IMAGE
            return None
        self.start_pattern_preview(grid.data)
        return grid

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------
    def toggle_selection_tool(self) -> bool:
        self.cancel()
        self.selection_tool = not self.selection_tool
        return self.selection_tool

    def copy_selection(self) -> bool:
        ok = self.clipboard.copy()
        self.last_notice = None if ok else NOTHING_TO_COPY
        return ok

    def start_paste_preview(self) -> bool:
        if self.clipboard.snapshot is None:
            self.last_notice = CLIPBOARD_EMPTY
            return False
        self.cancel()
        self.mode = Mode.PASTE_PREVIEW
        return True

    def paste_at(self, d: date) -> int:
        if self.clipboard.snapshot is None:
            self.last_notice = CLIPBOARD_EMPTY
            return 0
        return self.clipboard.paste_anchored_at(d)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def undo(self) -> bool:
        if self.mode is Mode.PAINTING:
            self.pointer_up()
        previous = self.history.undo(self.store.snapshot())
        if previous is None:
            return False
        self.store.restore(previous)
        return True

    def redo(self) -> bool:
        if self.mode is Mode.PAINTING:
            self.pointer_up()
        following = self.history.redo(self.store.snapshot())
        if following is None:
            return False
        self.store.restore(following)
        return True

    def _edit(self, action: Callable[[], object]) -> bool:
        """Run a whole-grid edit as one undo step."""
        self.cancel()
        before = self.store.snapshot()
        action()
        if before == self.store.snapshot():
            return False
        self.history.push(before)
        return True

    # ------------------------------------------------------------------
    # Whole-grid actions
    # ------------------------------------------------------------------
    def reset_all(self) -> bool:
        changed = self._edit(self.store.reset_all)
        if changed:
            logger.info("Cleared all painted cells for %d", self.year)
        return changed

    def fill_all(self) -> bool:
        changed = self._edit(self.store.fill_all)
        if changed:
            logger.info("Filled %d with maximum intensity", self.year)
        return changed

    def import_contributions(self, items: Iterable) -> int:
        """Replace the overrides with an imported ``[{date, count}]`` list."""
        entries = parse_contribution_list(items)
        self._edit(lambda: self.store.replace(entries))
        logger.info("Imported %d of %d contribution entries", len(self.store), len(entries))
        return len(self.store)

    def apply_random(self, request: RandomPaintRequest) -> int:
        result = random_contributions(request)
        return self.import_contributions(result.contributions)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    def count(self, d: date) -> int:
        return self.store.effective_count(d)

    def level(self, d: date) -> int:
        return self.store.effective_level(d)

    def total(self) -> int:
        return self.store.total()

    def cell_tooltip(self, d: date) -> str:
        n = self.count(d)
        if n == 0:
            return f"No contributions on {d.isoformat()}"
        return f"{n} contributions on {d.isoformat()}"

    def finalize(self) -> list[ContributionDay]:
        return self.store.finalize()

    def synthesize(self, backend: Callable[[list[dict]], SynthesisResult]) -> SynthesisResult | None:
        """Hand the finalized list to a repository-synthesis backend.

        A ``CollaboratorError`` is surfaced through ``last_notice`` verbatim.
        """
        payload = [c.to_dict() for c in self.finalize()]
        try:
            result = backend(payload)
        except CollaboratorError as exc:
            self.last_notice = str(exc)
            logger.error("Repository synthesis failed: %s", exc)
            return None
        logger.info("Synthesized %d commits into %s", result.commit_count, result.repo_path)
        return result

    def export(self, serializer: Callable[[list[dict]], str]) -> str | None:
        """Hand the finalized list to an export serializer; returns its path."""
        payload = [c.to_dict() for c in self.finalize()]
        try:
            return serializer(payload)
        except CollaboratorError as exc:
            self.last_notice = str(exc)
            logger.error("Export failed: %s", exc)
            return None
