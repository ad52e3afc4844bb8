import unittest
from datetime import date

from PIL import Image

from contributions import SynthesisResult
from editor import (
    CLIPBOARD_EMPTY,
    FLAT_IMAGE,
    NOTHING_TO_COPY,
    UNKNOWN_PATTERN,
    CollaboratorError,
    EditorSession,
    Mode,
)
from image_quantizer import MODE_BINARY, QuantizeOptions
from paint_engine import SECONDARY, Tool
from random_paint import RandomPaintRequest

TODAY = date(2025, 1, 15)


def _session(**kwargs) -> EditorSession:
    kwargs.setdefault("year", 2024)
    return EditorSession(today=lambda: TODAY, **kwargs)


class TestPainting(unittest.TestCase):
    def test_drag_is_one_undo_step(self) -> None:
        s = _session()
        s.pointer_down(date(2024, 5, 1))
        self.assertIs(s.mode, Mode.PAINTING)
        s.pointer_enter(date(2024, 5, 2))
        s.pointer_up()
        self.assertIs(s.mode, Mode.IDLE)
        self.assertEqual(s.total(), 2)
        self.assertTrue(s.undo())
        self.assertEqual(s.total(), 0)
        self.assertTrue(s.redo())
        self.assertEqual(s.total(), 2)

    def test_hover_outside_stroke_changes_nothing(self) -> None:
        s = _session()
        s.pointer_enter(date(2024, 5, 2))
        s.pointer_up()
        self.assertEqual(s.total(), 0)
        self.assertFalse(s.undo())

    def test_secondary_button_toggles_tool(self) -> None:
        s = _session()
        s.pointer_down(date(2024, 5, 1), SECONDARY)
        self.assertIs(s.brush.tool, Tool.ERASER)
        self.assertIs(s.mode, Mode.IDLE)

    def test_base_values_and_tooltip(self) -> None:
        s = _session(base=[{"date": "2024-03-01", "count": 4}])
        self.assertEqual(s.count(date(2024, 3, 1)), 4)
        self.assertEqual(s.level(date(2024, 3, 1)), 2)
        self.assertEqual(s.cell_tooltip(date(2024, 3, 1)), "4 contributions on 2024-03-01")
        self.assertEqual(s.cell_tooltip(date(2024, 3, 2)), "No contributions on 2024-03-02")
        s.pointer_down(date(2024, 3, 1))
        s.pointer_up()
        self.assertEqual(s.count(date(2024, 3, 1)), 6)

    def test_default_year_is_current(self) -> None:
        self.assertEqual(_session(year=None).year, 2025)
        self.assertEqual(_session(year=1999).year, 2025)


class TestPatternPreview(unittest.TestCase):
    def test_glyph_preview_commit(self) -> None:
        s = _session()
        self.assertTrue(s.start_glyph_preview("L"))
        self.assertIs(s.mode, Mode.PATTERN_PREVIEW)
        self.assertEqual(s.previewed_dates(), set())
        s.pointer_enter(date(2024, 6, 13))  # Thursday, middle row
        previewed = s.previewed_dates()
        self.assertEqual(len(previewed), 11)
        self.assertEqual(s.total(), 0)

        s.pointer_down(date(2024, 6, 13))
        self.assertIs(s.mode, Mode.IDLE)
        self.assertEqual({d for d in previewed if s.count(d) == 1}, previewed)
        self.assertEqual(s.total(), 11)
        self.assertTrue(s.undo())
        self.assertEqual(s.total(), 0)

    def test_secondary_click_cancels(self) -> None:
        s = _session()
        s.start_text_preview("HI")
        s.pointer_enter(date(2024, 6, 13))
        s.pointer_down(date(2024, 6, 13), SECONDARY)
        self.assertIs(s.mode, Mode.IDLE)
        self.assertIs(s.brush.tool, Tool.PEN)
        self.assertEqual(s.total(), 0)
        self.assertEqual(s.previewed_dates(), set())

    def test_unknown_pattern(self) -> None:
        s = _session()
        self.assertFalse(s.start_glyph_preview("nope"))
        self.assertEqual(s.last_notice, UNKNOWN_PATTERN)
        self.assertFalse(s.start_text_preview("~"))
        self.assertIs(s.mode, Mode.IDLE)

    def test_click_away_from_preview_commits_at_click(self) -> None:
        s = _session()
        s.start_glyph_preview("L")
        s.pointer_enter(date(2024, 6, 13))
        hovered = s.previewed_dates()
        clicked = date(2024, 9, 5)  # Thursday, twelve weeks later
        self.assertNotIn(clicked, hovered)

        s.pointer_down(clicked)
        self.assertIs(s.mode, Mode.IDLE)
        self.assertEqual(s.total(), 11)
        self.assertTrue(all(s.count(d) == 0 for d in hovered))
        # Bottom row of the L runs right from the clicked column
        self.assertEqual(s.count(date(2024, 8, 25)), 1)
        self.assertEqual(s.count(date(2024, 9, 22)), 1)

    def test_blank_cell_click_uses_last_hover(self) -> None:
        s = _session()
        s.start_glyph_preview("L")
        s.pointer_enter(date(2024, 6, 13))
        previewed = s.previewed_dates()
        s.pointer_down_blank()
        self.assertIs(s.mode, Mode.IDLE)
        self.assertTrue(all(s.count(d) == 1 for d in previewed))

    def test_blank_cell_secondary_click_cancels(self) -> None:
        s = _session()
        s.start_text_preview("HI")
        s.pointer_down_blank(SECONDARY)
        self.assertIs(s.mode, Mode.IDLE)
        self.assertIs(s.brush.tool, Tool.PEN)

    def test_blank_cell_click_outside_preview_is_ignored(self) -> None:
        s = _session()
        s.pointer_down_blank()
        self.assertIs(s.mode, Mode.IDLE)
        self.assertEqual(s.total(), 0)

    def test_image_preview(self) -> None:
        s = _session()
        img = Image.new("RGB", (70, 70), "white")
        img.paste((0, 0, 0), (30, 0, 40, 70))
        grid = s.start_image_preview(img, QuantizeOptions(mode=MODE_BINARY))
        self.assertEqual((grid.width, grid.height), (7, 7))
        self.assertIs(s.mode, Mode.PATTERN_PREVIEW)
        self.assertIsNone(s.last_notice)

    def test_flat_image_leaves_state_untouched(self) -> None:
        s = _session()
        s.toggle_selection_tool()
        s.pointer_down(date(2024, 3, 4))
        s.pointer_up()
        self.assertEqual(s.clipboard.selected_dates, {date(2024, 3, 4)})

        # All black inverts to a solid, variance-free block
        self.assertIsNone(s.start_image_preview(Image.new("RGB", (70, 70), "black")))
        self.assertEqual(s.last_notice, FLAT_IMAGE)
        self.assertIs(s.mode, Mode.IDLE)
        self.assertEqual(s.clipboard.selected_dates, {date(2024, 3, 4)})
        self.assertEqual(s.previewed_dates(), set())

    def test_blank_image_is_reported(self) -> None:
        s = _session()
        self.assertIsNone(s.start_image_preview(Image.new("RGB", (70, 70), "white")))
        self.assertEqual(s.last_notice, FLAT_IMAGE)
        self.assertIs(s.mode, Mode.IDLE)


class TestCopyPaste(unittest.TestCase):
    def _paint_square(self, s: EditorSession) -> None:
        # Mon/Tue of two consecutive weeks
        s.pointer_down(date(2024, 3, 4))
        for d in (date(2024, 3, 5), date(2024, 3, 12), date(2024, 3, 11)):
            s.pointer_enter(d)
        s.pointer_up()

    def test_two_by_two_copy_paste(self) -> None:
        s = _session()
        self._paint_square(s)
        self.assertTrue(s.toggle_selection_tool())
        s.pointer_down(date(2024, 3, 4))
        self.assertIs(s.mode, Mode.SELECTING)
        s.pointer_enter(date(2024, 3, 12))
        s.pointer_up()
        self.assertEqual(len(s.clipboard.selected_dates), 4)
        self.assertTrue(s.copy_selection())

        self.assertTrue(s.start_paste_preview())
        s.pointer_enter(date(2024, 6, 12))
        targets = {date(2024, 6, 4), date(2024, 6, 5), date(2024, 6, 11), date(2024, 6, 12)}
        self.assertEqual(s.previewed_dates(), targets)
        s.pointer_down(date(2024, 6, 12))
        self.assertIs(s.mode, Mode.IDLE)
        self.assertTrue(all(s.count(d) == 1 for d in targets))
        self.assertEqual(s.total(), 8)

        s.undo()
        self.assertEqual(s.total(), 4)
        self.assertIsNotNone(s.clipboard.snapshot)

    def test_copy_empty_selection(self) -> None:
        s = _session()
        s.toggle_selection_tool()
        s.pointer_down(date(2024, 3, 4))
        s.pointer_enter(date(2024, 3, 12))
        s.pointer_up()
        self.assertFalse(s.copy_selection())
        self.assertEqual(s.last_notice, NOTHING_TO_COPY)

    def test_paste_without_buffer(self) -> None:
        s = _session()
        self.assertFalse(s.start_paste_preview())
        self.assertEqual(s.last_notice, CLIPBOARD_EMPTY)
        self.assertIs(s.mode, Mode.IDLE)
        self.assertEqual(s.paste_at(date(2024, 6, 12)), 0)

    def test_escape_keeps_buffer(self) -> None:
        s = _session()
        self._paint_square(s)
        s.toggle_selection_tool()
        s.pointer_down(date(2024, 3, 4))
        s.pointer_up()
        s.copy_selection()
        s.start_paste_preview()
        s.cancel()
        self.assertIs(s.mode, Mode.IDLE)
        self.assertIsNotNone(s.clipboard.snapshot)


class TestWholeGridActions(unittest.TestCase):
    def test_fill_and_reset(self) -> None:
        s = _session()
        self.assertTrue(s.fill_all())
        self.assertEqual(s.total(), 366 * 9)
        self.assertFalse(s.fill_all())
        self.assertTrue(s.reset_all())
        self.assertFalse(s.reset_all())
        s.undo()
        self.assertEqual(s.total(), 366 * 9)

    def test_import_is_undoable(self) -> None:
        s = _session()
        with self.assertLogs("contributions", level="WARNING"):
            n = s.import_contributions([
                {"date": "2024-02-01", "count": 4},
                {"date": "2023-01-01", "count": 2},
                {"date": "oops", "count": 1},
            ])
        self.assertEqual(n, 1)
        self.assertEqual(s.count(date(2024, 2, 1)), 4)
        self.assertTrue(s.undo())
        self.assertEqual(s.total(), 0)

    def test_random_fill_stays_in_year(self) -> None:
        s = _session()
        n = s.apply_random(RandomPaintRequest(date(2023, 12, 1), date(2024, 1, 31),
                                              density=1.0, random_seed=5))
        self.assertGreater(n, 0)
        self.assertTrue(all(d.year == 2024 for d in s.store.snapshot()))

    def test_year_switch(self) -> None:
        s = _session()
        s.pointer_down(date(2024, 3, 4))
        s.pointer_up()
        s.toggle_selection_tool()
        s.pointer_down(date(2024, 3, 4))
        s.pointer_up()
        s.copy_selection()

        self.assertTrue(s.set_year(2023))
        self.assertEqual(s.year, 2023)
        self.assertEqual(s.total(), 0)
        self.assertFalse(s.undo())
        self.assertIsNotNone(s.clipboard.snapshot)
        self.assertIs(s.engine.store, s.store)
        self.assertFalse(s.set_year(2007))
        self.assertFalse(s.set_year(2026))

    def test_current_year_future_is_locked(self) -> None:
        s = _session(year=2025)
        self.assertTrue(s.fill_all())
        self.assertEqual(s.total(), 15 * 9)
        s.pointer_down(date(2025, 1, 16))
        s.pointer_up()
        self.assertEqual(s.count(date(2025, 1, 16)), 0)


class TestCollaborators(unittest.TestCase):
    def test_synthesize_success(self) -> None:
        s = _session()
        s.pointer_down(date(2024, 3, 4))
        s.pointer_up()
        seen = []

        def backend(payload):
            seen.extend(payload)
            return SynthesisResult("/tmp/repo", len(payload))

        result = s.synthesize(backend)
        self.assertEqual(result.commit_count, 1)
        self.assertEqual(seen, [{"date": "2024-03-04", "count": 1}])

    def test_collaborator_failure_is_a_notice(self) -> None:
        s = _session()

        def backend(payload):
            raise CollaboratorError("remote rejected the push")

        with self.assertLogs("editor", level="ERROR"):
            self.assertIsNone(s.synthesize(backend))
        self.assertEqual(s.last_notice, "remote rejected the push")

        with self.assertLogs("editor", level="ERROR"):
            self.assertIsNone(s.export(backend))

    def test_export_returns_path(self) -> None:
        s = _session()
        self.assertEqual(s.export(lambda payload: "/tmp/out.json"), "/tmp/out.json")


if __name__ == "__main__":
    unittest.main()
