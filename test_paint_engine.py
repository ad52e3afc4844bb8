import unittest
from datetime import date

from contributions import HistoryStack, OverrideStore, build_year_records
from paint_engine import SECONDARY, Brush, PaintEngine, PenMode, Tool, next_auto_intensity


def _engine(today: date = date(2025, 2, 1), base=()) -> PaintEngine:
    store = OverrideStore(build_year_records(base, 2024), 2024, lambda: today)
    return PaintEngine(store, HistoryStack())


class TestStrokeRules(unittest.TestCase):
    def test_auto_ladder(self) -> None:
        seen = []
        value = 0
        for _ in range(7):
            value = next_auto_intensity(value)
            seen.append(value)
        self.assertEqual(seen, [1, 3, 6, 9, 9, 9, 9])
        self.assertEqual(next_auto_intensity(2), 3)
        self.assertEqual(next_auto_intensity(12), 12)

    def test_auto_pen_scenario_leap_year(self) -> None:
        engine = _engine()
        d = date(2024, 3, 1)
        observed = []
        for _ in range(5):
            engine.pointer_down(d)
            engine.pointer_up()
            observed.append(engine.store.effective_count(d))
        self.assertEqual(observed, [1, 3, 6, 9, 9])

    def test_manual_pen_overwrites_and_can_decrease(self) -> None:
        engine = _engine()
        d = date(2024, 8, 8)
        engine.store.set(d, 9)
        engine.brush.pen_mode = PenMode.MANUAL
        engine.brush.set_intensity(3)
        engine.pointer_down(d)
        engine.pointer_up()
        self.assertEqual(engine.store.effective_count(d), 3)
        self.assertFalse(engine.brush.set_intensity(4))
        self.assertEqual(engine.brush.intensity, 3)

    def test_eraser_restores_base(self) -> None:
        engine = _engine(base=[{"date": "2024-04-04", "count": 5}])
        d = date(2024, 4, 4)
        engine.store.set(d, 9)
        engine.brush.tool = Tool.ERASER
        engine.pointer_down(d)
        engine.pointer_up()
        self.assertEqual(engine.store.effective_count(d), 5)

    def test_auto_pen_never_lowers_base(self) -> None:
        engine = _engine(base=[{"date": "2024-04-04", "count": 12}])
        d = date(2024, 4, 4)
        self.assertFalse(engine.pointer_down(d))
        engine.pointer_up()
        self.assertEqual(engine.store.effective_count(d), 12)
        self.assertFalse(engine.history.can_undo)


class TestDragPainting(unittest.TestCase):
    def test_stroke_is_one_undo_step(self) -> None:
        engine = _engine()
        days = [date(2024, 5, d) for d in (1, 2, 3)]
        engine.pointer_down(days[0])
        self.assertTrue(engine.is_painting)
        engine.pointer_enter(days[1])
        engine.pointer_enter(days[1])
        engine.pointer_enter(days[2])
        self.assertTrue(engine.pointer_up())
        self.assertFalse(engine.is_painting)
        self.assertEqual(engine.store.snapshot(), {d: 1 for d in days})

        restored = engine.history.undo(engine.store.snapshot())
        self.assertEqual(restored, {})

    def test_reentering_same_cell_is_noop(self) -> None:
        engine = _engine()
        d = date(2024, 5, 1)
        engine.pointer_down(d)
        self.assertFalse(engine.pointer_enter(d))
        engine.pointer_up()
        self.assertEqual(engine.store.effective_count(d), 1)

    def test_enter_without_stroke_does_nothing(self) -> None:
        engine = _engine()
        self.assertFalse(engine.pointer_enter(date(2024, 5, 1)))
        self.assertFalse(engine.pointer_up())
        self.assertEqual(len(engine.store), 0)

    def test_secondary_button_toggles_tool(self) -> None:
        engine = _engine()
        d = date(2024, 5, 1)
        engine.pointer_down(d, SECONDARY)
        self.assertIs(engine.brush.tool, Tool.ERASER)
        self.assertFalse(engine.is_painting)
        self.assertEqual(len(engine.store), 0)
        engine.pointer_down(d, SECONDARY)
        self.assertIs(engine.brush.tool, Tool.PEN)

    def test_future_dates_skipped_mid_stroke(self) -> None:
        engine = _engine(today=date(2024, 3, 10))
        engine.pointer_down(date(2024, 3, 10))
        engine.pointer_enter(date(2024, 3, 11))
        engine.pointer_enter(date(2024, 3, 12))
        engine.pointer_up()
        self.assertEqual(engine.store.snapshot(), {date(2024, 3, 10): 1})

    def test_shared_brush(self) -> None:
        brush = Brush(tool=Tool.PEN, pen_mode=PenMode.MANUAL, intensity=6)
        store = OverrideStore(build_year_records((), 2024), 2024, lambda: date(2025, 1, 1))
        self.assertTrue(brush.apply(store, date(2024, 1, 1)))
        self.assertFalse(brush.apply(store, date(2024, 1, 1)))
        self.assertEqual(store.get(date(2024, 1, 1)), 6)


if __name__ == "__main__":
    unittest.main()
