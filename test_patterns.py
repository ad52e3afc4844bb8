import unittest

from patterns import (
    CATEGORIES,
    GLYPH_HEIGHT,
    GLYPH_WIDTH,
    get_pattern_by_id,
    pattern_ids,
    patterns_by_category,
    text_pattern,
)


class TestGlyphTables(unittest.TestCase):
    def test_every_glyph_is_7x5(self) -> None:
        for pid in pattern_ids():
            matrix = get_pattern_by_id(pid)
            self.assertEqual(len(matrix), GLYPH_HEIGHT, pid)
            for row in matrix:
                self.assertEqual(len(row), GLYPH_WIDTH, pid)
            self.assertTrue(any(any(row) for row in matrix), pid)

    def test_categories(self) -> None:
        self.assertEqual(set(CATEGORIES), {"uppercase", "lowercase", "numbers", "symbols"})
        self.assertEqual(len(pattern_ids("uppercase")), 26)
        self.assertEqual(len(pattern_ids("lowercase")), 26)
        self.assertEqual(pattern_ids("numbers"), [str(i) for i in range(10)])
        self.assertIn("heart", pattern_ids("symbols"))
        self.assertEqual(pattern_ids("emoji"), [])
        self.assertEqual(len(patterns_by_category("numbers")), 10)

    def test_unknown_id(self) -> None:
        self.assertIsNone(get_pattern_by_id("nope"))

    def test_letter_l(self) -> None:
        self.assertEqual(get_pattern_by_id("L")[-1], [1, 1, 1, 1, 1])
        self.assertEqual(get_pattern_by_id("L")[0], [1, 0, 0, 0, 0])


class TestTextPattern(unittest.TestCase):
    def test_single_glyph(self) -> None:
        self.assertEqual(text_pattern("H"), get_pattern_by_id("H"))

    def test_spacing_and_trailing_trim(self) -> None:
        # I has an empty last column, which is trimmed
        pattern = text_pattern("HI")
        self.assertEqual(len(pattern), 7)
        self.assertEqual(len(pattern[0]), 5 + 1 + 4)
        self.assertTrue(all(row[5] == 0 for row in pattern))

    def test_space_is_blank_glyph(self) -> None:
        self.assertEqual(len(text_pattern("A B")[0]), 5 + 1 + 5 + 1 + 5)

    def test_unknown_characters_skipped(self) -> None:
        self.assertEqual(text_pattern("A~"), text_pattern("A"))
        self.assertIsNone(text_pattern("~~"))
        self.assertIsNone(text_pattern("   "))

    def test_clipped_to_year_width(self) -> None:
        self.assertEqual(len(text_pattern("H" * 10)[0]), 52)


if __name__ == "__main__":
    unittest.main()
