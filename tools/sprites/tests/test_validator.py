#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.iconsheet_core.sprites.validator import validate_spritesheet


def _entry(x: int, y: int, width: int = 10, height: int = 10, **extra) -> dict:
    return {"width": width, "height": height, "x": x, "y": y, "pixelRatio": 1, "sdf": False, **extra}


class SpritesheetValidatorTests(unittest.TestCase):
    def test_clean_index_passes(self) -> None:
        index = {"a": _entry(0, 0), "b": _entry(10, 0), "c": _entry(0, 0)}
        errors, warnings, summary = validate_spritesheet(index, width=20, height=10)

        self.assertEqual(errors, [])
        self.assertEqual(warnings, [])
        self.assertEqual(summary["sprites"], 3)
        self.assertEqual(summary["unique_rectangles"], 2)
        self.assertEqual(summary["aliases"], 1)
        self.assertEqual(summary["coverage_ratio"], 1.0)

    def test_overlap_is_reported(self) -> None:
        index = {"a": _entry(0, 0), "b": _entry(5, 5)}
        errors, _, _ = validate_spritesheet(index, width=20, height=20)
        self.assertTrue(any("'a' and 'b' overlap" in e for e in errors))

    def test_out_of_bounds_is_reported(self) -> None:
        errors, _, _ = validate_spritesheet({"a": _entry(15, 0)}, width=20, height=10)
        self.assertTrue(any("falls outside the 20x10 sheet" in e for e in errors))

    def test_malformed_entries_are_reported(self) -> None:
        index = {"a": {"width": 0, "height": 4, "x": 0, "y": 0, "pixelRatio": 1}}
        errors, _, _ = validate_spritesheet(index, width=4, height=4)
        self.assertTrue(any("Sprite 'a' field 'width'" in e for e in errors))

        errors, _, summary = validate_spritesheet([], width=4, height=4)
        self.assertEqual(len(errors), 1)
        self.assertEqual(summary, {})

    def test_mixed_sheets_warn(self) -> None:
        index = {"a": _entry(0, 0), "b": _entry(10, 0, pixelRatio=2, sdf=True)}
        errors, warnings, _ = validate_spritesheet(index, width=20, height=10)

        self.assertEqual(errors, [])
        self.assertEqual(len(warnings), 2)


if __name__ == "__main__":
    unittest.main()
