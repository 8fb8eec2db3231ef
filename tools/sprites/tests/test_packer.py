#!/usr/bin/env python3

from __future__ import annotations

import random
import unittest

from packages.iconsheet_core.sprites.errors import PackError
from packages.iconsheet_core.sprites.packer import (
    MAX_BIN_SIDE,
    GuillotineBin,
    PackItem,
    find_overlap,
    pack_rectangles,
)


def _random_items(seed: int, count: int) -> list[PackItem]:
    rng = random.Random(seed)
    return [PackItem(f"icon-{i}", rng.randint(1, 48), rng.randint(1, 48)) for i in range(count)]


class GuillotineBinTests(unittest.TestCase):
    def test_insert_prefers_smallest_free_slot(self) -> None:
        bin_ = GuillotineBin(64, 64)
        self.assertEqual(bin_.insert(48, 48), (0, 0))
        # Remaining: 16x48 slot on the right, 64x16 strip below.
        self.assertEqual(bin_.insert(16, 16), (48, 0))
        self.assertEqual(bin_.insert(16, 16), (48, 16))

    def test_insert_returns_none_when_full(self) -> None:
        bin_ = GuillotineBin(8, 8)
        self.assertEqual(bin_.insert(8, 8), (0, 0))
        self.assertIsNone(bin_.insert(1, 1))


class PackRectanglesTests(unittest.TestCase):
    def test_random_sets_never_overlap_and_fit_largest_item(self) -> None:
        for seed in range(12):
            items = _random_items(seed, 30)
            result = pack_rectangles(items)

            self.assertIsNone(find_overlap(items, result.placements), msg=f"seed={seed}")
            self.assertGreaterEqual(result.width, max(item.width for item in items))
            self.assertGreaterEqual(result.height, max(item.height for item in items))
            for item in items:
                x, y = result.placements[item.key]
                self.assertGreaterEqual(x, 0)
                self.assertGreaterEqual(y, 0)
                self.assertLessEqual(x + item.width, result.width)
                self.assertLessEqual(y + item.height, result.height)

    def test_packing_is_deterministic(self) -> None:
        items = _random_items(7, 40)
        first = pack_rectangles(items)
        second = pack_rectangles(list(items))
        self.assertEqual(first, second)

    def test_mixed_sizes_pack_densely(self) -> None:
        items = [PackItem("a", 32, 32), PackItem("b", 64, 64), PackItem("c", 16, 16)]
        result = pack_rectangles(items)

        self.assertIsNone(find_overlap(items, result.placements))
        self.assertEqual(result.placements["b"], (0, 0))
        used_right = max(result.placements[i.key][0] + i.width for i in items)
        used_bottom = max(result.placements[i.key][1] + i.height for i in items)
        total = sum(i.width * i.height for i in items)
        self.assertLessEqual(used_right * used_bottom, 1.5 * total)

    def test_single_item_fills_bin_exactly(self) -> None:
        result = pack_rectangles([PackItem("dot", 10, 10)])
        self.assertEqual((result.width, result.height), (10, 10))
        self.assertEqual(result.placements["dot"], (0, 0))

    def test_long_thin_item_widens_bin(self) -> None:
        items = [PackItem("bar", 200, 2), PackItem("dot", 4, 4)]
        result = pack_rectangles(items)
        self.assertGreaterEqual(result.width, 200)
        self.assertIsNone(find_overlap(items, result.placements))

    def test_tall_item_sizes_bin_before_first_attempt(self) -> None:
        with self.assertLogs("iconsheet_core.sprites.packer", level="INFO") as logs:
            result = pack_rectangles([PackItem("pole", 2, 300)])

        self.assertGreaterEqual(result.height, 300)
        self.assertGreaterEqual(result.width, 2)
        self.assertTrue(any("after 1 attempt(s)" in line for line in logs.output))

    def test_spacing_leaves_gutter_between_items(self) -> None:
        items = [PackItem(f"sq{i}", 8, 8) for i in range(4)]
        result = pack_rectangles(items, spacing=2)

        spaced = [PackItem(item.key, item.width + 2, item.height + 2) for item in items]
        self.assertIsNone(find_overlap(spaced, result.placements))

    def test_rejects_non_positive_sizes(self) -> None:
        for width, height in ((0, 4), (4, 0), (-1, 3)):
            with self.assertRaises(PackError) as ctx:
                pack_rectangles([PackItem("bad", width, height)])
            self.assertEqual(ctx.exception.error_code, "invalid_size")
            self.assertEqual(ctx.exception.name, "bad")

    def test_rejects_empty_and_duplicate_input(self) -> None:
        with self.assertRaises(PackError) as ctx:
            pack_rectangles([])
        self.assertEqual(ctx.exception.error_code, "empty")

        with self.assertRaises(PackError) as ctx:
            pack_rectangles([PackItem("a", 1, 1), PackItem("a", 2, 2)])
        self.assertEqual(ctx.exception.error_code, "duplicate_key")

    def test_rejects_negative_spacing(self) -> None:
        with self.assertRaises(PackError) as ctx:
            pack_rectangles([PackItem("a", 1, 1)], spacing=-1)
        self.assertEqual(ctx.exception.error_code, "invalid_spacing")

    def test_oversized_item_fails_instead_of_growing_forever(self) -> None:
        with self.assertRaises(PackError) as ctx:
            pack_rectangles([PackItem("huge", MAX_BIN_SIDE + 1, 1)])
        self.assertEqual(ctx.exception.error_code, "bin_too_large")


class FindOverlapTests(unittest.TestCase):
    def test_detects_intersection(self) -> None:
        items = [PackItem("a", 10, 10), PackItem("b", 10, 10)]
        self.assertEqual(find_overlap(items, {"a": (0, 0), "b": (5, 5)}), ("a", "b"))

    def test_touching_edges_are_not_overlaps(self) -> None:
        items = [PackItem("a", 10, 10), PackItem("b", 10, 10)]
        self.assertIsNone(find_overlap(items, {"a": (0, 0), "b": (10, 0)}))


if __name__ == "__main__":
    unittest.main()
