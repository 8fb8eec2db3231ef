#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.iconsheet_core.sprites.bitmap import Bitmap, ChannelMode
from packages.iconsheet_core.sprites.dedup import deduplicate
from packages.iconsheet_core.sprites.errors import InputError


def _solid(width: int, height: int, value: int = 255, mode: ChannelMode = ChannelMode.COLOR) -> Bitmap:
    return Bitmap(width, height, bytes([value]) * (width * height * mode.bytes_per_pixel), mode=mode)


class DeduplicateTests(unittest.TestCase):
    def test_identical_bitmaps_share_first_name(self) -> None:
        sprites = [("a", _solid(4, 4)), ("b", _solid(4, 4)), ("c", _solid(4, 4, 9))]
        result = deduplicate(sprites, unique=True)

        self.assertEqual([name for name, _ in result.unique], ["a", "c"])
        self.assertEqual(result.canonical, {"a": "a", "b": "a", "c": "c"})
        self.assertEqual(result.aliases(), {"a": ["b"]})

    def test_disabled_keeps_every_bitmap(self) -> None:
        sprites = [("a", _solid(4, 4)), ("b", _solid(4, 4))]
        result = deduplicate(sprites, unique=False)

        self.assertEqual([name for name, _ in result.unique], ["a", "b"])
        self.assertEqual(result.aliases(), {})

    def test_same_bytes_different_shape_are_distinct(self) -> None:
        sprites = [("wide", _solid(8, 2)), ("tall", _solid(2, 8))]
        result = deduplicate(sprites, unique=True)
        self.assertEqual(len(result.unique), 2)

    def test_same_bytes_different_mode_are_distinct(self) -> None:
        sprites = [
            ("color", _solid(2, 2, 0)),
            ("field", _solid(4, 4, 0, ChannelMode.SDF)),
        ]
        self.assertNotEqual(sprites[0][1].dedup_key(), sprites[1][1].dedup_key())

    def test_duplicate_names_are_rejected(self) -> None:
        with self.assertRaises(InputError) as ctx:
            deduplicate([("a", _solid(1, 1)), ("a", _solid(2, 2))])
        self.assertEqual(ctx.exception.error_code, "duplicate_name")
        self.assertEqual(ctx.exception.name, "a")

    def test_order_decides_canonical(self) -> None:
        sprites = [("z", _solid(3, 3)), ("m", _solid(3, 3))]
        result = deduplicate(sprites)
        self.assertEqual(result.canonical["m"], "z")


if __name__ == "__main__":
    unittest.main()
