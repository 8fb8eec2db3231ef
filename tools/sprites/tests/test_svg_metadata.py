#!/usr/bin/env python3

from __future__ import annotations

import unittest
import xml.etree.ElementTree as ET

from packages.iconsheet_core.sprites.bitmap import Rect
from packages.iconsheet_core.sprites.svg_metadata import (
    parse_stretch_metadata,
    parse_transform,
    path_points,
)

SVG_NS = "xmlns='http://www.w3.org/2000/svg'"


def _svg(body: str, attrs: str = "width='20' height='20'") -> str:
    return f"<svg {SVG_NS} {attrs}>{body}</svg>"


class StretchMetadataTests(unittest.TestCase):
    def test_content_and_axis_spans(self) -> None:
        svg = _svg(
            "<rect width='20' height='20' fill='#fff'/>"
            "<rect id='mapbox-content' x='2' y='5' width='16' height='13' fill='none'/>"
            "<path id='mapbox-stretch-x' d='M4,0 H16' stroke='none'/>"
            "<path id='mapbox-stretch-y' d='M0,5 V16' stroke='none'/>"
        )
        meta = parse_stretch_metadata(svg)

        self.assertEqual(meta.content, Rect(2, 5, 18, 18))
        self.assertEqual(meta.stretch_x, (Rect(4, 0, 16, 0),))
        self.assertEqual(meta.stretch_y, (Rect(0, 5, 0, 16),))

    def test_numbered_stretch_spans_stop_at_first_gap(self) -> None:
        svg = _svg(
            "<rect id='mapbox-stretch-x-1' x='1' y='0' width='2' height='1'/>"
            "<rect id='mapbox-stretch-x-2' x='6' y='0' width='3' height='1'/>"
            "<rect id='mapbox-stretch-x-4' x='12' y='0' width='3' height='1'/>"
        )
        meta = parse_stretch_metadata(svg)

        self.assertEqual([(r.left, r.right) for r in meta.stretch_x], [(1, 3), (6, 9)])
        self.assertIsNone(meta.stretch_y)

    def test_shorthand_fills_missing_axes(self) -> None:
        svg = _svg(
            "<rect id='mapbox-stretch' x='3' y='4' width='10' height='8'/>"
            "<rect id='mapbox-stretch-y' x='0' y='1' width='1' height='2'/>"
        )
        meta = parse_stretch_metadata(svg)

        self.assertEqual(meta.stretch_x, (Rect(3, 4, 13, 12),))
        self.assertEqual(meta.stretch_y, (Rect(0, 1, 1, 3),))

    def test_transforms_and_viewbox_are_applied(self) -> None:
        svg = _svg(
            "<g transform='translate(2 3)'><rect id='mapbox-content' x='1' y='1' width='4' height='4'/></g>",
            attrs="width='20' height='20' viewBox='0 0 10 10'",
        )
        meta = parse_stretch_metadata(svg)
        self.assertEqual(meta.content, Rect(6, 8, 14, 16))

    def test_empty_metadata_is_ignored(self) -> None:
        meta = parse_stretch_metadata(_svg("<path id='mapbox-content'/>"))
        self.assertIsNone(meta.content)

    def test_invalid_metadata_is_ignored(self) -> None:
        meta = parse_stretch_metadata(_svg("<path id='mapbox-content' d='foo'/>"))
        self.assertIsNone(meta.content)

    def test_hidden_metadata_is_ignored(self) -> None:
        meta = parse_stretch_metadata(_svg("<path id='mapbox-content' d='M5,5l2,0' style='display:none'/>"))
        self.assertIsNone(meta.content)

    def test_metadata_inside_defs_is_ignored(self) -> None:
        meta = parse_stretch_metadata(_svg("<defs><rect id='mapbox-content' width='4' height='4'/></defs>"))
        self.assertIsNone(meta.content)

    def test_plain_icon_has_no_metadata(self) -> None:
        meta = parse_stretch_metadata(_svg("<circle cx='10' cy='10' r='8'/>"))
        self.assertIsNone(meta.content)
        self.assertIsNone(meta.stretch_x)
        self.assertIsNone(meta.stretch_y)

    def test_malformed_xml_raises_parse_error(self) -> None:
        with self.assertRaises(ET.ParseError):
            parse_stretch_metadata("<svg><rect></svg>")


def _box(points) -> tuple[float, float, float, float]:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


class GeometryTests(unittest.TestCase):
    def assertBoxAlmostEqual(self, actual, expected) -> None:
        for got, want in zip(actual, expected):
            self.assertAlmostEqual(got, want, places=6, msg=f"{actual} != {expected}")

    def test_relative_path_commands(self) -> None:
        self.assertEqual(_box(path_points("m5,5 l2,0 v3 h-1 z")), (5, 5, 7, 8))

    def test_implicit_lineto_after_moveto(self) -> None:
        self.assertEqual(_box(path_points("M0 0 10 0 10 10")), (0, 0, 10, 10))

    def test_cubic_box_uses_curve_extremes_not_control_points(self) -> None:
        self.assertBoxAlmostEqual(_box(path_points("M0,10 C0,-30 20,-30 20,10 Z")), (0, -20, 20, 10))

    def test_smooth_cubic_reflects_previous_control_point(self) -> None:
        # The S segment mirrors (10,-30) around (10,10) into (10,50).
        box = _box(path_points("M0,10 C0,-30 10,-30 10,10 S20,50 20,10"))
        self.assertAlmostEqual(box[1], -20)
        self.assertAlmostEqual(box[3], 40)

    def test_quadratic_box_uses_curve_extreme(self) -> None:
        self.assertBoxAlmostEqual(_box(path_points("M0,0 Q10,20 20,0")), (0, 0, 20, 10))

    def test_arc_box_follows_sweep_direction(self) -> None:
        self.assertBoxAlmostEqual(_box(path_points("M0,10 A10,10 0 0 1 20,10")), (0, 0, 20, 10))
        self.assertBoxAlmostEqual(_box(path_points("M0,10 A10,10 0 0 0 20,10")), (0, 10, 20, 20))

    def test_undersized_arc_radii_are_scaled_up(self) -> None:
        self.assertBoxAlmostEqual(_box(path_points("M0,0 A1,1 0 0 1 10,0")), (0, -5, 10, 0))

    def test_lone_moveto_has_no_extent(self) -> None:
        self.assertEqual(path_points("M3,4"), [])

    def test_invalid_path_raises(self) -> None:
        for data in ("foo", "L1 1", "M1"):
            with self.assertRaises(ValueError, msg=data):
                path_points(data)

    def test_transform_composition(self) -> None:
        self.assertEqual(parse_transform("translate(10,20) scale(2)"), (2.0, 0.0, 0.0, 2.0, 10.0, 20.0))
        self.assertEqual(parse_transform(None), (1.0, 0.0, 0.0, 1.0, 0.0, 0.0))


class CurvedMetadataTests(unittest.TestCase):
    def test_curved_content_box_is_exact(self) -> None:
        meta = parse_stretch_metadata(_svg("<path id='mapbox-content' d='M0,10 C0,-30 20,-30 20,10 Z'/>"))
        for got, want in zip(
            (meta.content.left, meta.content.top, meta.content.right, meta.content.bottom),
            (0, -20, 20, 10),
        ):
            self.assertAlmostEqual(got, want)

    def test_rotated_circle_keeps_tight_box(self) -> None:
        meta = parse_stretch_metadata(
            _svg("<g transform='rotate(45 10 10)'><circle id='mapbox-content' cx='10' cy='10' r='5'/></g>")
        )
        for got, want in zip(
            (meta.content.left, meta.content.top, meta.content.right, meta.content.bottom),
            (5, 5, 15, 15),
        ):
            self.assertAlmostEqual(got, want)


if __name__ == "__main__":
    unittest.main()
