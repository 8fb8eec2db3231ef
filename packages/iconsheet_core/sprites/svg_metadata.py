"""Stretchable-icon metadata read from SVG element ids.

Map styles can stretch an icon around its text. The stretchable spans and the
content box are declared inside the SVG as elements with well-known ids:

* ``mapbox-content``: box the label text is fitted into.
* ``mapbox-stretch-x``, ``mapbox-stretch-x-1``, ``-2``...: horizontal spans.
* ``mapbox-stretch-y``, ``mapbox-stretch-y-1``, ``-2``...: vertical spans.
* ``mapbox-stretch``: shorthand for both axes, used only when an axis has no
  dedicated ids.

Boxes are reported in the SVG's root user space (after ancestor transforms and
the root viewBox), i.e. in pixels at pixel ratio 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator
import math
import re
import xml.etree.ElementTree as ET

from .bitmap import Rect

Affine = tuple[float, float, float, float, float, float]
IDENTITY: Affine = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
Point = tuple[float, float]
TAU = 2 * math.pi

CONTENT_ID = "mapbox-content"
STRETCH_ID = "mapbox-stretch"

# Containers whose children are never painted directly.
NON_RENDERED = {"defs", "clipPath", "mask", "marker", "pattern", "symbol", "linearGradient", "radialGradient"}

_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_PATH_TOKEN_RE = re.compile(r"[MmLlHhVvCcSsQqTtAaZz]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_TRANSFORM_RE = re.compile(r"(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)")
_PATH_ARGS = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7, "Z": 0}


@dataclass(frozen=True)
class StretchMetadata:
    content: Rect | None = None
    stretch_x: tuple[Rect, ...] | None = None
    stretch_y: tuple[Rect, ...] | None = None


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _numbers(text: str | None) -> list[float]:
    return [float(v) for v in _NUMBER_RE.findall(text or "")]


def _length(raw: str | None) -> float | None:
    if raw is None:
        return None
    value = raw.strip()
    if value.endswith("px"):
        value = value[:-2]
    try:
        return float(value)
    except ValueError:
        return None


def _multiply(m: Affine, n: Affine) -> Affine:
    a1, b1, c1, d1, e1, f1 = m
    a2, b2, c2, d2, e2, f2 = n
    return (
        a1 * a2 + c1 * b2,
        b1 * a2 + d1 * b2,
        a1 * c2 + c1 * d2,
        b1 * c2 + d1 * d2,
        a1 * e2 + c1 * f2 + e1,
        b1 * e2 + d1 * f2 + f1,
    )


def _apply(m: Affine, x: float, y: float) -> tuple[float, float]:
    a, b, c, d, e, f = m
    return a * x + c * y + e, b * x + d * y + f


def parse_transform(text: str | None) -> Affine:
    result = IDENTITY
    for name, raw_args in _TRANSFORM_RE.findall(text or ""):
        args = _numbers(raw_args)
        if name == "matrix" and len(args) == 6:
            step: Affine = (args[0], args[1], args[2], args[3], args[4], args[5])
        elif name == "translate" and args:
            step = (1.0, 0.0, 0.0, 1.0, args[0], args[1] if len(args) > 1 else 0.0)
        elif name == "scale" and args:
            step = (args[0], 0.0, 0.0, args[1] if len(args) > 1 else args[0], 0.0, 0.0)
        elif name == "rotate" and args:
            rad = math.radians(args[0])
            cos, sin = math.cos(rad), math.sin(rad)
            step = (cos, sin, -sin, cos, 0.0, 0.0)
            if len(args) == 3:
                cx, cy = args[1], args[2]
                step = _multiply(_multiply((1.0, 0.0, 0.0, 1.0, cx, cy), step), (1.0, 0.0, 0.0, 1.0, -cx, -cy))
        elif name == "skewX" and args:
            step = (1.0, 0.0, math.tan(math.radians(args[0])), 1.0, 0.0, 0.0)
        elif name == "skewY" and args:
            step = (1.0, math.tan(math.radians(args[0])), 0.0, 1.0, 0.0, 0.0)
        else:
            continue
        result = _multiply(result, step)
    return result


def _style_value(el: ET.Element, prop: str) -> str | None:
    for decl in (el.get("style") or "").split(";"):
        key, _, value = decl.partition(":")
        if key.strip() == prop:
            return value.strip()
    return el.get(prop)


def _is_hidden(el: ET.Element) -> bool:
    return _style_value(el, "display") == "none" or _style_value(el, "visibility") in {"hidden", "collapse"}


def _root_transform(root: ET.Element) -> Affine:
    view_box = _numbers(root.get("viewBox"))
    if len(view_box) != 4 or view_box[2] <= 0 or view_box[3] <= 0:
        return IDENTITY
    min_x, min_y, vb_w, vb_h = view_box
    width = _length(root.get("width")) or vb_w
    height = _length(root.get("height")) or vb_h

    # Default preserveAspectRatio: xMidYMid meet.
    scale = min(width / vb_w, height / vb_h)
    tx = (width - vb_w * scale) / 2 - min_x * scale
    ty = (height - vb_h * scale) / 2 - min_y * scale
    return (scale, 0.0, 0.0, scale, tx, ty)


def _linear(m: Affine, x: float, y: float) -> Point:
    a, b, c, d, _, _ = m
    return a * x + c * y, b * x + d * y


def _quadratic_roots(a: float, b: float, c: float) -> list[float]:
    """Roots of ``a t² + b t + c`` strictly inside (0, 1)."""

    if abs(a) < 1e-12:
        roots = [] if abs(b) < 1e-12 else [-c / b]
    else:
        disc = b * b - 4 * a * c
        if disc < 0:
            return []
        sq = math.sqrt(disc)
        roots = [(-b + sq) / (2 * a), (-b - sq) / (2 * a)]
    return [t for t in roots if 0 < t < 1]


def _cubic_at(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    mt = 1 - t
    w0, w1, w2, w3 = mt * mt * mt, 3 * mt * mt * t, 3 * mt * t * t, t * t * t
    return (
        w0 * p0[0] + w1 * p1[0] + w2 * p2[0] + w3 * p3[0],
        w0 * p0[1] + w1 * p1[1] + w2 * p2[1] + w3 * p3[1],
    )


def _cubic_extent(p0: Point, p1: Point, p2: Point, p3: Point) -> list[Point]:
    out = [p0, p3]
    for axis in (0, 1):
        a = -p0[axis] + 3 * p1[axis] - 3 * p2[axis] + p3[axis]
        b = 2 * (p0[axis] - 2 * p1[axis] + p2[axis])
        c = p1[axis] - p0[axis]
        out.extend(_cubic_at(p0, p1, p2, p3, t) for t in _quadratic_roots(a, b, c))
    return out


def _quad_extent(p0: Point, p1: Point, p2: Point) -> list[Point]:
    out = [p0, p2]
    for axis in (0, 1):
        denom = p0[axis] - 2 * p1[axis] + p2[axis]
        if abs(denom) < 1e-12:
            continue
        t = (p0[axis] - p1[axis]) / denom
        if 0 < t < 1:
            mt = 1 - t
            out.append(
                (
                    mt * mt * p0[0] + 2 * mt * t * p1[0] + t * t * p2[0],
                    mt * mt * p0[1] + 2 * mt * t * p1[1] + t * t * p2[1],
                )
            )
    return out


def _in_sweep(theta: float, start: float, sweep: float) -> bool:
    if sweep >= 0:
        return (theta - start) % TAU <= sweep
    return (start - theta) % TAU <= -sweep


def _ellipse_extent(
    m: Affine, center: Point, u: Point, v: Point, start: float = 0.0, sweep: float = TAU
) -> list[Point]:
    """Axis extremes of ``center + u cos θ + v sin θ`` for θ in the sweep, after ``m``.

    An affine image of an ellipse is still of that form, so solving in device
    space keeps the box exact under rotation and skew.
    """

    cx, cy = _apply(m, *center)
    ux, uy = _linear(m, *u)
    vx, vy = _linear(m, *v)
    out: list[Point] = []
    for base in (math.atan2(vx, ux), math.atan2(vy, uy)):
        for theta in (base, base + math.pi):
            if _in_sweep(theta, start, sweep):
                cos, sin = math.cos(theta), math.sin(theta)
                out.append((cx + ux * cos + vx * sin, cy + uy * cos + vy * sin))
    return out


def _arc_extent(
    m: Affine,
    p0: Point,
    rx: float,
    ry: float,
    rotation: float,
    large_arc: bool,
    sweep_flag: bool,
    p1: Point,
) -> list[Point]:
    ends = [_apply(m, *p0), _apply(m, *p1)]
    rx, ry = abs(rx), abs(ry)
    if rx == 0 or ry == 0 or p0 == p1:
        return ends

    # Endpoint to center parameterization (SVG 1.1 implementation notes, F.6.5).
    phi = math.radians(rotation)
    cos_phi, sin_phi = math.cos(phi), math.sin(phi)
    dx, dy = (p0[0] - p1[0]) / 2, (p0[1] - p1[1]) / 2
    x1 = cos_phi * dx + sin_phi * dy
    y1 = -sin_phi * dx + cos_phi * dy

    scale = (x1 * x1) / (rx * rx) + (y1 * y1) / (ry * ry)
    if scale > 1:
        rx, ry = rx * math.sqrt(scale), ry * math.sqrt(scale)

    num = rx * rx * ry * ry - rx * rx * y1 * y1 - ry * ry * x1 * x1
    den = rx * rx * y1 * y1 + ry * ry * x1 * x1
    coef = math.sqrt(max(0.0, num / den)) if den else 0.0
    if large_arc == sweep_flag:
        coef = -coef
    cx1 = coef * rx * y1 / ry
    cy1 = -coef * ry * x1 / rx
    center = (
        cos_phi * cx1 - sin_phi * cy1 + (p0[0] + p1[0]) / 2,
        sin_phi * cx1 + cos_phi * cy1 + (p0[1] + p1[1]) / 2,
    )

    start = math.atan2((y1 - cy1) / ry, (x1 - cx1) / rx)
    end = math.atan2((-y1 - cy1) / ry, (-x1 - cx1) / rx)
    sweep = end - start
    if sweep_flag and sweep < 0:
        sweep += TAU
    elif not sweep_flag and sweep > 0:
        sweep -= TAU

    u = (rx * cos_phi, rx * sin_phi)
    v = (-ry * sin_phi, ry * cos_phi)
    return ends + _ellipse_extent(m, center, u, v, start, sweep)


def _reflect(point: Point, ctrl: Point | None) -> Point:
    if ctrl is None:
        return point
    return 2 * point[0] - ctrl[0], 2 * point[1] - ctrl[1]


def path_points(d: str, transform: Affine = IDENTITY) -> list[Point]:
    """Points whose bounding box is the exact bounding box of a path.

    Segment end points are included along with the extremes of every curve and
    arc, solved after ``transform`` is applied. A lone moveto draws nothing and
    contributes nothing. Raises ``ValueError`` for data that is not a
    well-formed path.
    """

    leftover = _PATH_TOKEN_RE.sub(" ", d).replace(",", " ").strip()
    if leftover:
        raise ValueError(f"Unexpected path data: {leftover!r}")

    tokens: list[str | float] = []
    for tok in _PATH_TOKEN_RE.findall(d):
        tokens.append(tok if tok.isalpha() else float(tok))

    def dev(p: Point) -> Point:
        return _apply(transform, *p)

    points: list[Point] = []
    cmd: str | None = None
    cur: Point = (0.0, 0.0)
    start: Point = (0.0, 0.0)
    # Last control point, kept only while the previous segment was a cubic ("C") or quadratic ("Q").
    ctrl: Point | None = None
    ctrl_kind: str | None = None
    moved = False
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if isinstance(tok, str):
            cmd = tok
            i += 1
            if cmd in "Zz":
                cur = start
                ctrl_kind = None
                continue
        if cmd is None or (not moved and cmd not in "Mm"):
            raise ValueError("Path data must start with a moveto")
        if cmd in "Zz":
            raise ValueError("Numbers after closepath")

        upper = cmd.upper()
        count = _PATH_ARGS[upper]
        args = tokens[i:i + count]
        if len(args) < count or any(isinstance(a, str) for a in args):
            raise ValueError(f"Path command {cmd} needs {count} numbers")
        i += count
        values = [float(a) for a in args]
        ox, oy = cur if cmd.islower() else (0.0, 0.0)

        def at(k: int) -> Point:
            return values[k] + ox, values[k + 1] + oy

        kind: str | None = None
        if upper == "M":
            end = at(0)
            start = end
            moved = True
            cmd = "l" if cmd == "m" else "L"
        elif upper == "L":
            end = at(0)
            points.extend((dev(cur), dev(end)))
        elif upper == "H":
            end = (values[0] + ox, cur[1])
            points.extend((dev(cur), dev(end)))
        elif upper == "V":
            end = (cur[0], values[0] + oy)
            points.extend((dev(cur), dev(end)))
        elif upper in "CS":
            if upper == "C":
                c1, c2, end = at(0), at(2), at(4)
            else:
                c1 = _reflect(cur, ctrl if ctrl_kind == "C" else None)
                c2, end = at(0), at(2)
            points.extend(_cubic_extent(dev(cur), dev(c1), dev(c2), dev(end)))
            ctrl, kind = c2, "C"
        elif upper in "QT":
            if upper == "Q":
                q, end = at(0), at(2)
            else:
                q = _reflect(cur, ctrl if ctrl_kind == "Q" else None)
                end = at(0)
            points.extend(_quad_extent(dev(cur), dev(q), dev(end)))
            ctrl, kind = q, "Q"
        else:
            end = at(5)
            points.extend(
                _arc_extent(transform, cur, values[0], values[1], values[2], values[3] != 0, values[4] != 0, end)
            )

        ctrl_kind = kind
        cur = end
    return points


def _shape_points(el: ET.Element, transform: Affine) -> list[Point]:
    """Device-space points bounding a basic shape under ``transform``."""

    tag = _local(el.tag)
    if tag == "rect":
        x = _length(el.get("x")) or 0.0
        y = _length(el.get("y")) or 0.0
        w = _length(el.get("width")) or 0.0
        h = _length(el.get("height")) or 0.0
        if w <= 0 or h <= 0:
            return []
        return [_apply(transform, px, py) for px, py in ((x, y), (x + w, y), (x, y + h), (x + w, y + h))]
    if tag == "line":
        return [
            _apply(transform, _length(el.get("x1")) or 0.0, _length(el.get("y1")) or 0.0),
            _apply(transform, _length(el.get("x2")) or 0.0, _length(el.get("y2")) or 0.0),
        ]
    if tag in {"polyline", "polygon"}:
        values = _numbers(el.get("points"))
        return [_apply(transform, x, y) for x, y in zip(values[::2], values[1::2])]
    if tag in {"circle", "ellipse"}:
        cx = _length(el.get("cx")) or 0.0
        cy = _length(el.get("cy")) or 0.0
        if tag == "circle":
            rx = ry = _length(el.get("r")) or 0.0
        else:
            rx = _length(el.get("rx")) or 0.0
            ry = _length(el.get("ry")) or 0.0
        if rx <= 0 or ry <= 0:
            return []
        return _ellipse_extent(transform, (cx, cy), (rx, 0.0), (0.0, ry))
    if tag == "path":
        try:
            return path_points(el.get("d") or "", transform)
        except ValueError:
            return []
    return []


def _visible_children(el: ET.Element) -> Iterator[ET.Element]:
    for child in el:
        if _local(child.tag) in NON_RENDERED or _is_hidden(child):
            continue
        yield child


def _collect_points(el: ET.Element, transform: Affine) -> Iterator[Point]:
    local = _multiply(transform, parse_transform(el.get("transform")))
    yield from _shape_points(el, local)
    for child in _visible_children(el):
        yield from _collect_points(child, local)


def _bbox(points: Iterable[Point]) -> Rect | None:
    pts = list(points)
    if not pts:
        return None
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    return Rect(min(xs), min(ys), max(xs), max(ys))


def _index_visible(root: ET.Element) -> dict[str, tuple[ET.Element, Affine]]:
    """Map element id → (element, transform of its parent space) for painted elements."""

    found: dict[str, tuple[ET.Element, Affine]] = {}

    def walk(el: ET.Element, parent_transform: Affine) -> None:
        el_id = el.get("id")
        if el_id and el_id not in found:
            found[el_id] = (el, parent_transform)
        local = _multiply(parent_transform, parse_transform(el.get("transform")))
        for child in _visible_children(el):
            walk(child, local)

    if not _is_hidden(root):
        for child in _visible_children(root):
            walk(child, _root_transform(root))
    return found


def _numbered_boxes(elements: dict[str, tuple[ET.Element, Affine]], prefix: str) -> list[Rect]:
    boxes: list[Rect] = []
    base = _element_bbox(elements, prefix)
    if base is not None:
        boxes.append(base)
    n = 1
    while True:
        box = _element_bbox(elements, f"{prefix}-{n}")
        if box is None:
            break
        boxes.append(box)
        n += 1
    return boxes


def _element_bbox(elements: dict[str, tuple[ET.Element, Affine]], el_id: str) -> Rect | None:
    hit = elements.get(el_id)
    if hit is None:
        return None
    el, transform = hit
    return _bbox(_collect_points(el, transform))


def parse_stretch_metadata(svg_text: str | bytes) -> StretchMetadata:
    """Read the content box and stretch spans declared in an SVG document.

    Raises ``xml.etree.ElementTree.ParseError`` for malformed XML.
    """

    root = ET.fromstring(svg_text)
    elements = _index_visible(root)

    shorthand = _element_bbox(elements, STRETCH_ID)
    stretch_x = _numbered_boxes(elements, f"{STRETCH_ID}-x")
    stretch_y = _numbered_boxes(elements, f"{STRETCH_ID}-y")
    if not stretch_x and shorthand is not None:
        stretch_x = [shorthand]
    if not stretch_y and shorthand is not None:
        stretch_y = [shorthand]

    return StretchMetadata(
        content=_element_bbox(elements, CONTENT_ID),
        stretch_x=tuple(stretch_x) or None,
        stretch_y=tuple(stretch_y) or None,
    )
