"""Render SVG icon sources into bitmaps.

CairoSVG draws the vector source at the requested pixel ratio and Pillow
decodes the result. CairoSVG binds the Cairo C library when it is imported, so
the import is deferred to the first render; discovery, packing and the other
build stages work without it.
"""

from __future__ import annotations

from io import BytesIO
from logging import getLogger
from pathlib import Path
import gzip
import xml.etree.ElementTree as ET

from PIL import Image, UnidentifiedImageError

from .bitmap import Bitmap, ChannelMode, SourceImage, bitmap_from_image
from .errors import RasterizeError
from .sdf import distance_field
from .svg_metadata import parse_stretch_metadata

logger = getLogger("iconsheet_core.sprites.rasterize")

GZIP_MAGIC = b"\x1f\x8b"


def load_svg(path: Path) -> bytes:
    """Read an SVG file, transparently inflating gzip-compressed SVGZ data."""

    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise RasterizeError(f"Cannot read {path}: {exc}", error_code="unreadable_source") from exc

    if data.startswith(GZIP_MAGIC):
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as exc:
            raise RasterizeError(f"Corrupt SVGZ data in {path}", error_code="invalid_svgz") from exc
    return data


def render_svg(svg_data: bytes, *, pixel_ratio: float = 1.0, base_url: str | None = None) -> Image.Image:
    import cairosvg

    png_data = cairosvg.svg2png(bytestring=svg_data, scale=pixel_ratio, url=base_url)
    return Image.open(BytesIO(png_data)).convert("RGBA")


def rasterize_source(source: SourceImage) -> Bitmap:
    """Turn one ``SourceImage`` into a color or distance-field ``Bitmap``.

    Any failure is reported as a ``RasterizeError`` naming the source.
    """

    svg_data = load_svg(source.path)
    try:
        metadata = parse_stretch_metadata(svg_data)
    except ET.ParseError as exc:
        raise RasterizeError(
            f"Malformed SVG in '{source.name}': {exc}",
            error_code="invalid_svg",
            name=source.name,
        ) from exc

    try:
        # Relative <image> hrefs resolve against the SVG's own directory.
        image = render_svg(
            svg_data,
            pixel_ratio=source.pixel_ratio,
            base_url=Path(source.path).resolve().as_uri(),
        )
    except (ValueError, OSError, UnidentifiedImageError, ET.ParseError) as exc:
        raise RasterizeError(
            f"Cannot render '{source.name}': {exc}",
            error_code="render_failed",
            name=source.name,
        ) from exc

    if image.width == 0 or image.height == 0:
        raise RasterizeError(f"'{source.name}' renders to an empty image", error_code="empty_render", name=source.name)

    if source.sdf:
        image = distance_field(image)
        mode = ChannelMode.SDF
    else:
        mode = ChannelMode.COLOR

    logger.debug("[RASTER] %s -> %dx%d (%s)", source.name, image.width, image.height, mode.value)
    return bitmap_from_image(
        image,
        mode=mode,
        pixel_ratio=source.pixel_ratio,
        content=metadata.content,
        stretch_x=metadata.stretch_x,
        stretch_y=metadata.stretch_y,
    )
