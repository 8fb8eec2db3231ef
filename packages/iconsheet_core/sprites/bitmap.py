"""Canonical bitmap records shared by every stage of a spritesheet build.

A ``Bitmap`` is the only thing the packing core knows about an icon: raw pixel
bytes plus the channel mode, the pixel ratio it was rendered at and optional
stretch metadata. Color and distance-field icons share the same record and are
told apart by ``mode`` alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import hashlib

from PIL import Image

from .errors import InputError


class ChannelMode(str, Enum):
    """Pixel layout of a bitmap buffer, named after the Pillow mode it maps to."""

    COLOR = "RGBA"
    SDF = "L"

    @property
    def bytes_per_pixel(self) -> int:
        return 4 if self is ChannelMode.COLOR else 1


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in source pixel units (floats, edges inclusive)."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def scaled(self, factor: float) -> "Rect":
        return Rect(
            self.left * factor,
            self.top * factor,
            self.right * factor,
            self.bottom * factor,
        )


@dataclass(frozen=True)
class SourceImage:
    """A named icon source discovered on disk, before rasterization."""

    name: str
    path: Path
    pixel_ratio: float = 1.0
    sdf: bool = False


@dataclass(frozen=True, eq=False)
class Bitmap:
    width: int
    height: int
    pixels: bytes
    mode: ChannelMode = ChannelMode.COLOR
    pixel_ratio: float = 1.0
    content: Rect | None = None
    stretch_x: tuple[Rect, ...] | None = None
    stretch_y: tuple[Rect, ...] | None = None

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise InputError(
                f"Bitmap dimensions must not be negative, got {self.width}x{self.height}",
                error_code="invalid_bitmap",
            )
        expected = self.width * self.height * self.mode.bytes_per_pixel
        if len(self.pixels) != expected:
            raise InputError(
                f"Bitmap buffer holds {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} {self.mode.value}",
                error_code="invalid_bitmap",
            )

    @property
    def sdf(self) -> bool:
        return self.mode is ChannelMode.SDF

    @property
    def area(self) -> int:
        return self.width * self.height

    def dedup_key(self) -> str:
        """Digest that is equal for byte-identical bitmaps of the same shape and mode."""

        digest = hashlib.sha256()
        digest.update(f"{self.mode.value}:{self.width}x{self.height}:".encode("ascii"))
        digest.update(self.pixels)
        return digest.hexdigest()

    def to_image(self) -> Image.Image:
        return Image.frombytes(self.mode.value, (self.width, self.height), self.pixels)


def bitmap_from_image(
    image: Image.Image,
    *,
    mode: ChannelMode = ChannelMode.COLOR,
    pixel_ratio: float = 1.0,
    content: Rect | None = None,
    stretch_x: list[Rect] | tuple[Rect, ...] | None = None,
    stretch_y: list[Rect] | tuple[Rect, ...] | None = None,
) -> Bitmap:
    """Normalize a Pillow image into a ``Bitmap`` of the requested channel mode.

    Color bitmaps are converted to straight-alpha RGBA. Distance-field bitmaps
    must already be single-channel; anything else is rejected rather than
    silently reinterpreted.
    """

    if mode is ChannelMode.SDF and image.mode != ChannelMode.SDF.value:
        raise InputError(
            f"Distance-field bitmaps must be single-channel, got mode {image.mode}",
            error_code="invalid_bitmap",
        )
    if image.mode != mode.value:
        image = image.convert(mode.value)

    return Bitmap(
        width=image.width,
        height=image.height,
        pixels=image.tobytes(),
        mode=mode,
        pixel_ratio=float(pixel_ratio),
        content=content,
        stretch_x=tuple(stretch_x) if stretch_x else None,
        stretch_y=tuple(stretch_y) if stretch_y else None,
    )
