"""Paint packed bitmaps onto the spritesheet canvas and trim unused margins."""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import Iterable, Sequence

from PIL import Image

from .bitmap import Bitmap, ChannelMode

logger = getLogger("iconsheet_core.sprites.compositor")


@dataclass(frozen=True)
class PlacedBitmap:
    name: str
    bitmap: Bitmap
    x: int
    y: int

    @property
    def right(self) -> int:
        return self.x + self.bitmap.width

    @property
    def bottom(self) -> int:
        return self.y + self.bitmap.height

    @property
    def box(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.right, self.bottom


def composite(
    placements: Sequence[PlacedBitmap],
    width: int,
    height: int,
    mode: ChannelMode = ChannelMode.COLOR,
) -> Image.Image:
    """Blit every placement into a fully transparent canvas of the given size.

    Placements never overlap, so each paste is a plain overwrite of the
    destination pixels rather than an alpha blend.
    """

    canvas = Image.new(mode.value, (width, height), 0)
    for placed in placements:
        if placed.bitmap.mode is not mode:
            raise ValueError(
                f"Cannot paste {placed.bitmap.mode.value} sprite '{placed.name}' "
                f"onto a {mode.value} canvas"
            )
        if placed.x < 0 or placed.y < 0 or placed.right > width or placed.bottom > height:
            raise ValueError(f"Sprite '{placed.name}' at {placed.box} falls outside {width}x{height}")
        canvas.paste(placed.bitmap.to_image(), (placed.x, placed.y))
    return canvas


def content_bbox(image: Image.Image) -> tuple[int, int, int, int] | None:
    """Tightest box around pixels that are not fully transparent (or not zero)."""

    if image.mode == "RGBA":
        return image.getchannel("A").getbbox()
    return image.getbbox()


def trim_canvas(
    image: Image.Image,
    keep: Iterable[tuple[int, int, int, int]] = (),
) -> tuple[Image.Image, tuple[int, int]]:
    """Crop away empty outer rows and columns.

    Boxes in ``keep`` are never cut into, so a sprite whose own border is
    transparent keeps its full rectangle. Returns the cropped image and the
    crop origin that placements must be shifted by.
    """

    boxes = [box for box in (content_bbox(image), *keep) if box is not None]
    if not boxes:
        logger.debug("[COMPOSE] Canvas is empty, keeping a 1x1 placeholder")
        return Image.new(image.mode, (1, 1), 0), (0, 0)

    left = min(box[0] for box in boxes)
    top = min(box[1] for box in boxes)
    right = max(box[2] for box in boxes)
    bottom = max(box[3] for box in boxes)

    if (left, top, right, bottom) == (0, 0, image.width, image.height):
        return image, (0, 0)
    return image.crop((left, top, right, bottom)), (left, top)


def compose_sheet(
    placements: Sequence[PlacedBitmap],
    width: int,
    height: int,
    mode: ChannelMode = ChannelMode.COLOR,
) -> tuple[Image.Image, list[PlacedBitmap]]:
    """Composite, trim, and return placements translated into the trimmed canvas."""

    canvas = composite(placements, width, height, mode)
    trimmed, (dx, dy) = trim_canvas(canvas, keep=[placed.box for placed in placements])
    moved = [replace(placed, x=placed.x - dx, y=placed.y - dy) for placed in placements]

    logger.info(
        "[COMPOSE] Composited %d sprites, trimmed %dx%d to %dx%d",
        len(placements),
        width,
        height,
        trimmed.width,
        trimmed.height,
    )
    return trimmed, moved
