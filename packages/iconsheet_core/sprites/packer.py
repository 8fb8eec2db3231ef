"""Rectangle packing for spritesheets.

Items are placed largest-first into a square-ish bin with a guillotine
free-rectangle heuristic. When an item does not fit the bin is grown and the
whole pass restarts, because the free list of a smaller bin says nothing useful
about a larger one.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Sequence
import math

from .errors import PackError

logger = getLogger("iconsheet_core.sprites.packer")

MAX_BIN_SIDE = 65536


@dataclass(frozen=True)
class PackItem:
    key: str
    width: int
    height: int


@dataclass(frozen=True)
class PackResult:
    """Bin size and the top-left corner of every item, keyed by ``PackItem.key``."""

    width: int
    height: int
    placements: dict[str, tuple[int, int]]


@dataclass
class _FreeRect:
    x: int
    y: int
    width: int
    height: int


class GuillotineBin:
    """Fixed-size bin that hands out space from a list of disjoint free rectangles."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.free: list[_FreeRect] = [_FreeRect(0, 0, width, height)]

    def insert(self, width: int, height: int) -> tuple[int, int] | None:
        best_index = -1
        best_score: tuple[int, int, int] | None = None
        for idx, rect in enumerate(self.free):
            if rect.width < width or rect.height < height:
                continue
            score = (rect.width * rect.height, rect.y, rect.x)
            if best_score is None or score < best_score:
                best_score = score
                best_index = idx

        if best_index < 0:
            return None

        slot = self.free.pop(best_index)
        self._split(slot, width, height)
        return slot.x, slot.y

    def _split(self, slot: _FreeRect, width: int, height: int) -> None:
        leftover_w = slot.width - width
        leftover_h = slot.height - height

        # Cut along the axis with more leftover so the larger remainder stays whole.
        if leftover_w > leftover_h:
            right = _FreeRect(slot.x + width, slot.y, leftover_w, slot.height)
            below = _FreeRect(slot.x, slot.y + height, width, leftover_h)
        else:
            right = _FreeRect(slot.x + width, slot.y, leftover_w, height)
            below = _FreeRect(slot.x, slot.y + height, slot.width, leftover_h)

        for rect in (right, below):
            if rect.width > 0 and rect.height > 0:
                self.free.append(rect)


def _validate_items(items: Sequence[PackItem]) -> None:
    if not items:
        raise PackError("Nothing to pack", error_code="empty")

    seen: set[str] = set()
    for item in items:
        if item.width <= 0 or item.height <= 0:
            raise PackError(
                f"Sprite '{item.key}' has invalid size {item.width}x{item.height}",
                error_code="invalid_size",
                name=item.key,
            )
        if item.key in seen:
            raise PackError(f"Duplicate pack key: {item.key}", error_code="duplicate_key", name=item.key)
        seen.add(item.key)


def _grow(width: int, height: int) -> tuple[int, int]:
    if width <= height:
        return width * 2, height
    return width, height * 2


def _check_bounds(width: int, height: int) -> None:
    if width > MAX_BIN_SIDE or height > MAX_BIN_SIDE:
        raise PackError(
            f"Spritesheet would need to grow to {width}x{height}, beyond the "
            f"{MAX_BIN_SIDE}px limit",
            error_code="bin_too_large",
        )


def _try_place(
    ordered: Sequence[PackItem], width: int, height: int, spacing: int
) -> dict[str, tuple[int, int]] | None:
    bin_ = GuillotineBin(width, height)
    placements: dict[str, tuple[int, int]] = {}
    for item in ordered:
        spot = bin_.insert(item.width + spacing, item.height + spacing)
        if spot is None:
            return None
        placements[item.key] = spot
    return placements


def find_overlap(
    items: Sequence[PackItem], placements: dict[str, tuple[int, int]]
) -> tuple[str, str] | None:
    """Return the first pair of keys whose placed rectangles intersect, if any."""

    boxes = []
    for item in items:
        x, y = placements[item.key]
        boxes.append((x, y, x + item.width, y + item.height, item.key))
    boxes.sort()

    # Sweep along x: only rectangles whose x-ranges overlap need a y test.
    active: list[tuple[int, int, int, int, str]] = []
    for box in boxes:
        x0, y0, _, y1, key = box
        active = [other for other in active if other[2] > x0]
        for ox0, oy0, ox1, oy1, okey in active:
            if oy0 < y1 and y0 < oy1:
                return okey, key
        active.append(box)
    return None


def pack_rectangles(items: Sequence[PackItem], *, spacing: int = 0) -> PackResult:
    """Place every item in one bin without overlaps.

    ``spacing`` reserves that many empty pixels to the right of and below each
    item. The returned bin is at least as wide and tall as the largest item.
    """

    _validate_items(items)
    if spacing < 0:
        raise PackError(f"Spacing must not be negative, got {spacing}", error_code="invalid_spacing")

    indexed = list(enumerate(items))
    indexed.sort(
        key=lambda pair: (
            -(pair[1].width * pair[1].height),
            -max(pair[1].width, pair[1].height),
            pair[0],
        )
    )
    ordered = [item for _, item in indexed]

    widest = max(item.width for item in items) + spacing
    tallest = max(item.height for item in items) + spacing
    total_area = sum((item.width + spacing) * (item.height + spacing) for item in items)

    side = max(1, math.isqrt(total_area - 1) + 1)
    width = height = side
    attempts = 0

    while True:
        # A bin smaller than its largest item can never hold it.
        while width < widest:
            width *= 2
        while height < tallest:
            height *= 2
        _check_bounds(width, height)

        attempts += 1
        placements = _try_place(ordered, width, height, spacing)
        if placements is not None:
            break
        logger.debug("[PACK] %d items do not fit %dx%d, growing", len(items), width, height)
        width, height = _grow(width, height)

    overlap = find_overlap(items, placements)
    if overlap is not None:
        raise PackError(
            f"Packed sprites '{overlap[0]}' and '{overlap[1]}' overlap",
            error_code="overlap",
            name=overlap[1],
        )

    logger.info(
        "[PACK] Packed %d items into %dx%d after %d attempt(s)",
        len(items),
        width,
        height,
        attempts,
    )
    return PackResult(width=width, height=height, placements=placements)
