"""Sprite index (the JSON document that accompanies a spritesheet image).

The index maps every sprite name to its rectangle on the sheet. Map renderers
look icons up by name, so every input name gets an entry, including names that
share pixels with another sprite.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Mapping, Optional, Sequence
import json

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .bitmap import Rect
from .compositor import PlacedBitmap
from .errors import InputError

logger = getLogger("iconsheet_core.sprites.index")


def icon_number(value: float) -> int | float:
    """Integral values as ints, everything else rounded to three decimals."""

    value = float(value)
    if value.is_integer():
        return int(value)
    return round(value, 3)


class SpriteIndexEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    pixel_ratio: float = Field(gt=0, alias="pixelRatio")
    sdf: bool = False
    content: Optional[tuple[float, float, float, float]] = Field(
        default=None,
        description="Content box as [left, top, right, bottom]",
    )
    stretch_x: Optional[list[tuple[float, float]]] = Field(
        default=None,
        alias="stretchX",
        description="Horizontally stretchable spans as [left, right] pairs",
    )
    stretch_y: Optional[list[tuple[float, float]]] = Field(
        default=None,
        alias="stretchY",
        description="Vertically stretchable spans as [top, bottom] pairs",
    )

    @field_serializer("pixel_ratio")
    def serialize_ratio(self, value: float) -> int | float:
        return icon_number(value)

    @field_serializer("content")
    def serialize_content(self, value: Optional[tuple[float, ...]]) -> Optional[list[int | float]]:
        if value is None:
            return None
        return [icon_number(v) for v in value]

    @field_serializer("stretch_x", "stretch_y")
    def serialize_spans(self, value: Optional[list[tuple[float, float]]]) -> Optional[list[list[int | float]]]:
        if value is None:
            return None
        return [[icon_number(a), icon_number(b)] for a, b in value]

    @property
    def box(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.width, self.y + self.height

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def entry_for(placed: PlacedBitmap) -> SpriteIndexEntry:
    """Describe a placed bitmap, scaling stretch metadata to sheet pixels."""

    bitmap = placed.bitmap
    ratio = bitmap.pixel_ratio

    content = None
    if bitmap.content is not None:
        c: Rect = bitmap.content.scaled(ratio)
        content = (c.left, c.top, c.right, c.bottom)

    stretch_x = None
    if bitmap.stretch_x:
        stretch_x = [(r.left * ratio, r.right * ratio) for r in bitmap.stretch_x]

    stretch_y = None
    if bitmap.stretch_y:
        stretch_y = [(r.top * ratio, r.bottom * ratio) for r in bitmap.stretch_y]

    return SpriteIndexEntry(
        width=bitmap.width,
        height=bitmap.height,
        x=placed.x,
        y=placed.y,
        pixel_ratio=ratio,
        sdf=bitmap.sdf,
        content=content,
        stretch_x=stretch_x,
        stretch_y=stretch_y,
    )


def build_index(
    names: Sequence[str],
    canonical: Mapping[str, str],
    placements: Sequence[PlacedBitmap],
) -> dict[str, SpriteIndexEntry]:
    """Build the ordered index for ``names`` from the final (post-trim) placements.

    ``canonical`` maps each name to the sprite whose pixels it uses; names that
    were deduplicated get a copy of their canonical sprite's entry.
    """

    by_name = {placed.name: placed for placed in placements}
    entries: dict[str, SpriteIndexEntry] = {}
    cache: dict[str, SpriteIndexEntry] = {}

    for name in names:
        target = canonical.get(name, name)
        placed = by_name.get(target)
        if placed is None:
            raise InputError(f"Sprite '{name}' has no placement", error_code="missing_placement", name=name)
        if target not in cache:
            cache[target] = entry_for(placed)
        entries[name] = cache[target]

    logger.debug("[INDEX] Built %d entries for %d placements", len(entries), len(placements))
    return entries


def index_payload(index: Mapping[str, SpriteIndexEntry]) -> dict[str, dict[str, Any]]:
    return {name: entry.to_payload() for name, entry in index.items()}


def index_to_json(index: Mapping[str, SpriteIndexEntry], *, minify: bool = False) -> str:
    payload = index_payload(index)
    if minify:
        return json.dumps(payload, separators=(",", ":"))
    return json.dumps(payload, indent=2)
