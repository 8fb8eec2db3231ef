"""Consistency checks for a spritesheet index against its image."""

from __future__ import annotations

from logging import getLogger
from typing import Any

from pydantic import ValidationError

from .index import SpriteIndexEntry

logger = getLogger("iconsheet_core.sprites.validator")


def _format_validation_error(name: str, exc: ValidationError) -> list[str]:
    out: list[str] = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err.get("loc", ())) or "entry"
        out.append(f"Sprite '{name}' field '{where}': {err.get('msg')}")
    return out


def _overlapping_pairs(boxes: list[tuple[tuple[int, int, int, int], str]]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    ordered = sorted(boxes)
    active: list[tuple[tuple[int, int, int, int], str]] = []
    for box, name in ordered:
        x0, y0, _, y1 = box
        active = [other for other in active if other[0][2] > x0]
        for (ox0, oy0, ox1, oy1), other_name in active:
            if oy0 < y1 and y0 < oy1:
                pairs.append((other_name, name))
        active.append((box, name))
    return pairs


def validate_spritesheet(
    index_data: Any,
    *,
    width: int,
    height: int,
) -> tuple[list[str], list[str], dict[str, Any]]:
    """Validate an index payload for a ``width`` x ``height`` sheet.

    Names sharing one identical rectangle are aliases of a deduplicated sprite
    and are fine; any other intersection is an error.
    """

    logger.debug("[VALIDATOR] Validating index for %dx%d sheet", width, height)
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(index_data, dict):
        return ["Index must be a JSON object mapping names to entries"], warnings, {}
    if not index_data:
        errors.append("Index has no sprites")

    entries: dict[str, SpriteIndexEntry] = {}
    for name, raw in index_data.items():
        try:
            entries[str(name)] = SpriteIndexEntry.model_validate(raw)
        except ValidationError as exc:
            errors.extend(_format_validation_error(str(name), exc))

    for name, entry in entries.items():
        x0, y0, x1, y1 = entry.box
        if x1 > width or y1 > height:
            errors.append(
                f"Sprite '{name}' rectangle ({x0}, {y0}, {x1}, {y1}) falls outside the {width}x{height} sheet"
            )

    # Aliases share a rectangle; check each distinct rectangle once.
    names_by_box: dict[tuple[int, int, int, int], list[str]] = {}
    for name, entry in entries.items():
        names_by_box.setdefault(entry.box, []).append(name)
    boxes = [(box, names[0]) for box, names in names_by_box.items()]
    for first, second in _overlapping_pairs(boxes):
        errors.append(f"Sprites '{first}' and '{second}' overlap")

    ratios = sorted({entry.pixel_ratio for entry in entries.values()})
    if len(ratios) > 1:
        warnings.append("Mixed pixel ratios in one sheet: " + ", ".join(f"{r:g}" for r in ratios))
    sdf_flags = {entry.sdf for entry in entries.values()}
    if len(sdf_flags) > 1:
        warnings.append("Sheet mixes SDF and color sprites")

    used_area = sum((box[2] - box[0]) * (box[3] - box[1]) for box in names_by_box)
    sheet_area = width * height
    summary = {
        "dimensions": {"width": width, "height": height},
        "sprites": len(entries),
        "unique_rectangles": len(names_by_box),
        "aliases": len(entries) - len(names_by_box),
        "coverage_ratio": round(used_area / sheet_area, 4) if sheet_area else 0,
        "pixel_ratios": ratios,
        "sdf": sdf_flags == {True},
    }

    if errors:
        logger.warning("[VALIDATOR] Validation completed with errors: %d errors, %d warnings",
                       len(errors), len(warnings))
    else:
        logger.info("[VALIDATOR] Validation completed successfully: %d sprites, %d warnings",
                    len(entries), len(warnings))
    return errors, warnings, summary
