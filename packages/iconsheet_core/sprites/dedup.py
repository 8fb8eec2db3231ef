"""Collapse byte-identical bitmaps so each is stored once in the spritesheet."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Sequence

from .bitmap import Bitmap
from .errors import InputError

logger = getLogger("iconsheet_core.sprites.dedup")


@dataclass(frozen=True)
class DedupResult:
    """Canonical bitmaps in input order plus the name → canonical name mapping."""

    unique: list[tuple[str, Bitmap]]
    canonical: dict[str, str]

    def aliases(self) -> dict[str, list[str]]:
        """Names that reuse another sprite's pixels, grouped by canonical name."""
        out: dict[str, list[str]] = {}
        for name, target in self.canonical.items():
            if name != target:
                out.setdefault(target, []).append(name)
        return out


def deduplicate(sprites: Sequence[tuple[str, Bitmap]], *, unique: bool = True) -> DedupResult:
    canonical: dict[str, str] = {}
    kept: list[tuple[str, Bitmap]] = []
    owner_by_key: dict[str, str] = {}

    for name, bitmap in sprites:
        if name in canonical:
            raise InputError(f"Duplicate sprite name: {name}", error_code="duplicate_name", name=name)

        if not unique:
            canonical[name] = name
            kept.append((name, bitmap))
            continue

        key = bitmap.dedup_key()
        owner = owner_by_key.get(key)
        if owner is None:
            owner_by_key[key] = name
            canonical[name] = name
            kept.append((name, bitmap))
        else:
            logger.debug("[DEDUP] '%s' is identical to '%s'", name, owner)
            canonical[name] = owner

    if unique:
        logger.info("[DEDUP] Kept %d of %d sprites", len(kept), len(canonical))
    return DedupResult(unique=kept, canonical=canonical)
