"""End-to-end spritesheet builds.

``build_spritesheet`` is the pure core: named bitmaps in, sheet image and index
out, no filesystem access. ``build_from_directory`` wraps it with discovery and
parallel rasterization, and ``save`` is the only step that touches the disk.
"""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Any, Callable, Sequence

from PIL import Image

from .bitmap import Bitmap, ChannelMode, SourceImage
from .compositor import PlacedBitmap, compose_sheet
from .config import BuildConfig
from .dedup import deduplicate
from .errors import InputError, RasterizeError, SpriteError
from .index import SpriteIndexEntry, build_index, index_payload, index_to_json
from .output import encode_png, save_spritesheet
from .packer import PackItem, pack_rectangles
from .rasterize import rasterize_source
from .sources import discover_sources

logger = getLogger("iconsheet_core.sprites.pipeline")


@dataclass(frozen=True)
class Spritesheet:
    image: Image.Image
    index: dict[str, SpriteIndexEntry]
    placements: list[PlacedBitmap]
    sdf: bool = False

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def index_payload(self) -> dict[str, dict[str, Any]]:
        return index_payload(self.index)

    def index_json(self, *, minify: bool = False) -> str:
        return index_to_json(self.index, minify=minify)

    def encode_png(self) -> bytes:
        return encode_png(self.image)

    def save(self, prefix: Path, *, minify: bool = False) -> tuple[Path, Path]:
        return save_spritesheet(self.image, self.index_json(minify=minify), prefix)


def _channel_mode(sprites: Sequence[tuple[str, Bitmap]]) -> ChannelMode:
    modes = {bitmap.mode for _, bitmap in sprites}
    if len(modes) > 1:
        raise InputError(
            "Color and distance-field sprites cannot share a spritesheet",
            error_code="mixed_modes",
        )
    return modes.pop()


def build_spritesheet(
    sprites: Sequence[tuple[str, Bitmap]],
    config: BuildConfig | None = None,
) -> Spritesheet:
    """Pack named bitmaps into one sheet and index every name.

    ``sprites`` must be in a stable order (normally sorted by name); the index
    is emitted in that order and ties in the packer fall back to it.
    """

    config = (config or BuildConfig()).validate()
    if not sprites:
        raise InputError("No sprites to pack", error_code="empty_input")

    mode = _channel_mode(sprites)
    deduped = deduplicate(sprites, unique=config.unique)

    packed = pack_rectangles(
        [PackItem(name, bitmap.width, bitmap.height) for name, bitmap in deduped.unique],
        spacing=config.spacing,
    )
    placements = [
        PlacedBitmap(name, bitmap, *packed.placements[name])
        for name, bitmap in deduped.unique
    ]

    image, final_placements = compose_sheet(placements, packed.width, packed.height, mode)
    names = [name for name, _ in sprites]
    index = build_index(names, deduped.canonical, final_placements)

    if len(index) != len(names):
        raise InputError("Sprite index is missing entries", error_code="incomplete_index")

    logger.info(
        "[PIPELINE] Built %dx%d sheet: %d names, %d stored sprites, sdf=%s",
        image.width,
        image.height,
        len(index),
        len(final_placements),
        mode is ChannelMode.SDF,
    )
    return Spritesheet(image=image, index=index, placements=final_placements, sdf=mode is ChannelMode.SDF)


def rasterize_sources(
    sources: Sequence[SourceImage],
    *,
    workers: int | None = None,
    rasterizer: Callable[[SourceImage], Bitmap] = rasterize_source,
) -> list[tuple[str, Bitmap]]:
    """Rasterize sources in parallel and return (name, bitmap) in source order.

    The first failure cancels everything still queued and is re-raised, so a
    build never continues with an icon missing.
    """

    if not sources:
        return []

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="iconsheet-raster") as executor:
        futures = [executor.submit(rasterizer, source) for source in sources]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)

        for source, future in zip(sources, futures):
            if future in done and future.exception() is not None:
                for pending in futures:
                    pending.cancel()
                exc = future.exception()
                if isinstance(exc, SpriteError):
                    raise exc
                raise RasterizeError(
                    f"Cannot rasterize '{source.name}': {exc}",
                    error_code="render_failed",
                    name=source.name,
                ) from exc

        results = [(source.name, future.result()) for source, future in zip(sources, futures)]

    logger.info("[PIPELINE] Rasterized %d source(s)", len(results))
    return results


def build_from_directory(input_dir: Path, config: BuildConfig | None = None) -> Spritesheet:
    config = (config or BuildConfig()).validate()
    sources = discover_sources(Path(input_dir), config)
    if not sources:
        raise InputError(f"No SVG images found in {input_dir}", error_code="empty_input")

    sprites = rasterize_sources(sources, workers=config.workers)
    return build_spritesheet(sprites, config)
