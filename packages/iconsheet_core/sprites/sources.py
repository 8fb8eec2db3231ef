"""Discover SVG icon sources on disk and derive their sprite names."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
import os

from .bitmap import SourceImage
from .config import BuildConfig
from .errors import InputError

logger = getLogger("iconsheet_core.sprites.sources")

SVG_SUFFIXES = (".svg", ".svgz")


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def is_svg_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in SVG_SUFFIXES


def get_svg_input_paths(path: Path, recursive: bool = False) -> list[Path]:
    """All visible ``.svg``/``.svgz`` files in ``path``, sorted by path.

    Symlinks are followed. Sub-directories, hidden ones included, are only
    searched when ``recursive`` is set. Hidden files are always skipped.
    """

    path = Path(path)
    if not path.exists():
        raise InputError(f"Input directory does not exist: {path}", error_code="missing_input")
    if not path.is_dir():
        raise InputError(f"Input path is not a directory: {path}", error_code="not_a_directory")

    results: list[Path] = []
    try:
        entries = sorted(path.iterdir())
    except OSError as exc:
        raise InputError(f"Cannot read directory {path}: {exc}", error_code="unreadable_input") from exc

    for entry in entries:
        if recursive and entry.is_dir():
            results.extend(get_svg_input_paths(entry, True))
        elif is_svg_file(entry) and not is_hidden(entry):
            results.append(entry)
    return sorted(results)


def sprite_name(path: Path, base_path: Path) -> str:
    """Relative path from ``base_path`` to ``path`` without the file extension.

    ``icons/recursive/bear.svg`` under ``icons`` is named ``recursive/bear``.
    Names always use ``/`` separators so indexes match across platforms.
    """

    if not str(path):
        raise InputError("Sprite path is empty", error_code="invalid_path")

    abs_path = Path(os.path.abspath(path))
    abs_base = Path(os.path.abspath(base_path))
    try:
        rel_path = abs_path.relative_to(abs_base)
    except ValueError as exc:
        raise InputError(
            f"Sprite path {path} is not inside {base_path}",
            error_code="invalid_path",
        ) from exc

    if not rel_path.stem:
        raise InputError(f"Sprite path {path} has no file name", error_code="invalid_path")
    return rel_path.with_suffix("").as_posix()


def discover_sources(input_dir: Path, config: BuildConfig) -> list[SourceImage]:
    input_dir = Path(input_dir)
    paths = get_svg_input_paths(input_dir, config.recursive)
    sources = [
        SourceImage(
            name=sprite_name(path, input_dir),
            path=path,
            pixel_ratio=config.pixel_ratio,
            sdf=config.sdf,
        )
        for path in paths
    ]
    logger.info("[SOURCES] Found %d SVG source(s) in %s (recursive=%s)", len(sources), input_dir, config.recursive)
    return sources
