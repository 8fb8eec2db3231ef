"""Encode a finished spritesheet and write it next to its index file.

Both files are staged as temporaries in the destination directory and only
moved into place once both encodings succeeded, so a failed build never
leaves a half-written sheet or an index that points at the wrong image. A
replace that fails halfway is rolled back from copies of the previous files.
"""

from __future__ import annotations

from io import BytesIO
from logging import getLogger
from pathlib import Path
import os
import shutil
import tempfile

from PIL import Image

from .errors import IoError

logger = getLogger("iconsheet_core.sprites.output")


def to_rgba(image: Image.Image) -> Image.Image:
    """Distance-field sheets are stored as black pixels with the field in alpha."""

    if image.mode == "RGBA":
        return image
    if image.mode == "L":
        black = Image.new("L", image.size, 0)
        return Image.merge("RGBA", (black, black, black, image))
    return image.convert("RGBA")


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    to_rgba(image).save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def output_paths(prefix: Path) -> tuple[Path, Path]:
    prefix = Path(prefix)
    return prefix.with_name(prefix.name + ".png"), prefix.with_name(prefix.name + ".json")


def _discard(name: str) -> None:
    if os.path.exists(name):
        os.unlink(name)


def _roll_back(replaced: list[Path], backups: dict[Path, str]) -> None:
    """Put every already-replaced target back the way it was before the write."""

    for path in reversed(replaced):
        backup = backups.get(path)
        try:
            if backup is not None:
                os.replace(backup, path)
            elif path.exists():
                path.unlink()
        except OSError as exc:
            logger.error("[OUTPUT] Cannot restore '%s' after failed write: %s", path, exc)


def write_files_atomically(files: list[tuple[Path, bytes]]) -> None:
    """Write every (path, data) pair, or none of them.

    New contents are staged next to their targets. Targets that already exist
    are copied aside first, so if a later replace fails the earlier ones can be
    undone and the directory is left exactly as it was.
    """

    staged: list[tuple[str, Path]] = []
    backups: dict[Path, str] = {}
    replaced: list[Path] = []
    try:
        for path, data in files:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
            staged.append((tmp_name, path))
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
        for _, path in staged:
            if path.exists():
                fd, backup = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".bak", dir=path.parent)
                os.close(fd)
                backups[path] = backup
                shutil.copy2(path, backup)
        for tmp_name, path in staged:
            os.replace(tmp_name, path)
            replaced.append(path)
    except OSError as exc:
        _roll_back(replaced, backups)
        for tmp_name, _ in staged:
            _discard(tmp_name)
        for backup in backups.values():
            _discard(backup)
        raise IoError(f"Cannot write output files: {exc}", error_code="write_failed") from exc

    for backup in backups.values():
        _discard(backup)


def save_spritesheet(image: Image.Image, index_json: str, prefix: Path) -> tuple[Path, Path]:
    png_path, json_path = output_paths(prefix)
    logger.info("[OUTPUT] Writing spritesheet: png='%s', index='%s'", png_path, json_path)
    write_files_atomically(
        [
            (png_path, encode_png(image)),
            (json_path, index_json.encode("utf-8")),
        ]
    )
    return png_path, json_path
