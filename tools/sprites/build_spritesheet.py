#!/usr/bin/env python3
"""Build a spritesheet PNG and JSON index from a directory of SVG icons."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.iconsheet_core.sprites.config import RETINA_PIXEL_RATIO, load_build_config
from packages.iconsheet_core.sprites.errors import SpriteError
from packages.iconsheet_core.sprites.pipeline import build_from_directory


def _existing_dir(raw: str) -> Path:
    path = Path(raw)
    if not path.is_dir():
        raise argparse.ArgumentTypeError("must be an existing directory")
    return path


def _positive_number(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {raw!r}") from exc
    if value <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return value


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError("must be a non-negative number")
    return value


def _positive_int(raw: str) -> int:
    value = _non_negative_int(raw)
    if value == 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a spritesheet from a directory of SVG images")
    parser.add_argument("input", type=_existing_dir, help="A directory of SVGs to include in the spritesheet")
    parser.add_argument(
        "output",
        type=Path,
        help="Output path prefix; writes <output>.png and <output>.json",
    )
    ratio = parser.add_mutually_exclusive_group()
    ratio.add_argument("-r", "--ratio", type=_positive_number, default=None, help="Set the output pixel ratio")
    ratio.add_argument(
        "--retina",
        action="store_true",
        help="Set the pixel ratio to 2 (equivalent to --ratio=2)",
    )
    parser.add_argument(
        "--unique",
        action="store_true",
        default=None,
        help="Store only unique images in the spritesheet, and map them to multiple names",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        default=None,
        help="Include images in sub-directories",
    )
    parser.add_argument(
        "--sdf",
        action="store_true",
        default=None,
        help="Output a spritesheet using a signed distance field for each sprite",
    )
    parser.add_argument(
        "--spacing",
        type=_non_negative_int,
        default=None,
        help="Add pixel spacing between sprites",
    )
    parser.add_argument(
        "-m",
        "--minify-index-file",
        action="store_true",
        default=None,
        help="Remove whitespace from the JSON index file",
    )
    parser.add_argument("--workers", type=_positive_int, default=None, help="Parallel rasterization threads")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-sprite detail")
    return parser


def main() -> int:
    args = build_parser().parse_args()

    level = logging.DEBUG if args.verbose else os.environ.get("ICONSHEET_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        config = load_build_config(
            pixel_ratio=RETINA_PIXEL_RATIO if args.retina else args.ratio,
            unique=args.unique,
            recursive=args.recursive,
            sdf=args.sdf,
            spacing=args.spacing,
            minify=args.minify_index_file,
            workers=args.workers,
        )
        sheet = build_from_directory(args.input, config)
        png_path, json_path = sheet.save(args.output, minify=config.minify)
    except SpriteError as exc:
        print(f"ERR: {exc}", file=sys.stderr)
        return 1

    print(f"Wrote {len(sheet.index)} sprites ({sheet.width}x{sheet.height}) to {png_path} and {json_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
