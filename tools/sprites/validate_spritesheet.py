#!/usr/bin/env python3
"""Check that a spritesheet index matches its PNG and has no overlapping sprites."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from PIL import Image, UnidentifiedImageError

from packages.iconsheet_core.sprites.output import output_paths
from packages.iconsheet_core.sprites.validator import validate_spritesheet


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate a spritesheet PNG + JSON index pair")
    parser.add_argument("prefix", type=Path, help="Spritesheet path prefix (without .png/.json)")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )
    args = parser.parse_args()

    png_path, json_path = output_paths(args.prefix)
    try:
        with Image.open(png_path) as image:
            width, height = image.size
        index_data = json.loads(json_path.read_text(encoding="utf-8"))
    except (OSError, UnidentifiedImageError, json.JSONDecodeError) as exc:
        print(f"ERR: cannot load spritesheet {args.prefix}: {exc}")
        return 1

    errors, warnings, summary = validate_spritesheet(index_data, width=width, height=height)

    payload = {
        "ok": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "summary": summary,
    }

    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        if payload["ok"]:
            print("OK: spritesheet validation passed")
        else:
            print("ERROR: spritesheet validation failed")

        for warning in warnings:
            print(f"WARN: {warning}")
        for error in errors:
            print(f"ERR: {error}")

        if summary:
            print("Summary:")
            print(json.dumps(summary, indent=2))

    return 0 if payload["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
