"""Build configuration for spritesheet generation.

Defaults can be supplied through ``ICONSHEET_*`` environment variables so CI
jobs can pin them once; explicit overrides (usually CLI flags) always win.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any
import os

from .errors import InputError

ENV_PREFIX = "ICONSHEET_"
RETINA_PIXEL_RATIO = 2.0


def _truthy_env(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _number_env(name: str, default: float | None, cast: type) -> Any:
    raw = str(os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise InputError(
            f"Environment variable {name} must be a number, got {raw!r}",
            error_code="invalid_config",
        ) from exc


@dataclass(frozen=True)
class BuildConfig:
    pixel_ratio: float = 1.0
    unique: bool = False
    sdf: bool = False
    recursive: bool = False
    minify: bool = False
    spacing: int = 0
    workers: int | None = None

    def validate(self) -> "BuildConfig":
        if not self.pixel_ratio > 0:
            raise InputError(
                f"Pixel ratio must be greater than zero, got {self.pixel_ratio}",
                error_code="invalid_config",
            )
        if self.spacing < 0:
            raise InputError(
                f"Spacing must be a non-negative number, got {self.spacing}",
                error_code="invalid_config",
            )
        if self.workers is not None and self.workers < 1:
            raise InputError(
                f"Worker count must be at least 1, got {self.workers}",
                error_code="invalid_config",
            )
        return self


def load_build_config(**overrides: Any) -> BuildConfig:
    """Build a validated config from the environment plus non-None overrides."""

    config = BuildConfig(
        pixel_ratio=_number_env(f"{ENV_PREFIX}PIXEL_RATIO", 1.0, float),
        unique=_truthy_env(f"{ENV_PREFIX}UNIQUE"),
        sdf=_truthy_env(f"{ENV_PREFIX}SDF"),
        recursive=_truthy_env(f"{ENV_PREFIX}RECURSIVE"),
        minify=_truthy_env(f"{ENV_PREFIX}MINIFY"),
        spacing=_number_env(f"{ENV_PREFIX}SPACING", 0, int),
        workers=_number_env(f"{ENV_PREFIX}WORKERS", None, int),
    )
    unknown = set(overrides) - set(BuildConfig.__dataclass_fields__)
    if unknown:
        raise InputError(
            "Unknown build option(s): " + ", ".join(sorted(unknown)),
            error_code="invalid_config",
        )
    explicit = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **explicit).validate()
