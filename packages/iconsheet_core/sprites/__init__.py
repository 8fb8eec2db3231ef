"""Spritesheet packing primitives for map icon sets."""

from .bitmap import Bitmap, ChannelMode, Rect, SourceImage, bitmap_from_image
from .config import BuildConfig, load_build_config
from .errors import InputError, IoError, PackError, RasterizeError, SpriteError
from .pipeline import Spritesheet, build_from_directory, build_spritesheet
from .sources import get_svg_input_paths, sprite_name
from .validator import validate_spritesheet

__all__ = [
    "Bitmap",
    "ChannelMode",
    "Rect",
    "SourceImage",
    "bitmap_from_image",
    "BuildConfig",
    "load_build_config",
    "SpriteError",
    "InputError",
    "RasterizeError",
    "PackError",
    "IoError",
    "Spritesheet",
    "build_spritesheet",
    "build_from_directory",
    "get_svg_input_paths",
    "sprite_name",
    "validate_spritesheet",
]
