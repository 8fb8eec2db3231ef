"""Error taxonomy for spritesheet builds.

Every error aborts the current build. Callers can branch on the class or on
``error_code``; ``name`` identifies the offending sprite when there is one.
"""

from __future__ import annotations


class SpriteError(RuntimeError):
    def __init__(self, message: str, *, error_code: str, name: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.name = name


class InputError(SpriteError):
    pass


class RasterizeError(SpriteError):
    pass


class PackError(SpriteError):
    pass


class IoError(SpriteError):
    pass
