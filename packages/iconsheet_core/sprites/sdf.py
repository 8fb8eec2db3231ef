"""Signed distance fields for recolorable (SDF) icons.

Map renderers expect one byte per pixel where values from 192 to 255 are
inside the shape and 0 to 191 outside. The field is computed from the
rendered alpha channel with a Euclidean distance transform, after padding the
icon so the outside falloff has room to fade to zero.
"""

from __future__ import annotations

import numpy as np
from PIL import Image
from scipy.ndimage import distance_transform_edt

SDF_BUFFER = 3
SDF_RADIUS = 8.0
SDF_CUTOFF = 0.25


def distance_field(
    image: Image.Image,
    *,
    buffer: int = SDF_BUFFER,
    radius: float = SDF_RADIUS,
    cutoff: float = SDF_CUTOFF,
) -> Image.Image:
    """Return an ``L`` image ``2 * buffer`` pixels larger than ``image`` on each axis."""

    rgba = image.convert("RGBA")
    alpha = np.asarray(rgba.getchannel("A"), dtype=np.uint8)
    padded = np.pad(alpha, buffer, mode="constant", constant_values=0)

    inside = padded > 127
    if not inside.any():
        return Image.new("L", (padded.shape[1], padded.shape[0]), 0)

    # Distance to the nearest pixel of the opposite class; negative inside.
    dist_outside = distance_transform_edt(~inside)
    dist_inside = distance_transform_edt(inside)
    signed = np.where(inside, -dist_inside, dist_outside)

    encoded = 255.0 - 255.0 * (signed / radius + cutoff)
    out = np.clip(np.rint(encoded), 0, 255).astype(np.uint8)
    return Image.fromarray(out)
