"""
Hard-threshold binarization of RGBA frames.

A flip-dot has exactly two states, so every pixel is reduced to on or off:
brightness is the mean of the red, green and blue channels and a pixel is
on when that mean is strictly greater than 127. Alpha takes no part in the
decision and is forced to fully opaque.

No dithering: gradients collapse to a single edge at the threshold, and
identical input always yields identical output.
"""

from __future__ import annotations

import numpy as np
from PIL import Image

BRIGHTNESS_THRESHOLD = 127
ON = 255
OFF = 0


def binarize_array(rgba: np.ndarray) -> np.ndarray:
    """
    Binarize an RGBA array in place and return it.

    Args:
        rgba: uint8 array of shape (height, width, 4)

    Returns:
        The same array with R, G, B set to 0 or 255 and A set to 255
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"expected an (H, W, 4) RGBA array, got shape {rgba.shape}")

    # mean(r, g, b) > 127  <=>  r + g + b > 381, kept in integers
    total = rgba[..., :3].sum(axis=2, dtype=np.uint16)
    on = total > BRIGHTNESS_THRESHOLD * 3

    rgba[..., :3] = np.where(on, ON, OFF)[..., np.newaxis]
    rgba[..., 3] = ON
    return rgba


def binarize(image: Image.Image) -> Image.Image:
    """
    Binarize a Pillow image.

    RGBA images are rewritten in place and returned; other modes are
    converted to a new RGBA image first.
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")

    arr = np.array(image, dtype=np.uint8)
    binarize_array(arr)
    image.paste(Image.fromarray(arr))
    return image


def to_bitmap(rgba: np.ndarray) -> np.ndarray:
    """Boolean (height, width) bitmap of a binarized frame: on where R, G and B are 255."""
    return np.all(rgba[..., :3] == ON, axis=2)
