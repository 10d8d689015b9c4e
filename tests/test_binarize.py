"""Tests for hard-threshold binarization."""

import numpy as np
import pytest
from PIL import Image

from flipdot.binarize import binarize, binarize_array, to_bitmap


def pixels(*rgb):
    arr = np.zeros((1, len(rgb), 4), dtype=np.uint8)
    for i, (r, g, b) in enumerate(rgb):
        arr[0, i] = (r, g, b, 0)
    return arr


def test_brightness_scenario():
    arr = pixels((0, 0, 0), (255, 255, 255), (100, 100, 100), (128, 128, 128))
    out = binarize_array(arr)
    assert to_bitmap(out)[0].tolist() == [False, True, False, True]


def test_brightness_127_is_off():
    out = binarize_array(pixels((127, 127, 127), (126, 127, 128), (128, 127, 127)))
    # means: 127, 127, 127.33
    assert to_bitmap(out)[0].tolist() == [False, False, True]


def test_channels_rewritten_and_alpha_opaque():
    out = binarize_array(pixels((200, 200, 200), (10, 20, 30)))
    assert out[0, 0].tolist() == [255, 255, 255, 255]
    assert out[0, 1].tolist() == [0, 0, 0, 255]


def test_alpha_ignored_for_decision():
    arr = pixels((255, 255, 255))
    arr[0, 0, 3] = 0
    assert to_bitmap(binarize_array(arr))[0, 0]


def test_binarize_array_in_place():
    arr = pixels((255, 0, 255))
    assert binarize_array(arr) is arr


def test_idempotent_on_random_frames():
    rng = np.random.default_rng(1234)
    arr = rng.integers(0, 256, size=(14, 28, 4), dtype=np.uint8)
    once = binarize_array(arr.copy())
    twice = binarize_array(once.copy())
    assert np.array_equal(once, twice)


def test_rejects_non_rgba_array():
    with pytest.raises(ValueError):
        binarize_array(np.zeros((7, 28, 3), dtype=np.uint8))


def test_binarize_image_in_place():
    img = Image.new("RGBA", (4, 2), (0, 0, 0, 0))
    img.putpixel((1, 0), (200, 100, 120, 10))
    img.putpixel((2, 1), (120, 120, 120, 255))

    out = binarize(img)

    assert out is img
    assert img.getpixel((1, 0)) == (255, 255, 255, 255)
    assert img.getpixel((2, 1)) == (0, 0, 0, 255)
    assert img.getpixel((0, 0)) == (0, 0, 0, 255)


def test_binarize_converts_other_modes():
    img = Image.new("L", (3, 1), 200)
    out = binarize(img)
    assert out.mode == "RGBA"
    assert to_bitmap(np.asarray(out)).all()
