import io

import pytest
from PIL import Image

from modules.snapshot.domain.errors import DimensionMismatchError, MalformedInputError
from modules.snapshot.domain.pixel_diff import (
    AA_COLOR,
    DIFF_COLOR,
    blank_png,
    compare_png_bytes,
    decode_png,
    thumbnail_png,
)
from tests.image_utils import solid_png


def test_identical_images_have_zero_mismatch() -> None:
    image = solid_png(20, 10, (10, 120, 200, 255))
    diff = compare_png_bytes(image, image)
    assert diff.mismatched == 0
    assert (diff.width, diff.height) == (20, 10)


def test_single_changed_pixel_is_counted_and_painted() -> None:
    base = solid_png(8, 8)
    changed = solid_png(8, 8, pixels={(3, 4): (255, 0, 0, 255)})
    diff = compare_png_bytes(base, changed)
    assert diff.mismatched == 1

    rendered = Image.open(io.BytesIO(diff.diff_png)).convert("RGBA")
    assert rendered.getpixel((3, 4)) == DIFF_COLOR
    assert rendered.getpixel((0, 0)) != DIFF_COLOR


def test_threshold_controls_sensitivity() -> None:
    base = solid_png(4, 4, (200, 200, 200, 255))
    slightly_off = solid_png(4, 4, (195, 195, 195, 255))
    assert compare_png_bytes(base, slightly_off, threshold=0.1).mismatched == 0
    assert compare_png_bytes(base, slightly_off, threshold=0.0).mismatched == 16


def test_transparent_pixels_blend_on_white() -> None:
    transparent = solid_png(2, 2, (0, 0, 0, 0))
    white = solid_png(2, 2, (255, 255, 255, 255))
    assert compare_png_bytes(transparent, white, threshold=0.0).mismatched == 0


def test_dimension_mismatch_is_rejected() -> None:
    with pytest.raises(DimensionMismatchError) as excinfo:
        compare_png_bytes(solid_png(100, 100), solid_png(50, 50))
    assert excinfo.value.size_a == (100, 100)
    assert excinfo.value.size_b == (50, 50)


def test_threshold_out_of_range_is_malformed() -> None:
    image = solid_png(2, 2)
    with pytest.raises(MalformedInputError):
        compare_png_bytes(image, image, threshold=1.5)


def test_undecodable_image_is_malformed() -> None:
    with pytest.raises(MalformedInputError):
        decode_png(b"not a png")


def test_thumbnail_respects_bounds() -> None:
    thumb = Image.open(io.BytesIO(thumbnail_png(blank_png(1280, 640), max_size=(320, 320))))
    assert thumb.size == (320, 160)


def _vertical_edge(middle: tuple[int, int, int, int]) -> bytes:
    # Columns 0-1 black, column 2 `middle`, columns 3-5 white.
    black = (0, 0, 0, 255)
    pixels = {(x, y): black for x in range(2) for y in range(5)}
    pixels.update({(2, y): middle for y in range(5)})
    return solid_png(6, 5, pixels=pixels)


def test_anti_aliased_edge_is_not_counted() -> None:
    sharp = _vertical_edge((0, 0, 0, 255))
    smoothed = _vertical_edge((128, 128, 128, 255))
    diff = compare_png_bytes(sharp, smoothed, threshold=0.1)
    assert diff.mismatched == 0

    rendered = Image.open(io.BytesIO(diff.diff_png)).convert("RGBA")
    assert rendered.getpixel((2, 2)) == AA_COLOR


def test_shifted_hard_edge_is_counted() -> None:
    sharp = _vertical_edge((0, 0, 0, 255))
    shifted = _vertical_edge((255, 255, 255, 255))
    assert compare_png_bytes(sharp, shifted, threshold=0.1).mismatched == 5
