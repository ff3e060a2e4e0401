"""Perceptual pixel comparison of two equally sized RGBA images.

Counting is delegated to the pixelmatch port: YIQ colour distance on pixels
alpha-blended onto white, with anti-aliased pixels detected and excluded from
the count. Anti-aliased pixels are painted yellow in the diff image, real
differences red.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError
from pixelmatch.contrib.PIL import pixelmatch

from modules.snapshot.domain.errors import DimensionMismatchError, MalformedInputError

DIFF_COLOR = (255, 0, 0, 255)
AA_COLOR = (255, 255, 0, 255)
FADE_ALPHA = 0.1


@dataclass(frozen=True)
class PixelDiff:
    mismatched: int
    width: int
    height: int
    diff_png: bytes


def decode_png(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise MalformedInputError(f"image could not be decoded: {exc}") from exc
    return image.convert("RGBA")


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def compare_images(
    image_a: Image.Image, image_b: Image.Image, threshold: float = 0.1
) -> PixelDiff:
    if image_a.size != image_b.size:
        raise DimensionMismatchError(image_a.size, image_b.size)
    if not 0.0 <= threshold <= 1.0:
        raise MalformedInputError(f"threshold must be within [0, 1], got {threshold}")

    width, height = image_a.size
    diff_image = Image.new("RGBA", (width, height))
    mismatched = pixelmatch(
        image_a.convert("RGBA"),
        image_b.convert("RGBA"),
        diff_image,
        threshold=threshold,
        alpha=FADE_ALPHA,
        aa_color=AA_COLOR[:3],
        diff_color=DIFF_COLOR[:3],
    )
    return PixelDiff(
        mismatched=int(mismatched),
        width=width,
        height=height,
        diff_png=encode_png(diff_image),
    )


def compare_png_bytes(data_a: bytes, data_b: bytes, threshold: float = 0.1) -> PixelDiff:
    return compare_images(decode_png(data_a), decode_png(data_b), threshold)


def thumbnail_png(data: bytes, max_size: tuple[int, int] = (320, 320)) -> bytes:
    image = decode_png(data)
    image.thumbnail(max_size)
    return encode_png(image)


def blank_png(
    width: int, height: int, color: tuple[int, int, int, int] = (255, 255, 255, 255)
) -> bytes:
    return encode_png(Image.new("RGBA", (width, height), color))
