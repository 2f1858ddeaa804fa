"""Pillow helpers: decode, square resize, maskable compositing and encoding."""

from __future__ import annotations

import io
import math

from PIL import Image, UnidentifiedImageError

from storefront.errors import InvalidImageError

RESAMPLE = Image.Resampling.LANCZOS
MASKABLE_BACKGROUND = (255, 255, 255)

_PIL_FORMATS = {"png": "PNG", "webp": "WEBP"}


def decode_image(data: bytes) -> Image.Image:
    """Decode ``data`` into an RGBA image owned by the caller."""

    if not data:
        raise InvalidImageError("Uploaded file is empty")
    try:
        with Image.open(io.BytesIO(data)) as source:
            source.load()
            return source.convert("RGBA")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise InvalidImageError(f"Could not decode image: {exc}") from exc


def maskable_padding(size: int, ratio: float) -> int:
    """Padding on each side of a maskable icon, rounded half up."""

    return math.floor(size * ratio + 0.5)


def resize_square(image: Image.Image, size: int) -> Image.Image:
    """Resize to ``size`` x ``size`` in one pass; non-square sources are stretched."""

    return image.resize((size, size), RESAMPLE)


def compose_maskable(image: Image.Image, size: int, ratio: float) -> Image.Image:
    """Centre ``image`` on a white square with ``ratio`` padding on every side."""

    padding = maskable_padding(size, ratio)
    inner = size - 2 * padding
    if inner <= 0:
        raise ValueError(f"Padding ratio {ratio} leaves no content area at {size}px")

    canvas = Image.new("RGB", (size, size), MASKABLE_BACKGROUND)
    with image.resize((inner, inner), RESAMPLE) as content:
        mask = content if content.mode == "RGBA" else None
        canvas.paste(content, (padding, padding), mask)
    return canvas


def encode_image(image: Image.Image, fmt: str, *, webp_quality: int = 90) -> bytes:
    """Encode ``image`` as ``png`` or ``webp``."""

    pil_format = _PIL_FORMATS.get(fmt)
    if pil_format is None:
        raise ValueError(f"Unsupported icon format: {fmt}")

    buffer = io.BytesIO()
    if pil_format == "PNG":
        image.save(buffer, format=pil_format, optimize=True)
    else:
        image.save(buffer, format=pil_format, quality=webp_quality)
    return buffer.getvalue()


def convert_to_webp(data: bytes, *, quality: int = 90) -> bytes:
    """Re-encode an uploaded raster image as WebP."""

    with decode_image(data) as image:
        return encode_image(image, "webp", webp_quality=quality)
