"""
Raster primitives for 8-bit grayscale page images.

Every raster is a ``numpy.ndarray`` of dtype ``uint8`` and shape
``(height, width)``. 255 is paper, 0 is ink.
"""

from __future__ import annotations

import numpy as np
from PIL import Image

from tuneconverter.errors import LayoutOverflowError

PAPER = 255
INK = 0


def blank(width: int, height: int, fill: int = PAPER) -> np.ndarray:
    """Return a new raster filled with ``fill`` (paper by default)."""
    return np.full((height, width), fill, dtype=np.uint8)


def width_of(image: np.ndarray) -> int:
    return int(image.shape[1])


def height_of(image: np.ndarray) -> int:
    return int(image.shape[0])


def _region(dst: np.ndarray, src: np.ndarray, x: int, y: int) -> np.ndarray:
    h, w = src.shape
    if x < 0 or y < 0 or x + w > dst.shape[1] or y + h > dst.shape[0]:
        raise LayoutOverflowError(
            f"A {w}x{h} glyph at ({x}, {y}) does not fit in a "
            f"{dst.shape[1]}x{dst.shape[0]} canvas."
        )
    return dst[y : y + h, x : x + w]


def paste(dst: np.ndarray, src: np.ndarray, x: int = 0, y: int = 0) -> np.ndarray:
    """
    Copy ``src`` into ``dst`` with its top-left corner at ``(x, y)``.

    Raises:
        LayoutOverflowError: If ``src`` would not fit entirely inside ``dst``.
    """
    _region(dst, src, x, y)[...] = src
    return dst


def stamp(dst: np.ndarray, src: np.ndarray, x: int = 0, y: int = 0) -> np.ndarray:
    """
    Overlay ``src`` onto ``dst`` at ``(x, y)`` keeping the ink of both layers.

    This is a logical AND of the two layers, so dark pixels from either side
    survive and paper stays paper only where both are paper.

    Raises:
        LayoutOverflowError: If ``src`` would not fit entirely inside ``dst``.
    """
    region = _region(dst, src, x, y)
    np.bitwise_and(region, src, out=region)
    return dst


def shift(image: np.ndarray, dx: int = 0, dy: int = 0) -> np.ndarray:
    """Translate the content by ``(dx, dy)`` within the same canvas size, filling with paper."""
    h, w = image.shape
    out = blank(w, h)
    if abs(dx) >= w or abs(dy) >= h:
        return out
    src_x, dst_x = (0, dx) if dx >= 0 else (-dx, 0)
    src_y, dst_y = (0, dy) if dy >= 0 else (-dy, 0)
    cw, ch = w - abs(dx), h - abs(dy)
    out[dst_y : dst_y + ch, dst_x : dst_x + cw] = image[src_y : src_y + ch, src_x : src_x + cw]
    return out


def scale(image: np.ndarray, ratio: float) -> np.ndarray:
    """Resize by ``ratio`` with bilinear filtering."""
    h, w = image.shape
    size = (max(1, round(w * ratio)), max(1, round(h * ratio)))
    return from_image(to_image(image).resize(size, Image.Resampling.BILINEAR))


def invert(image: np.ndarray) -> np.ndarray:
    """Swap ink and paper."""
    return np.bitwise_not(image)


def freeze(image: np.ndarray) -> np.ndarray:
    """Mark a raster read-only so a shared copy cannot be drawn on by accident."""
    image.flags.writeable = False
    return image


def to_image(image: np.ndarray) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(image, dtype=np.uint8))


def from_image(image: Image.Image) -> np.ndarray:
    """Convert any Pillow image to an 8-bit grayscale raster, flattening alpha onto paper."""
    if image.mode in ("RGBA", "LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (PAPER, PAPER, PAPER, 255))
        image = Image.alpha_composite(background, rgba)
    return np.array(image.convert("L"), dtype=np.uint8)
