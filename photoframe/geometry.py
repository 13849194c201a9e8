"""Layout arithmetic for the canvas, matting and on-screen placement."""

from __future__ import annotations

import math
from typing import Tuple

TEXTURE_ROW_ALIGNMENT = 256
LOADING_MAX_WIDTH_FRACTION = 0.4
LOADING_MAX_HEIGHT_FRACTION = 0.2
MAX_MARGIN_FRACTION = 0.45


def _clamp(value: float, low: float, high: float) -> float:
    if low > high:
        raise ValueError(f"invalid clamp range: {low} > {high}")
    return min(max(value, low), high)


def _round(value: float) -> float:
    """Round half away from zero."""
    return math.copysign(math.floor(abs(value) + 0.5), value)


def compute_padded_stride(bytes_per_row: int) -> int:
    """Round a row length up to the texture upload alignment."""
    if bytes_per_row == 0:
        return 0
    blocks = -(-bytes_per_row // TEXTURE_ROW_ALIGNMENT)
    return blocks * TEXTURE_ROW_ALIGNMENT


def compute_canvas_size(
    screen_w: int, screen_h: int, oversample: float, max_dim: int
) -> Tuple[int, int]:
    """Scale the screen size by ``oversample``, limited to ``1..max_dim``."""
    width = _clamp(_round(screen_w * oversample), 1.0, float(max_dim))
    height = _clamp(_round(screen_h * oversample), 1.0, float(max_dim))
    return int(width), int(height)


def resize_to_fit_with_margin(
    canvas_w: int,
    canvas_h: int,
    src_w: int,
    src_h: int,
    margin_frac: float,
    max_upscale: float,
) -> Tuple[int, int]:
    """Size that fits the source inside the canvas less a margin on each side.

    The margin fraction is limited to 0..0.45 and the scale never exceeds
    ``max_upscale`` (itself at least 1).
    """
    iw = float(max(src_w, 1))
    ih = float(max(src_h, 1))
    cw = float(max(canvas_w, 1))
    ch = float(max(canvas_h, 1))
    margin = _clamp(margin_frac, 0.0, MAX_MARGIN_FRACTION)
    avail_w = max(cw * (1.0 - 2.0 * margin), 1.0)
    avail_h = max(ch * (1.0 - 2.0 * margin), 1.0)
    upscale = max(max_upscale, 1.0)
    scale = min(avail_w / iw, avail_h / ih, upscale)
    width = _clamp(_round(iw * scale), 1.0, cw)
    height = _clamp(_round(ih * scale), 1.0, ch)
    return int(width), int(height)


def resize_to_cover(
    canvas_w: int, canvas_h: int, src_w: int, src_h: int, max_dim: int
) -> Tuple[int, int]:
    """Size at which the source covers the canvas, never shrinking it."""
    iw = float(max(src_w, 1))
    ih = float(max(src_h, 1))
    cw = float(max(canvas_w, 1))
    ch = float(max(canvas_h, 1))
    scale = max(cw / iw, ch / ih, 1.0)
    width = _clamp(_round(iw * scale), 1.0, float(max_dim))
    height = _clamp(_round(ih * scale), 1.0, float(max_dim))
    return int(width), int(height)


def center_offset(inner_w: int, inner_h: int, outer_w: int, outer_h: int) -> Tuple[int, int]:
    """Top-left offset that centres an inner box in an outer one (never negative)."""
    return max(outer_w - inner_w, 0) // 2, max(outer_h - inner_h, 0) // 2


def compute_cover_rect(
    img_w: int, img_h: int, screen_w: int, screen_h: int
) -> Tuple[float, float, float, float]:
    """Centred destination rectangle ``(x, y, w, h)`` covering the whole screen."""
    iw = float(max(img_w, 1))
    ih = float(max(img_h, 1))
    sw = float(max(screen_w, 1))
    sh = float(max(screen_h, 1))
    scale = max(sw / iw, sh / ih)
    width = iw * scale
    height = ih * scale
    return (sw - width) * 0.5, (sh - height) * 0.5, width, height


def fade_progress(elapsed_ms: float, fade_ms: float) -> float:
    """Smoothstep-eased cross-fade progress in ``[0, 1]``."""
    t = _clamp(elapsed_ms / max(float(fade_ms), 1.0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def loading_rect(
    image_w: int, image_h: int, screen_w: int, screen_h: int
) -> Tuple[float, float, float, float]:
    """Centred rectangle for the loading indicator, never enlarged.

    The indicator is limited to 40% of the screen width and 20% of its height.
    """
    sw = float(screen_w)
    sh = float(screen_h)
    iw = float(image_w)
    ih = float(image_h)
    max_w = sw * LOADING_MAX_WIDTH_FRACTION
    max_h = sh * LOADING_MAX_HEIGHT_FRACTION
    scale = min(max_w / iw, max_h / ih, 1.0)
    width = _clamp(iw * scale, 0.0, sw)
    height = _clamp(ih * scale, 0.0, sh)
    return (sw - width) * 0.5, (sh - height) * 0.5, width, height