"""Gaussian blur used to build matting backgrounds."""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from PIL import Image, ImageFilter

from .config import BlurBackend


def gaussian_kernel(sigma: float) -> Tuple[np.ndarray, int]:
    """Return normalised 1-D Gaussian weights and the kernel radius."""
    sigma = max(float(sigma), 0.01)
    radius = math.ceil(sigma * 3.0)
    if radius <= 0:
        return np.ones(1, dtype=np.float32), 0
    offsets = np.arange(-radius, radius + 1, dtype=np.float32)
    denom = np.float32(2.0 * sigma * sigma)
    weights = np.exp(-(offsets * offsets) / denom).astype(np.float32)
    total = weights.sum()
    if total > 0.0:
        weights = weights / total
    return weights.astype(np.float32), radius


def _blur_axis(data: np.ndarray, weights: np.ndarray, radius: int, axis: int) -> np.ndarray:
    pad = [(0, 0)] * data.ndim
    pad[axis] = (radius, radius)
    padded = np.pad(data, pad, mode="edge")
    length = data.shape[axis]
    out = np.zeros_like(data)
    for idx, weight in enumerate(weights):
        window = np.take(padded, np.arange(idx, idx + length), axis=axis)
        out += window * weight
    return out


def separable_blur(image: Image.Image, sigma: float) -> Image.Image:
    """Blur an RGBA image with a two-pass kernel, clamping samples at the edges."""
    weights, radius = gaussian_kernel(sigma)
    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    if radius == 0:
        return rgba.copy()
    data = np.asarray(rgba, dtype=np.float32) / np.float32(255.0)
    data = _blur_axis(data, weights, radius, axis=1)
    data = _blur_axis(data, weights, radius, axis=0)
    out = np.clip(data * np.float32(255.0), 0.0, 255.0).astype(np.uint8)
    return Image.fromarray(out, mode="RGBA")


def apply_blur(image: Image.Image, sigma: float, backend: BlurBackend) -> Image.Image:
    """Blur ``image`` with the chosen backend; non-positive sigma returns a copy."""
    if sigma <= 0.0:
        return image.copy()
    if backend is BlurBackend.NEON:
        return separable_blur(image, sigma)
    return image.filter(ImageFilter.GaussianBlur(radius=sigma))