"""Composes decoded photos onto matted canvases, optionally on worker threads."""

from __future__ import annotations

import logging
import platform
import queue
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from PIL import Image

from .blur import apply_blur
from .config import DEFAULT_BLUR_MAX_SAMPLE_DIM, BlurMatting, FixedColorMatting, MattingOptions
from .events import PreparedImage
from .geometry import (
    MAX_MARGIN_FRACTION,
    center_offset,
    compute_canvas_size,
    resize_to_cover,
    resize_to_fit_with_margin,
)

log = logging.getLogger(__name__)

_POLL_SECONDS = 0.05
_BILINEAR = Image.Resampling.BILINEAR
_BICUBIC = Image.Resampling.BICUBIC


@dataclass(frozen=True)
class MatParams:
    """Screen and matting settings a canvas is composed for."""

    screen_w: int
    screen_h: int
    oversample: float
    max_dim: int
    matting: MattingOptions = field(default_factory=MattingOptions)


@dataclass(frozen=True)
class MatTask:
    """A decoded photo waiting to be matted."""

    image: PreparedImage
    params: MatParams


@dataclass(frozen=True)
class MatResult:
    """A finished canvas as tightly packed RGBA8 rows."""

    path: Path
    width: int
    height: int
    pixels: bytes

    def to_pil(self) -> Image.Image:
        """Return the canvas as a Pillow RGBA image."""
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)


def _default_sample_limit(max_dim: int) -> int:
    if platform.machine().lower() in ("aarch64", "arm64"):
        return DEFAULT_BLUR_MAX_SAMPLE_DIM
    return max_dim


def _round(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _cover_background(
    src: Image.Image, canvas_w: int, canvas_h: int, max_dim: int
) -> Image.Image:
    bg_w, bg_h = resize_to_cover(canvas_w, canvas_h, src.width, src.height, max_dim)
    bg = src.resize((bg_w, bg_h), _BILINEAR)
    if bg_w > canvas_w or bg_h > canvas_h:
        crop_x = max(bg_w - canvas_w, 0) // 2
        crop_y = max(bg_h - canvas_h, 0) // 2
        crop_w = min(canvas_w, bg_w - crop_x)
        crop_h = min(canvas_h, bg_h - crop_y)
        bg = bg.crop((crop_x, crop_y, crop_x + crop_w, crop_y + crop_h))
    if bg.size != (canvas_w, canvas_h):
        canvas = Image.new("RGBA", (canvas_w, canvas_h), (0, 0, 0, 255))
        offset = center_offset(bg.width, bg.height, canvas_w, canvas_h)
        canvas.alpha_composite(bg, dest=offset)
        bg = canvas
    return bg


def _blur_background(
    src: Image.Image, style: BlurMatting, canvas_w: int, canvas_h: int, max_dim: int
) -> Image.Image:
    bg = _cover_background(src, canvas_w, canvas_h, max_dim)
    if style.sigma <= 0.0:
        return bg
    configured = style.max_sample_dim
    limit = configured if configured else _default_sample_limit(max_dim)
    limit = max(min(limit, max_dim), 1)

    sample = bg
    sigma_px = style.sigma
    canvas_max = max(canvas_w, canvas_h, 1)
    if canvas_max > limit:
        scale = limit / canvas_max
        sample_w = int(min(max(_round(canvas_w * scale), 1), limit))
        sample_h = int(min(max(_round(canvas_h * scale), 1), limit))
        sample = sample.resize((sample_w, sample_h), _BILINEAR)
        sigma_px *= max(scale, 0.01)

    blurred = apply_blur(sample, sigma_px, style.backend)
    if blurred.size != (canvas_w, canvas_h):
        blurred = blurred.resize((canvas_w, canvas_h), _BICUBIC)
    return blurred


def process_mat_task(task: MatTask) -> Optional[MatResult]:
    """Compose the photo centred on a matted canvas.

    Returns None when the photo or screen is empty, or the pixel buffer is
    too short for the stated size.
    """
    image = task.image
    params = task.params
    width, height = image.width, image.height
    if width <= 0 or height <= 0:
        return None
    expected = width * height * 4
    if len(image.pixels) < expected:
        return None
    if params.screen_w <= 0 or params.screen_h <= 0:
        return None
    src = Image.frombytes("RGBA", (width, height), bytes(image.pixels[:expected]))

    canvas_w, canvas_h = compute_canvas_size(
        params.screen_w, params.screen_h, params.oversample, params.max_dim
    )
    matting = params.matting
    margin = min(max(matting.minimum_mat_percentage / 100.0, 0.0), MAX_MARGIN_FRACTION)

    style = matting.style
    if isinstance(style, BlurMatting):
        background = _blur_background(src, style, canvas_w, canvas_h, params.max_dim)
    else:
        color = style.color if isinstance(style, FixedColorMatting) else (0, 0, 0)
        background = Image.new("RGBA", (canvas_w, canvas_h), (*color, 255))

    max_upscale = max(matting.max_upscale_factor, 1.0)
    final_w, final_h = resize_to_fit_with_margin(
        canvas_w, canvas_h, width, height, margin, max_upscale
    )
    main_img = src if (final_w, final_h) == (width, height) else src.resize(
        (final_w, final_h), _BILINEAR
    )
    offset = center_offset(final_w, final_h, canvas_w, canvas_h)
    background.alpha_composite(main_img, dest=offset)

    return MatResult(
        path=Path(image.path),
        width=canvas_w,
        height=canvas_h,
        pixels=background.tobytes(),
    )


class MattingPipeline:
    """A pool of worker threads matting photos through bounded queues."""

    def __init__(self, worker_count: int, capacity: int) -> None:
        worker_count = max(worker_count, 1)
        capacity = max(capacity, worker_count, 2)
        self._tasks: "queue.Queue[MatTask]" = queue.Queue(maxsize=capacity)
        self._results: "queue.Queue[MatResult]" = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()
        self._workers: List[threading.Thread] = [
            threading.Thread(target=self._work, name=f"matting-{n}", daemon=True)
            for n in range(worker_count)
        ]
        for worker in self._workers:
            worker.start()

    def _work(self) -> None:
        while not self._closed.is_set():
            try:
                task = self._tasks.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            try:
                result = process_mat_task(task)
            except Exception:
                log.exception("matting failed for %s", task.image.path)
                continue
            if result is None:
                continue
            while not self._closed.is_set():
                try:
                    self._results.put(result, timeout=_POLL_SECONDS)
                    break
                except queue.Full:
                    continue

    def try_submit(self, task: MatTask) -> bool:
        """Queue a task without blocking; return False if full or closed."""
        if self._closed.is_set():
            return False
        try:
            self._tasks.put_nowait(task)
        except queue.Full:
            return False
        return True

    def try_recv(self) -> Optional[MatResult]:
        """Return a finished result if one is ready, else None."""
        try:
            return self._results.get_nowait()
        except queue.Empty:
            return None

    def close(self) -> None:
        """Stop the workers and wait for them to finish."""
        self._closed.set()
        for worker in self._workers:
            worker.join()

    def __enter__(self) -> "MattingPipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()