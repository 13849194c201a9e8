"""Full-screen slideshow window with cross-fades between matted photos."""

from __future__ import annotations

import asyncio
import logging
import os
import queue
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Tuple

from .config import Configuration, FixedColorMatting, MattingOptions
from .events import Displayed, PreparedImage
from .geometry import compute_cover_rect, fade_progress, loading_rect
from .matting import MatParams, MatResult, MatTask, MattingPipeline

log = logging.getLogger(__name__)

MAX_TEXTURE_DIMENSION = 8192
_FRAME_RATE = 60
_EMPTY = (queue.Empty, asyncio.QueueEmpty)
_FULL = (queue.Full, asyncio.QueueFull)


@dataclass(eq=False)
class Slide:
    """A matted canvas ready to be drawn, with the renderer's handle for it."""

    path: Path
    width: int
    height: int
    surface: Any = None


def clear_color(matting: MattingOptions) -> Tuple[float, float, float, float]:
    """Background colour as RGBA fractions: the mat colour, or black for blur mats."""
    style = matting.style
    if isinstance(style, FixedColorMatting):
        red, green, blue = style.color
        return (red / 255.0, green / 255.0, blue / 255.0, 1.0)
    return (0.0, 0.0, 0.0, 1.0)


class SlideshowState:
    """Which slide is shown, which one fades in, and when transitions happen.

    Times are in seconds on a monotonic clock.
    """

    def __init__(self, fade_ms: int, dwell_ms: int, preload_count: int) -> None:
        self.fade_ms = fade_ms
        self.dwell_ms = dwell_ms
        self.preload_count = preload_count
        self._pending: Deque[Slide] = deque()
        self._current: Optional[Slide] = None
        self._next: Optional[Slide] = None
        self._fade_start: Optional[float] = None
        self._displayed_at: Optional[float] = None

    @property
    def current(self) -> Optional[Slide]:
        """The slide fully shown (or fading out)."""
        return self._current

    @property
    def upcoming(self) -> Optional[Slide]:
        """The slide fading in, if a transition is staged."""
        return self._next

    @property
    def pending_count(self) -> int:
        """Number of matted slides waiting to be shown."""
        return len(self._pending)

    def push(self, slide: Slide) -> None:
        """Queue a matted slide behind those already waiting."""
        self._pending.append(slide)
        log.debug("queued_image depth=%d", len(self._pending))

    def wants_more(self, inflight: int) -> bool:
        """True while queued plus in-progress slides are below the preload count."""
        return len(self._pending) + inflight < self.preload_count

    def _progress(self, now: float) -> float:
        assert self._fade_start is not None
        return fade_progress((now - self._fade_start) * 1000.0, self.fade_ms)

    def advance(self, now: float) -> List[Path]:
        """Move the show forward to ``now``; return the paths that became shown."""
        shown: List[Path] = []
        if self._fade_start is not None and self._progress(now) >= 1.0:
            self._fade_start = None
            if self._next is not None:
                self._current, self._next = self._next, None
                self._displayed_at = now
                log.info(
                    "transition_end path=%s queue_depth=%d",
                    self._current.path,
                    len(self._pending),
                )
                shown.append(self._current.path)

        if self._current is None and self._fade_start is None and self._pending:
            self._current = self._pending.popleft()
            self._displayed_at = now
            log.info("first_image path=%s", self._current.path)
            shown.append(self._current.path)

        if (
            self._fade_start is None
            and self._displayed_at is not None
            and (now - self._displayed_at) * 1000.0 >= self.dwell_ms
        ):
            if self._next is None and self._pending:
                self._next = self._pending.popleft()
                log.info(
                    "transition_start path=%s queue_depth=%d",
                    self._next.path,
                    len(self._pending),
                )
            if self._next is not None:
                self._fade_start = now
        return shown

    def layers(self, now: float) -> List[Tuple[Slide, float]]:
        """Slides to draw at ``now``, bottom first, each with its opacity."""
        if self._fade_start is not None:
            t = self._progress(now)
            drawn: List[Tuple[Slide, float]] = []
            if self._current is not None:
                drawn.append((self._current, 1.0 - t))
            if self._next is not None:
                drawn.append((self._next, t))
            return drawn
        if self._current is not None:
            return [(self._current, 1.0)]
        return []


def _poll(from_loader: Any) -> Optional[PreparedImage]:
    try:
        message = from_loader.get_nowait()
    except _EMPTY:
        return None
    return message.image


def _notify(to_manager_displayed: Any, path: Path) -> None:
    try:
        to_manager_displayed.put_nowait(Displayed(path))
    except _FULL:
        log.debug("displayed notification dropped for %s", path)


def _to_slide(pygame: Any, result: MatResult) -> Slide:
    surface = pygame.image.frombuffer(result.pixels, (result.width, result.height), "RGBA")
    return Slide(result.path, result.width, result.height, surface.convert())


def run_windowed(
    from_loader: Any,
    to_manager_displayed: Any,
    cancel: Any,
    cfg: Configuration,
) -> None:
    """Show the slideshow full screen until the window closes or ``cancel`` is set.

    ``from_loader`` offers ``get_nowait()`` yielding PhotoLoaded messages,
    ``to_manager_displayed`` offers ``put_nowait()`` and ``cancel`` offers ``is_set()``.
    """
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
    import pygame

    pygame.init()
    try:
        screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN | pygame.NOFRAME)
        pygame.display.set_caption("Photo Frame")
        pygame.mouse.set_visible(False)
        background = tuple(round(c * 255) for c in clear_color(cfg.matting)[:3])
        state = SlideshowState(cfg.fade_ms, cfg.dwell_ms, cfg.viewer_preload_count)
        deferred: Deque[PreparedImage] = deque()
        scaled: Dict[int, Tuple[Tuple[int, int], Any]] = {}
        inflight = 0
        workers = max(os.cpu_count() or 2, 1)
        clock = pygame.time.Clock()

        with MattingPipeline(workers, max(cfg.viewer_preload_count, 2)) as pipeline:
            running = True
            while running and not cancel.is_set():
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                screen_w, screen_h = screen.get_size()

                while (result := pipeline.try_recv()) is not None:
                    inflight = max(inflight - 1, 0)
                    state.push(_to_slide(pygame, result))

                while state.wants_more(inflight):
                    image = deferred.popleft() if deferred else _poll(from_loader)
                    if image is None:
                        break
                    params = MatParams(
                        screen_w=max(screen_w, 1),
                        screen_h=max(screen_h, 1),
                        oversample=cfg.oversample,
                        max_dim=MAX_TEXTURE_DIMENSION,
                        matting=cfg.matting,
                    )
                    if pipeline.try_submit(MatTask(image=image, params=params)):
                        inflight += 1
                    else:
                        deferred.appendleft(image)
                        break

                now = time.monotonic()
                for path in state.advance(now):
                    _notify(to_manager_displayed, path)

                screen.fill(background)
                layers = state.layers(now)
                for slide, alpha in layers:
                    x, y, w, h = compute_cover_rect(
                        slide.width, slide.height, screen_w, screen_h
                    )
                    size = (max(round(w), 1), max(round(h), 1))
                    cached = scaled.get(id(slide))
                    if cached is None or cached[0] != size:
                        cached = (size, pygame.transform.smoothscale(slide.surface, size))
                        scaled[id(slide)] = cached
                    surface = cached[1]
                    surface.set_alpha(round(alpha * 255))
                    screen.blit(surface, (round(x), round(y)))
                live = {id(slide) for slide, _ in layers}
                for key in [k for k in scaled if k not in live]:
                    del scaled[key]
                if not layers:
                    x, y, w, h = loading_rect(1, 1, screen_w, screen_h)
                    pygame.draw.rect(
                        screen,
                        (255, 255, 255),
                        pygame.Rect(round(x), round(y), max(round(w), 1), max(round(h), 1)),
                    )
                pygame.display.flip()
                clock.tick(_FRAME_RATE)
    finally:
        pygame.quit()