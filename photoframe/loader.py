"""Decodes photos to RGBA with EXIF orientation applied."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Set, Tuple, Union

from PIL import Image

from .events import InvalidPhoto, LoadPhoto, PhotoLoaded, PreparedImage

log = logging.getLogger(__name__)

_ORIENTATION_TAG = 0x0112

_T = Image.Transpose


def read_orientation(path: Union[str, Path]) -> Optional[int]:
    """Return the EXIF orientation of an image file, or None if absent."""
    try:
        with Image.open(path) as img:
            value = img.getexif().get(_ORIENTATION_TAG)
    except Exception:
        return None
    if value is None:
        return None
    try:
        orientation = int(value) & 0xFFFF
    except (TypeError, ValueError):
        return None
    log.debug("exif orientation %d for %s", orientation, path)
    return orientation


def apply_orientation(image: Image.Image, orientation: int) -> Image.Image:
    """Transform ``image`` so that it displays upright for an EXIF orientation.

    Unknown orientations leave the image unchanged.
    """
    if orientation == 2:
        return image.transpose(_T.FLIP_LEFT_RIGHT)
    if orientation == 3:
        return image.transpose(_T.ROTATE_180)
    if orientation == 4:
        return image.transpose(_T.FLIP_TOP_BOTTOM)
    if orientation == 5:
        return image.transpose(_T.ROTATE_270).transpose(_T.FLIP_LEFT_RIGHT)
    if orientation == 6:
        return image.transpose(_T.ROTATE_270)
    if orientation == 7:
        return image.transpose(_T.ROTATE_90).transpose(_T.FLIP_LEFT_RIGHT)
    if orientation == 8:
        return image.transpose(_T.ROTATE_90)
    return image


def decode_rgba_apply_exif(path: Union[str, Path]) -> Image.Image:
    """Decode an image file to RGBA and apply its EXIF orientation."""
    with Image.open(path) as img:
        img.load()
        rgba = img.convert("RGBA")
    return apply_orientation(rgba, read_orientation(path) or 1)


async def _decode(path: Path) -> Tuple[Path, Optional[Image.Image]]:
    try:
        image = await asyncio.to_thread(decode_rgba_apply_exif, path)
    except Exception as exc:
        log.debug("decode failed for %s: %s", path, exc)
        image = None
    return path, image


async def run(
    load_queue: asyncio.Queue,
    invalid_queue: asyncio.Queue,
    to_viewer: asyncio.Queue,
    cancel: asyncio.Event,
    max_in_flight: int,
) -> None:
    """Decode requested photos, at most ``max_in_flight`` at a time.

    Decoded photos go to the viewer; photos that fail to decode are
    reported as invalid. A path already being decoded is not decoded twice.
    """
    in_flight: Set[Path] = set()
    decodes: Set[asyncio.Future] = set()
    cancel_wait = asyncio.ensure_future(cancel.wait())
    receive: Optional[asyncio.Future] = None
    try:
        while True:
            if receive is None and len(in_flight) < max_in_flight:
                receive = asyncio.ensure_future(load_queue.get())
            waiting = {cancel_wait, *decodes}
            if receive is not None:
                waiting.add(receive)
            done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
            if cancel_wait in done:
                break
            finished = done & decodes
            if receive is not None and receive in done:
                request: LoadPhoto = receive.result()
                receive = None
                path = Path(request.path)
                if path not in in_flight:
                    in_flight.add(path)
                    decodes.add(asyncio.ensure_future(_decode(path)))
            for task in finished:
                decodes.discard(task)
                path, image = task.result()
                in_flight.discard(path)
                if image is not None:
                    log.debug("loaded (rgba8): %s", path)
                    await to_viewer.put(PhotoLoaded(PreparedImage.from_pil(path, image)))
                else:
                    log.debug("invalid photo %s", path)
                    await invalid_queue.put(InvalidPhoto(path))
    finally:
        cancel_wait.cancel()
        if receive is not None:
            receive.cancel()
        for task in decodes:
            task.cancel()