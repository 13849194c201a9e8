"""Photo library inventory: startup scan, filesystem watching and deletions."""

from __future__ import annotations

import asyncio
import logging
import os
import random
from pathlib import Path
from typing import List, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import Configuration
from .events import InvalidPhoto, InventoryEvent, PhotoAdded, PhotoRemoved

log = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp"})


def is_image(path: Union[str, Path]) -> bool:
    """Return True if the path has a supported image extension."""
    suffix = Path(path).suffix
    return bool(suffix) and suffix[1:].lower() in IMAGE_EXTENSIONS


def delete_if_exists(path: Union[str, Path]) -> bool:
    """Delete a file if present; return True if it was removed.

    A file that is missing, or vanishes during removal, is not an error.
    """
    path = Path(path)
    if not path.exists():
        log.debug("delete: source missing; skipping path=%s", path)
        return False
    log.debug("delete: removing file path=%s", path)
    try:
        path.unlink()
    except FileNotFoundError:
        log.debug("delete: source vanished during remove; skipping path=%s", path)
        return False
    log.info("delete: removed path=%s", path)
    return True


def scan_library(root: Union[str, Path], seed: Optional[int]) -> List[Path]:
    """Recursively collect image files under ``root`` and shuffle them.

    The same seed over the same library always yields the same order;
    ``None`` seeds the shuffle from system entropy.
    """
    found: List[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root, followlinks=True):
        for name in filenames:
            path = Path(dirpath, name)
            if path.is_file() and is_image(path):
                found.append(path)
    found.sort()
    random.Random(seed).shuffle(found)
    return found


def _inventory_events(event: FileSystemEvent) -> List[InventoryEvent]:
    """Translate a filesystem notification into inventory events."""
    if event.is_directory:
        return []
    src = os.fsdecode(event.src_path)
    if event.event_type == "created":
        return [PhotoAdded(Path(src))] if is_image(src) else []
    if event.event_type == "deleted":
        return [PhotoRemoved(Path(src))] if is_image(src) else []
    if event.event_type == "moved":
        paths = [src]
        dest = os.fsdecode(getattr(event, "dest_path", "") or "")
        if dest:
            paths.append(dest)
        result: List[InventoryEvent] = []
        for raw in paths:
            if not is_image(raw):
                continue
            path = Path(raw)
            result.append(PhotoAdded(path) if path.exists() else PhotoRemoved(path))
        return result
    return []


class _Forwarder(FileSystemEventHandler):
    """Hands watcher-thread events to the event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
        super().__init__()
        self._loop = loop
        self._queue = queue

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            pass


async def run(
    cfg: Configuration,
    to_manager: asyncio.Queue,
    invalid_queue: asyncio.Queue,
    cancel: asyncio.Event,
) -> None:
    """Announce the library to the manager, then follow changes until cancelled."""
    root = cfg.photo_library_path
    initial = scan_library(root, cfg.startup_shuffle_seed)
    for path in initial:
        log.debug("startup_add path=%s", path)
        await to_manager.put(PhotoAdded(path))
    log.info("startup recursive scan complete (shuffled) discovered=%d", len(initial))

    loop = asyncio.get_running_loop()
    watch_queue: asyncio.Queue = asyncio.Queue()
    observer = Observer()
    observer.schedule(_Forwarder(loop, watch_queue), str(root), recursive=True)
    try:
        watching = root.resolve(strict=True)
    except OSError:
        watching = root
    log.info("notify watcher initialized (recursive) watching=%s", watching)
    observer.start()

    cancel_wait = asyncio.ensure_future(cancel.wait())
    invalid_get = asyncio.ensure_future(invalid_queue.get())
    watch_get = asyncio.ensure_future(watch_queue.get())
    try:
        while True:
            done, _ = await asyncio.wait(
                {cancel_wait, invalid_get, watch_get},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if cancel_wait in done:
                log.info("cancel received; exiting files task")
                break
            if invalid_get in done:
                message: InvalidPhoto = invalid_get.result()
                invalid_get = asyncio.ensure_future(invalid_queue.get())
                log.info("deleting invalid photo path=%s", message.path)
                delete_if_exists(message.path)
                await to_manager.put(PhotoRemoved(Path(message.path)))
            if watch_get in done:
                event = watch_get.result()
                watch_get = asyncio.ensure_future(watch_queue.get())
                log.debug("notify event kind=%s path=%s", event.event_type, event.src_path)
                translated = _inventory_events(event)
                if not translated:
                    log.debug("fs: ignored kind=%s", event.event_type)
                for item in translated:
                    action = "add" if isinstance(item, PhotoAdded) else "remove"
                    log.info("fs: %s (%s) path=%s", action, event.event_type, item.path)
                    await to_manager.put(item)
    finally:
        for task in (cancel_wait, invalid_get, watch_get):
            task.cancel()
        observer.stop()
        await asyncio.to_thread(observer.join)