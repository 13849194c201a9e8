"""Playlist orchestration: decides which photo the loader gets next."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from pathlib import Path
from typing import Deque, Iterator, Optional, Set

from .events import Displayed, InventoryEvent, LoadPhoto, PhotoAdded, PhotoRemoved

log = logging.getLogger(__name__)


class Playlist:
    """A deduplicated rotating queue of photo paths.

    New photos go to the front so they surface quickly.
    """

    def __init__(self) -> None:
        self._order: Deque[Path] = deque()
        self._known: Set[Path] = set()

    def add(self, path: Path) -> bool:
        """Put a new path at the front; return False if it was already known."""
        path = Path(path)
        if path in self._known:
            return False
        self._known.add(path)
        self._order.appendleft(path)
        return True

    def remove(self, path: Path) -> bool:
        """Forget a path; return False if it was not known."""
        path = Path(path)
        if path not in self._known:
            return False
        self._known.discard(path)
        try:
            self._order.remove(path)
        except ValueError:
            pass
        return True

    def front(self) -> Optional[Path]:
        """Return the next path to load, or None when empty."""
        return self._order[0] if self._order else None

    def rotate(self, path: Path) -> bool:
        """Move ``path`` to the back; return False if it is not present."""
        path = Path(path)
        try:
            self._order.remove(path)
        except ValueError:
            return False
        self._order.append(path)
        return True

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._order))


async def _send(queue: asyncio.Queue, path: Path) -> Path:
    await queue.put(LoadPhoto(path))
    return path


async def _withdraw(task: asyncio.Future) -> bool:
    """Cancel a pending send; return True if it completed anyway."""
    if not task.done():
        task.cancel()
        await asyncio.wait({task})
    return not task.cancelled() and task.exception() is None


def _apply(playlist: Playlist, event: InventoryEvent) -> None:
    if isinstance(event, PhotoAdded):
        playlist.add(event.path)
    elif isinstance(event, PhotoRemoved):
        playlist.remove(event.path)


async def run(
    inventory: asyncio.Queue,
    displayed: asyncio.Queue,
    to_loader: asyncio.Queue,
    cancel: asyncio.Event,
) -> None:
    """Feed the loader from the playlist until cancelled.

    Each photo handed to the loader is rotated to the back of the playlist;
    the loader queue's capacity paces the show.
    """
    playlist = Playlist()
    cancel_wait = asyncio.ensure_future(cancel.wait())
    inventory_get = asyncio.ensure_future(inventory.get())
    displayed_get = asyncio.ensure_future(displayed.get())
    send: Optional[asyncio.Future] = None
    try:
        while True:
            front = playlist.front()
            send = asyncio.ensure_future(_send(to_loader, front)) if front is not None else None
            waiting = {cancel_wait, inventory_get, displayed_get}
            if send is not None:
                waiting.add(send)
            done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
            if cancel_wait in done:
                break
            if send is not None:
                sent = await _withdraw(send)
                send = None
                if sent:
                    playlist.rotate(front)
            if inventory_get in done:
                event = inventory_get.result()
                inventory_get = asyncio.ensure_future(inventory.get())
                _apply(playlist, event)
            if displayed_get in done:
                shown: Displayed = displayed_get.result()
                displayed_get = asyncio.ensure_future(displayed.get())
                log.debug("displayed: %s", shown.path)
    finally:
        for task in (cancel_wait, inventory_get, displayed_get):
            task.cancel()
        if send is not None:
            send.cancel()