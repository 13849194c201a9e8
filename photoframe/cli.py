"""Command-line entry point that wires the slideshow tasks together."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import pprint
import signal
import sys
import threading
from pathlib import Path
from typing import Any, List, Optional, Sequence

from . import files, loader, manager, viewer
from .config import ConfigError, Configuration, load_configuration

log = logging.getLogger(__name__)

VERSION = "0.1.0"
LOG_LEVEL_ENV = "PHOTOFRAME_LOG"
_SHUTDOWN_GRACE_SECONDS = 5.0


class _LoopEnd:
    """Thread-safe non-blocking access to an asyncio queue owned by a running loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, target: asyncio.Queue) -> None:
        self._loop = loop
        self._queue = target

    async def _take(self) -> Any:
        return self._queue.get_nowait()

    async def _give(self, item: Any) -> None:
        self._queue.put_nowait(item)

    def get_nowait(self) -> Any:
        try:
            return asyncio.run_coroutine_threadsafe(self._take(), self._loop).result()
        except RuntimeError:
            raise asyncio.QueueEmpty() from None

    def put_nowait(self, item: Any) -> None:
        try:
            asyncio.run_coroutine_threadsafe(self._give(item), self._loop).result()
        except RuntimeError:
            raise asyncio.QueueFull() from None


def parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    """Parse the command line: a single path to the YAML configuration."""
    parser = argparse.ArgumentParser(
        prog="photoframe", description="photo frame minimal scaffold"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("config", metavar="CONFIG", type=Path, help="Path to YAML config")
    return parser.parse_args(argv)


def _init_logging() -> None:
    name = os.environ.get(LOG_LEVEL_ENV, "info").upper()
    level = getattr(logging, name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")


def _watch_stdin(loop: asyncio.AbstractEventLoop, cancel: asyncio.Event) -> None:
    def watch() -> None:
        try:
            sys.stdin.buffer.read()
            log.info("stdin closed; initiating shutdown")
        except Exception as exc:
            log.warning("stdin watcher failed: %s", exc)
        try:
            loop.call_soon_threadsafe(cancel.set)
        except RuntimeError:
            pass

    threading.Thread(target=watch, name="stdin-watcher", daemon=True).start()


def _install_interrupt(loop: asyncio.AbstractEventLoop, cancel: asyncio.Event) -> bool:
    def interrupted() -> None:
        log.info("ctrl-c received; initiating shutdown")
        cancel.set()

    try:
        loop.add_signal_handler(signal.SIGINT, interrupted)
    except (NotImplementedError, RuntimeError, ValueError) as exc:
        log.warning("ctrl-c handler failed: %s", exc)
        return False
    return True


async def run_pipeline(cfg: Configuration, cancel: asyncio.Event) -> None:
    """Run inventory, playlist, loader and viewer until the viewer stops or ``cancel`` is set."""
    loop = asyncio.get_running_loop()
    inventory: asyncio.Queue = asyncio.Queue(128)
    invalid: asyncio.Queue = asyncio.Queue(64)
    to_load: asyncio.Queue = asyncio.Queue(4)
    loaded: asyncio.Queue = asyncio.Queue(cfg.viewer_preload_count)
    displayed: asyncio.Queue = asyncio.Queue(64)

    _watch_stdin(loop, cancel)
    interrupt_installed = _install_interrupt(loop, cancel)

    named: List[tuple] = [
        ("files", asyncio.create_task(files.run(cfg, inventory, invalid, cancel))),
        ("manager", asyncio.create_task(manager.run(inventory, displayed, to_load, cancel))),
        (
            "loader",
            asyncio.create_task(
                loader.run(to_load, invalid, loaded, cancel, cfg.loader_max_concurrent_decodes)
            ),
        ),
    ]
    try:
        await asyncio.to_thread(
            viewer.run_windowed,
            _LoopEnd(loop, loaded),
            _LoopEnd(loop, displayed),
            cancel,
            cfg,
        )
    except Exception:
        log.exception("viewer failed")
    finally:
        cancel.set()
        tasks = [task for _, task in named]
        _, pending = await asyncio.wait(tasks, timeout=_SHUTDOWN_GRACE_SECONDS)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)
        for name, task in named:
            if task.cancelled():
                log.error("join error: %s task did not stop in time", name)
            elif task.exception() is not None:
                log.error("task error: %s task failed: %r", name, task.exception())
        if interrupt_installed:
            loop.remove_signal_handler(signal.SIGINT)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load the configuration and run the slideshow; return the exit status."""
    args = parse_args(argv)
    _init_logging()
    try:
        cfg = load_configuration(args.config)
    except (OSError, ConfigError) as exc:
        print(f"Error: failed to load configuration from {args.config}: {exc}", file=sys.stderr)
        return 1
    try:
        cfg = cfg.validated()
    except ConfigError as exc:
        print(f"Error: invalid configuration values: {exc}", file=sys.stderr)
        return 1
    log.info("Loaded configuration from %s:\n%s", args.config, pprint.pformat(cfg))
    asyncio.run(run_pipeline(cfg, asyncio.Event()))
    return 0


if __name__ == "__main__":
    sys.exit(main())