"""Watchdog-backed file watching that hands debounced change sets to asyncio."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .logging import get_logger
from .models import ChangeKind, FileChangeEvent

logger = get_logger("watcher")

ChangeHandler = Callable[[List[FileChangeEvent]], Awaitable[object]]


class _ForwardingHandler(FileSystemEventHandler):
    """Translates watchdog callbacks (observer thread) into FileChangeEvents."""

    def __init__(self, watcher: "ChangeWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirCreatedEvent):
            return
        self._watcher.push_threadsafe(FileChangeEvent(Path(_decode(event.src_path)), ChangeKind.ADDED))

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirModifiedEvent):
            return
        self._watcher.push_threadsafe(FileChangeEvent(Path(_decode(event.src_path)), ChangeKind.MODIFIED))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirDeletedEvent):
            return
        self._watcher.push_threadsafe(FileChangeEvent(Path(_decode(event.src_path)), ChangeKind.REMOVED))

    def on_moved(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirMovedEvent):
            return
        self._watcher.push_threadsafe(FileChangeEvent(Path(_decode(event.src_path)), ChangeKind.REMOVED))
        # Atomic replaces surface as a move onto the target path.
        self._watcher.push_threadsafe(FileChangeEvent(Path(_decode(event.dest_path)), ChangeKind.MODIFIED))


class ChangeWatcher:
    """Watches directory trees and yields coalesced batches of change events.

    Batches are consumed by a single coroutine, so a batch that arrives while
    the previous one is still being handled waits until that handler returns.
    """

    def __init__(
        self,
        roots: Sequence[Path],
        *,
        accept: Callable[[Path], bool] = lambda path: True,
        debounce: float = 0.1,
        observer_factory: Callable[[], object] = Observer,
    ) -> None:
        self.roots = [Path(root) for root in roots]
        self.accept = accept
        self.debounce = debounce
        self._observer_factory = observer_factory
        self._observer: Optional[object] = None
        self._queue: asyncio.Queue[Optional[FileChangeEvent]] = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def __aenter__(self) -> "ChangeWatcher":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        observer = self._observer_factory()
        handler = _ForwardingHandler(self)
        for root in self.roots:
            if root.is_dir():
                observer.schedule(handler, str(root), recursive=True)  # type: ignore[attr-defined]
            else:
                logger.warning("Not watching missing directory %s", root)
        observer.start()  # type: ignore[attr-defined]
        self._observer = observer
        logger.debug("Watching %s", ", ".join(str(root) for root in self.roots))

    def stop(self) -> None:
        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()  # type: ignore[attr-defined]
            observer.join()  # type: ignore[attr-defined]

    def push(self, event: FileChangeEvent) -> None:
        """Queue ``event`` from the event loop thread."""
        if self.accept(event.path):
            self._queue.put_nowait(event)

    def push_threadsafe(self, event: FileChangeEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.push, event)

    def close(self) -> None:
        """End the ``changes()`` iteration after queued batches are consumed."""
        self._queue.put_nowait(None)

    async def changes(self) -> AsyncIterator[List[FileChangeEvent]]:
        while True:
            first = await self._queue.get()
            if first is None:
                return
            if self.debounce:
                await asyncio.sleep(self.debounce)
            batch = [first]
            closing = False
            while not self._queue.empty():
                event = self._queue.get_nowait()
                if event is None:
                    closing = True
                    break
                batch.append(event)
            yield coalesce(batch)
            if closing:
                return


def coalesce(events: Sequence[FileChangeEvent]) -> List[FileChangeEvent]:
    """Keep one event per path (the latest kind), in order of first appearance."""
    latest: Dict[Path, FileChangeEvent] = {}
    for event in events:
        latest[event.path] = event
    return list(latest.values())


async def consume(watcher: ChangeWatcher, handler: ChangeHandler, *, label: str) -> None:
    """Run ``handler`` for every batch; failures are logged and watching continues."""
    async for batch in watcher.changes():
        try:
            await handler(batch)
        except Exception:
            logger.exception("%s failed; still watching for changes", label)


def _decode(path: str | bytes) -> str:
    return path.decode("utf-8", errors="replace") if isinstance(path, bytes) else path


__all__ = ["ChangeWatcher", "coalesce", "consume"]
