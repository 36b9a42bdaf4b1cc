"""Vault event dispatcher.

Consumes create/modify/rename/delete notifications from the host store
through an asyncio queue and keeps the reference index and the sequence
cache in step with the vault.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from linkweaver.core.models import NoteRef, VaultEvent

if TYPE_CHECKING:
    from linkweaver.core.service import LinkWeaver

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Queues vault events and applies them to a LinkWeaver instance."""

    def __init__(self, maxsize: int = 1024) -> None:
        self._queue: asyncio.Queue[VaultEvent] = asyncio.Queue(maxsize=maxsize)
        self._service: "LinkWeaver | None" = None
        self._poll_task: asyncio.Task | None = None
        self._running: bool = False
        self._overflowed: bool = False

    def bind(self, service: "LinkWeaver") -> None:
        self._service = service

    def publish(self, event: VaultEvent) -> None:
        """Enqueue an event without blocking."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Event queue full, dropping %s event for %s", event.kind, event.path)
            self._overflowed = True

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start_polling(self) -> None:
        """Start the background consumer task."""
        if self._poll_task is not None:
            return
        self._running = True
        self._poll_task = asyncio.create_task(self._poll_loop())

    def stop_polling(self) -> None:
        """Stop the background consumer task."""
        self._running = False
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                event = await self._queue.get()
                await self.handle(event)
                if self._queue.empty():
                    await self.resync()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error handling vault event")

    async def drain(self) -> int:
        """Handle every queued event now. Returns how many were handled."""
        handled = 0
        while not self._queue.empty():
            await self.handle(self._queue.get_nowait())
            handled += 1
        await self.resync()
        return handled

    async def resync(self) -> None:
        """Rebuild the index and drop cached sequences if events were lost."""
        if not self._overflowed or self._service is None:
            return
        self._overflowed = False
        logger.warning("Vault events were dropped, rebuilding the reference index")
        await self._service.index.rebuild()
        self._service.detector.clear_cache()

    async def handle(self, event: VaultEvent) -> None:
        service = self._service
        if service is None:
            return

        note = NoteRef(path=event.path)
        if event.kind == "create":
            await service.index.refresh(event.path)
            # A new sibling can join existing sequences anywhere
            service.detector.clear_cache()
        elif event.kind == "modify":
            await service.index.refresh(event.path)
        elif event.kind == "delete":
            service.index.remove(event.path)
            service.detector.invalidate_file(event.path)
            service.detector.invalidate_folder(note.parent)
        elif event.kind == "rename" and event.old_path:
            old = NoteRef(path=event.old_path)
            service.index.remove(event.old_path)
            await service.index.refresh(event.path)
            service.detector.invalidate_file(event.old_path)
            service.detector.invalidate_folder(old.parent)
            service.detector.invalidate_folder(note.parent)
            if service.settings.auto_update_links:
                await service.batch.update_links_on_rename(event.old_path, event.path)
        logger.debug("Handled %s event for %s", event.kind, event.path)
