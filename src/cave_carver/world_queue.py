"""Single-owner task queue for world mutation and caller notifications."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol, TypeVar

T = TypeVar("T")


class WorldTaskQueue(Protocol):
    """Executor the host supplies for work that may touch the world or message callers."""

    def submit(self, task: Callable[[], T], *, name: str = "world-task") -> asyncio.Future[T]:
        """Schedule ``task``; the returned future resolves with its result."""

    def is_owner(self) -> bool:
        """True when called from inside the owning context."""


class SerialWorldTaskQueue:
    """Runs submitted callables one at a time on a single asyncio worker task."""

    def __init__(self, *, max_queue_size: int = 10_000, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("cave_carver.world_queue")
        self._queue: asyncio.Queue[tuple[str, Callable[[], Any], asyncio.Future[Any]]] = asyncio.Queue(
            maxsize=max_queue_size
        )
        self._worker_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    async def start(self) -> None:
        """Start the worker loop once for this queue."""
        if self.running:
            return

        self._worker_task = asyncio.create_task(self._worker_loop(), name="world-task-queue")
        self._logger.info("world_queue_started", extra={"queue_maxsize": self._queue.maxsize})

    async def stop(self) -> None:
        """Stop the worker; tasks still queued are cancelled."""
        if not self._worker_task:
            return

        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        finally:
            self._worker_task = None

        while not self._queue.empty():
            _, _, future = self._queue.get_nowait()
            future.cancel()
            self._queue.task_done()
        self._logger.info("world_queue_stopped")

    def submit(self, task: Callable[[], T], *, name: str = "world-task") -> asyncio.Future[T]:
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((name, task, future))
        return future

    def is_owner(self) -> bool:
        try:
            current = asyncio.current_task()
        except RuntimeError:
            return False
        return current is not None and current is self._worker_task

    async def join(self) -> None:
        """Wait until every submitted task has run."""
        await self._queue.join()

    async def _worker_loop(self) -> None:
        while True:
            name, task, future = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                result = task()
            except Exception as exc:  # noqa: BLE001 - surfaced through the future.
                self._logger.exception("world_task_failed", extra={"task_name": name})
                if not future.cancelled():
                    future.set_exception(exc)
            else:
                if not future.cancelled():
                    future.set_result(result)
            finally:
                self._queue.task_done()
