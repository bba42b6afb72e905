"""Tâches différées annulables (compte à rebours, animations, tirage)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)

DRAW = "draw"
FLASH = "flash"
CHALLENGE = "challenge"
COUNTDOWN = "countdown"


class Scheduler:
    """Une seule tâche active par type: planifier un type annule la précédente."""

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task[Any]] = {}

    def start(self, kind: str, factory: Callable[[], Awaitable[None]]) -> asyncio.Task[Any]:
        self.cancel(kind)

        async def runner() -> None:
            try:
                await factory()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Scheduled %s task failed", kind)

        task = asyncio.create_task(runner())
        self._tasks[kind] = task
        task.add_done_callback(lambda t: self._forget(kind, t))
        return task

    def call_later(
        self, kind: str, delay: float, callback: Callable[[], Awaitable[None]]
    ) -> asyncio.Task[Any]:
        async def delayed() -> None:
            await asyncio.sleep(delay)
            await callback()

        return self.start(kind, delayed)

    def cancel(self, kind: str) -> bool:
        task = self._tasks.pop(kind, None)
        if task and not task.done():
            task.cancel()
            return True
        return False

    def pending(self, kind: str) -> bool:
        task = self._tasks.get(kind)
        return task is not None and not task.done()

    async def drain(self) -> None:
        """Attend que toutes les tâches (y compris celles qu'elles planifient) soient finies."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, kind: str, task: asyncio.Task[Any]) -> None:
        if self._tasks.get(kind) is task:
            del self._tasks[kind]
