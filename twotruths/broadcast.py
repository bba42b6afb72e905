"""Registre des connexions et diffusion de l'état à tous les clients.

Chaque canal a sa propre file d'envoi vidée par une tâche dédiée: une
diffusion ne fait que déposer le message, un client lent ou bloqué ne retarde
ni la partie ni les autres clients.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Iterator, Protocol

from .state import GameState

logger = logging.getLogger(__name__)

# Au-delà, les états les plus anciens sont abandonnés (chaque état est complet)
OUTBOX_SIZE = 100


class Channel(Protocol):
    id: str

    async def send(self, text: str) -> None:
        ...


def encode_state(state: GameState) -> str:
    return json.dumps({"type": "state", "data": state.snapshot()}, ensure_ascii=False)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._channels: Dict[str, Channel] = {}

    def register(self, channel: Channel) -> None:
        self._channels[channel.id] = channel

    def unregister(self, channel_id: str) -> bool:
        return self._channels.pop(channel_id, None) is not None

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[Channel]:
        return iter(list(self._channels.values()))

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._channels


class BroadcastDispatcher:
    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry
        self._outboxes: Dict[str, asyncio.Queue[str]] = {}
        self._writers: Dict[str, asyncio.Task[Any]] = {}

    async def attach(self, channel: Channel, state: GameState) -> None:
        """Enregistre le canal et lui envoie immédiatement l'état complet."""
        self.registry.register(channel)
        outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=OUTBOX_SIZE)
        self._outboxes[channel.id] = outbox
        self._writers[channel.id] = asyncio.create_task(self._write(channel, outbox))
        logger.info("Client connected: %s (%d open)", channel.id, len(self.registry))
        self._enqueue(channel.id, encode_state(state))

    def detach(self, channel_id: str) -> None:
        outbox = self._outboxes.pop(channel_id, None)
        writer = self._writers.pop(channel_id, None)
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
        if outbox is not None:
            _discard(outbox)
        if self.registry.unregister(channel_id):
            logger.info("Client disconnected: %s (%d open)", channel_id, len(self.registry))

    async def broadcast_state(self, state: GameState) -> None:
        message = encode_state(state)
        for channel in self.registry:
            self._enqueue(channel.id, message)

    async def flush(self, *channel_ids: str) -> None:
        """Attend que les files des canaux donnés (tous par défaut) soient vidées."""
        ids = channel_ids or tuple(self._outboxes)
        outboxes = [self._outboxes[i] for i in ids if i in self._outboxes]
        await asyncio.gather(*(outbox.join() for outbox in outboxes))

    async def close(self) -> None:
        writers = list(self._writers.values())
        for channel_id in list(self._outboxes):
            self.detach(channel_id)
        if writers:
            await asyncio.gather(*writers, return_exceptions=True)

    def _enqueue(self, channel_id: str, message: str) -> None:
        outbox = self._outboxes.get(channel_id)
        if outbox is None:
            return
        if outbox.full():
            logger.warning("Outbox of %s is full, dropping oldest state", channel_id)
            outbox.get_nowait()
            outbox.task_done()
        outbox.put_nowait(message)

    async def _write(self, channel: Channel, outbox: asyncio.Queue[str]) -> None:
        while True:
            message = await outbox.get()
            try:
                await channel.send(message)
            except Exception as e:
                # un client en erreur ne bloque pas les autres
                logger.warning("Send to %s failed, dropping it: %s", channel.id, e)
                self.detach(channel.id)
                return
            finally:
                outbox.task_done()


def _discard(outbox: asyncio.Queue[str]) -> None:
    while not outbox.empty():
        outbox.get_nowait()
        outbox.task_done()
