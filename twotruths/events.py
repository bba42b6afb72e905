"""Routage des messages entrants (Socket.IO et WebSocket brut) vers la partie."""

from __future__ import annotations

import logging
from typing import Any

import socketio

from .broadcast import BroadcastDispatcher
from .commands import MalformedMessage, parse_command
from .engine import GameEngine
from .sockets import SocketIOChannel, socketio_channel_id

logger = logging.getLogger(__name__)


class CommandRouter:
    """Décode chaque enveloppe et l'applique à la partie, dans l'ordre d'arrivée."""

    def __init__(self, engine: GameEngine) -> None:
        self.engine = engine

    async def handle_raw(self, raw: Any) -> bool:
        try:
            command = parse_command(raw)
        except MalformedMessage as e:
            logger.warning("Dropping malformed message: %s", e)
            return False
        if command is None:
            logger.debug("Ignoring unknown command in %r", raw)
            return False
        try:
            return await self.engine.dispatch(command)
        except Exception:
            # une commande fautive ne doit pas faire tomber le serveur partagé
            logger.exception("Command %s failed", command.type.value)
            return False


def register_socketio_handlers(
    sio: socketio.AsyncServer, dispatcher: BroadcastDispatcher, router: CommandRouter
) -> None:
    """Attache les handlers connect/disconnect/message au serveur Socket.IO."""

    async def connect(sid: str, _environ: dict, _auth: Any = None) -> None:
        await dispatcher.attach(SocketIOChannel(sio, sid), router.engine.state)

    async def disconnect(sid: str, *_args: Any) -> None:
        dispatcher.detach(socketio_channel_id(sid))

    async def message(_sid: str, data: Any) -> None:
        await router.handle_raw(data)

    sio.on("connect", connect)
    sio.on("disconnect", disconnect)
    sio.on("message", message)
