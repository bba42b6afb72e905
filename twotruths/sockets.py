"""Initialisation Socket.IO asynchrone et canaux de transport."""

from __future__ import annotations

import uuid

import socketio
from fastapi import WebSocket


def create_sio(cors_allowed_origins: str = "*") -> socketio.AsyncServer:
    # Async Server pour ASGI; always_connect permet d'envoyer l'état depuis le handler connect
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cors_allowed_origins,
        always_connect=True,
    )


class SocketIOChannel:
    def __init__(self, sio: socketio.AsyncServer, sid: str) -> None:
        self.sio = sio
        self.sid = sid
        self.id = socketio_channel_id(sid)

    async def send(self, text: str) -> None:
        await self.sio.send(text, to=self.sid)


class WebSocketChannel:
    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.id = f"ws:{uuid.uuid4().hex}"

    async def send(self, text: str) -> None:
        await self.websocket.send_text(text)


def socketio_channel_id(sid: str) -> str:
    return f"sio:{sid}"
