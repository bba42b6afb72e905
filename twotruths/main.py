"""Application ASGI combinée (FastAPI + Socket.IO)."""

from __future__ import annotations

from typing import Optional

import socketio

from .events import register_socketio_handlers
from .http import create_http_app
from .server import GameServer, build_server
from .sockets import create_sio


def create_app(server: Optional[GameServer] = None) -> socketio.ASGIApp:
    server = server or build_server()
    sio = create_sio(server.settings.cors_allowed_origins)
    register_socketio_handlers(sio, server.dispatcher, server.router)
    fastapi_app = create_http_app(server)
    return socketio.ASGIApp(sio, fastapi_app)
