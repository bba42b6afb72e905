"""Endpoints HTTP (FastAPI): WebSocket brut, API simples et fichiers statiques."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, WebSocket
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .server import GameServer
from .sockets import WebSocketChannel


def create_http_app(server: GameServer) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        await server.engine.scheduler.shutdown()
        await server.dispatcher.close()

    app = FastAPI(title="Two Truths & a Lie", lifespan=lifespan)
    app.state.server = server

    @app.websocket("/ws")
    async def game_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        channel = WebSocketChannel(websocket)
        await server.dispatcher.attach(channel, server.state)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                # trames texte ou binaires, le décodage se fait dans parse_command
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                await server.router.handle_raw(raw)
        finally:
            server.dispatcher.detach(channel.id)

    # API simples
    @app.get("/api/state")
    async def get_state() -> JSONResponse:
        return JSONResponse(server.state.snapshot())

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "clients": len(server.registry)})

    # Statics (tout ce qui se trouve dans le dossier public)
    app.mount(
        "/",
        StaticFiles(directory=str(server.settings.static_dir), html=True, check_dir=False),
        name="static",
    )

    return app
