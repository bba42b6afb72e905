#!/usr/bin/env python3
"""
Script de démarrage du serveur Two Truths & a Lie
"""
import logging

import uvicorn

from twotruths.config import get_settings
from twotruths.main import create_app

if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("🎮 2 TRUTHS 1 LIE — Game Server")
    print(f"📺 Display: http://localhost:{settings.port}/player.html")
    print(f"📱 Admin:   http://localhost:{settings.port}/admin.html")
    print(f"🔌 WebSocket: ws://localhost:{settings.port}/ws")

    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level
    )
