import json
import random
from typing import Any, Dict, List

import pytest

from twotruths.config import Settings
from twotruths.server import GameServer, build_server


class RecordingChannel:
    """Faux canal: garde les messages envoyés (décodés)."""

    def __init__(self, channel_id: str = "test:1", fail: bool = False) -> None:
        self.id = channel_id
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    async def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent.append(json.loads(text))

    def last_state(self) -> Dict[str, Any]:
        return self.sent[-1]["data"]


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        draw_delay=0.01,
        score_flash_duration=0.01,
        challenge_animation_duration=0.01,
        tick_interval=0.001,
    )


@pytest.fixture()
def server(settings: Settings) -> GameServer:
    return build_server(settings, rng=random.Random(1234))


@pytest.fixture()
def engine(server: GameServer):
    return server.engine


@pytest.fixture()
def state(server: GameServer):
    return server.state


@pytest.fixture()
def make_channel():
    return RecordingChannel
