"""Assemblage de l'état de partie et des composants qui le manipulent."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .broadcast import BroadcastDispatcher, ConnectionRegistry
from .config import Settings, get_settings
from .engine import GameEngine
from .events import CommandRouter
from .question_sets import QuestionSetStore, load_question_sets
from .state import GameState


@dataclass
class GameServer:
    settings: Settings
    state: GameState
    registry: ConnectionRegistry
    dispatcher: BroadcastDispatcher
    engine: GameEngine
    router: CommandRouter


def build_server(settings: Optional[Settings] = None, rng: Optional[random.Random] = None) -> GameServer:
    settings = settings or get_settings()
    store = QuestionSetStore(load_question_sets(str(settings.question_sets_path)))
    state = GameState(
        question_sets=store,
        timer_remaining=settings.default_timer_seconds,
        timer_duration=settings.default_timer_seconds,
    )
    registry = ConnectionRegistry()
    dispatcher = BroadcastDispatcher(registry)
    engine = GameEngine(state, dispatcher, settings, rng=rng)
    return GameServer(
        settings=settings,
        state=state,
        registry=registry,
        dispatcher=dispatcher,
        engine=engine,
        router=CommandRouter(engine),
    )
