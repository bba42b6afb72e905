"""Etat applicatif centralisé d'une partie."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .question_sets import QuestionSet, QuestionSetStore
from .roster import Roster
from .stages import DEFAULT_STAGE


class Phase(str, Enum):
    IDLE = "idle"
    SPINNING = "spinning"
    PLAYING = "playing"
    LOCKED = "locked"
    REVEALED = "revealed"
    DONE = "done"


@dataclass
class GameState:
    question_sets: QuestionSetStore
    stage: str = DEFAULT_STAGE
    roster: Roster = field(default_factory=Roster)
    current_player: Optional[str] = None
    current_set: Optional[QuestionSet] = None
    challenger: Optional[str] = None
    revealed: bool = False
    locked: bool = False
    round: int = 0

    # Timer
    timer_remaining: int = 60
    timer_duration: int = 60
    timer_running: bool = False

    phase: Phase = Phase.IDLE
    status: str = "Waiting to start..."
    show_leaderboard: bool = False

    # Indications transitoires pour les animations côté client
    draw_animation: Optional[Dict[str, Any]] = None
    score_flash: Optional[Dict[str, Any]] = None
    challenge_animation: bool = False

    def mark_current_set_used(self) -> None:
        if self.current_set is not None:
            self.current_set.used = True

    def snapshot(self) -> Dict[str, Any]:
        """Copie structurelle complète, sans aucune référence vers l'état vivant."""
        draw: Optional[Dict[str, Any]] = None
        if self.draw_animation is not None:
            draw = {
                "spinning": self.draw_animation["spinning"],
                "result": self.draw_animation["result"],
                "names": list(self.draw_animation["names"]),
            }
        flash = dict(self.score_flash) if self.score_flash is not None else None
        default_sets: List[Dict[str, Any]] = [s.to_dict() for s in self.question_sets.built_in]
        custom_sets: List[Dict[str, Any]] = [s.to_dict() for s in self.question_sets.custom]
        return {
            "stage": self.stage,
            "players": self.roster.to_list(),
            "currentPlayer": self.current_player,
            "currentSet": self.current_set.to_dict() if self.current_set else None,
            "defaultSets": default_sets,
            "questionSets": custom_sets,
            "challenger": self.challenger,
            "revealed": self.revealed,
            "locked": self.locked,
            "round": self.round,
            "timerVal": self.timer_remaining,
            "timerDuration": self.timer_duration,
            "timerRunning": self.timer_running,
            "gamePhase": self.phase.value,
            "status": self.status,
            "showLeaderboard": self.show_leaderboard,
            "slotAnimation": draw,
            "scoreFlash": flash,
            "challengeAnim": self.challenge_animation,
        }
