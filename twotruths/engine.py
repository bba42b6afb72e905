"""Machine à états de la partie: point d'entrée unique des mutations.

Chaque commande est traitée de façon synchrone sur la boucle asyncio; un
handler retourne True si l'état a changé, et l'état complet est alors diffusé.
Les effets différés (tirage, flash de score, animation de défi, compte à
rebours) passent par le Scheduler et rediffusent l'état à leur exécution.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Dict, Optional

from .broadcast import BroadcastDispatcher
from .commands import Command, CommandType
from .config import Settings
from .question_sets import QuestionSet
from .roster import Player
from .stages import DEFAULT_STAGE, STAGES, StageConfig, get_stage
from .state import GameState, Phase
from .timer import CHALLENGE, COUNTDOWN, DRAW, FLASH, Scheduler

logger = logging.getLogger(__name__)

TIMES_UP = "⏰ TIME'S UP!"

Handler = Callable[[Any], bool]


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


class GameEngine:
    def __init__(
        self,
        state: GameState,
        dispatcher: BroadcastDispatcher,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.state = state
        self.dispatcher = dispatcher
        self.settings = settings
        self.rng = rng or random.Random()
        self.scheduler = Scheduler()
        self._handlers: Dict[CommandType, Handler] = {
            CommandType.SET_STAGE: self.set_stage,
            CommandType.ADD_PLAYER: self.add_player,
            CommandType.REMOVE_PLAYER: self.remove_player,
            CommandType.ADJUST_POINTS: self.adjust_points,
            CommandType.PICK_RANDOM: self.pick_random,
            CommandType.SELECT_QUESTION_SET: self.select_question_set,
            CommandType.ADD_QUESTION_SET: self.add_question_set,
            CommandType.START_TIMER: self.start_timer,
            CommandType.STOP_TIMER: self.stop_timer,
            CommandType.RESET_TIMER: self.reset_timer,
            CommandType.LOCK_ANSWER: self.lock_answer,
            CommandType.REVEAL_ANSWER: self.reveal_answer,
            CommandType.AWARD_PARTICIPANT: self.award_participant,
            CommandType.PARTICIPANT_WRONG: self.participant_wrong,
            CommandType.NEXT_ROUND: self.next_round,
            CommandType.SELECT_CHALLENGER: self.select_challenger,
            CommandType.CLEAR_CHALLENGER: self.clear_challenger,
            CommandType.CHALLENGER_CORRECT: self.challenger_correct,
            CommandType.CHALLENGER_WRONG: self.challenger_wrong,
            CommandType.TOGGLE_LEADERBOARD: self.toggle_leaderboard,
            CommandType.RESET_ALL_SCORES: self.reset_all_scores,
            CommandType.CLEAR_ALL_PLAYERS: self.clear_all_players,
            CommandType.RESET_QUESTION_SETS: self.reset_question_sets,
        }
        missing = set(CommandType) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for commands: {sorted(m.value for m in missing)}")

    @property
    def stage(self) -> StageConfig:
        # setStage refuse les clés inconnues; repli sur le niveau par défaut sinon
        return get_stage(self.state.stage) or STAGES[DEFAULT_STAGE]

    async def dispatch(self, command: Command) -> bool:
        changed = self._handlers[command.type](command.data)
        if changed:
            await self.publish()
        return changed

    async def publish(self) -> None:
        await self.dispatcher.broadcast_state(self.state)

    # Joueurs & niveau

    def set_stage(self, data: Any) -> bool:
        if get_stage(data) is None:
            logger.debug("Ignoring unknown stage %r", data)
            return False
        self.state.stage = data
        return True

    def add_player(self, data: Any) -> bool:
        if not isinstance(data, str) or not data.strip():
            return False
        return self.state.roster.add(data) is not None

    def remove_player(self, data: Any) -> bool:
        index = _as_int(data)
        if index is None:
            return False
        removed = self.state.roster.remove(index)
        if removed is None:
            return False
        if self.state.current_player == removed.name:
            self.state.current_player = None
        return True

    def adjust_points(self, data: Any) -> bool:
        if not isinstance(data, dict):
            return False
        index = _as_int(data.get("idx"))
        delta = _as_int(data.get("delta"))
        if index is None or delta is None:
            return False
        player = self.state.roster.get(index)
        if player is None:
            return False
        player.add_points(delta)
        return True

    # Tirage au sort

    def pick_random(self, _data: Any = None) -> bool:
        s = self.state
        available = s.roster.available_for_draw()
        if not available:
            return False
        picked = self.rng.choice(available)
        s.draw_animation = {
            "spinning": True,
            "result": picked.name,
            "names": [p.name for p in s.roster],
        }
        s.phase = Phase.SPINNING
        logger.info("Draw started, %s will be revealed in %.1fs", picked.name, self.settings.draw_delay)
        self.scheduler.call_later(DRAW, self.settings.draw_delay, lambda: self._commit_draw(picked))
        return True

    async def _commit_draw(self, picked: Player) -> None:
        s = self.state
        s.draw_animation = None
        if picked not in s.roster:
            s.phase = Phase.IDLE
            await self.publish()
            return
        picked.used_in_draw = True
        s.current_player = picked.name
        s.round += 1
        s.phase = Phase.PLAYING
        s.revealed = False
        s.locked = False
        s.challenger = None
        s.roster.refresh_challenge_windows(s.round)
        next_set = s.question_sets.next_unused()
        if next_set is not None:
            s.current_set = next_set
        s.status = f"{picked.name} is on stage! Start the timer when ready."
        await self.publish()

    # Séries de questions

    def select_question_set(self, data: Any) -> bool:
        index = _as_int(data)
        if index is None:
            return False
        question_set = self.state.question_sets.select_by_index(index)
        if question_set is None:
            return False
        self.state.current_set = question_set
        return True

    def add_question_set(self, data: Any) -> bool:
        if not isinstance(data, dict):
            return False
        self.state.question_sets.add_custom(QuestionSet.from_dict(data))
        return True

    def reset_question_sets(self, _data: Any = None) -> bool:
        self.state.question_sets.reset_all()
        self.state.current_set = None
        return True

    # Timer

    def start_timer(self, data: Any = None) -> bool:
        s = self.state
        duration = _as_int(data)
        if not duration or duration < 0:
            duration = self.settings.default_timer_seconds
        s.timer_duration = duration
        s.timer_remaining = duration
        s.timer_running = True
        s.status = f"{self._participant()} is thinking..."
        self.scheduler.start(COUNTDOWN, self._countdown)
        return True

    async def _countdown(self) -> None:
        s = self.state
        while s.timer_remaining > 0:
            await asyncio.sleep(self.settings.tick_interval)
            s.timer_remaining = max(0, s.timer_remaining - 1)
            if s.timer_remaining == 0:
                s.timer_running = False
                s.status = TIMES_UP
            await self.publish()

    def stop_timer(self, _data: Any = None) -> bool:
        self.scheduler.cancel(COUNTDOWN)
        self.state.timer_running = False
        return True

    def reset_timer(self, data: Any = None) -> bool:
        self.scheduler.cancel(COUNTDOWN)
        s = self.state
        s.timer_running = False
        value = _as_int(data)
        s.timer_remaining = value if value else s.timer_duration
        return True

    # Déroulement de la manche

    def lock_answer(self, _data: Any = None) -> bool:
        self.scheduler.cancel(COUNTDOWN)
        s = self.state
        s.timer_running = False
        s.locked = True
        s.phase = Phase.LOCKED
        s.status = f"{self._participant()} locked answer. Challenge or Reveal?"
        return True

    def reveal_answer(self, _data: Any = None) -> bool:
        self._reveal()
        self.state.status = "Answer revealed! Was the participant correct?"
        return True

    def award_participant(self, _data: Any = None) -> bool:
        s = self.state
        points = self.stage.base_points
        player = s.roster.find(s.current_player)
        if player is not None:
            player.add_points(points)
        s.phase = Phase.DONE
        s.status = f"🎉 {s.current_player} +{points} pts!"
        self._flash_score(f"+{points}", True)
        return True

    def participant_wrong(self, _data: Any = None) -> bool:
        self.state.phase = Phase.DONE
        self.state.status = f"{self._participant()} was wrong. Next round?"
        return True

    def next_round(self, _data: Any = None) -> bool:
        s = self.state
        s.current_set = None
        s.revealed = False
        s.locked = False
        s.challenger = None
        s.phase = Phase.IDLE
        s.status = "Select next player in Admin panel"
        return True

    # Défis

    def select_challenger(self, data: Any) -> bool:
        s = self.state
        player = s.roster.find(data) if isinstance(data, str) else None
        if player is None or not player.can_challenge():
            return False
        s.challenger = player.name
        player.challenge_count += 1
        player.last_challenge_round = s.round
        s.phase = Phase.LOCKED
        s.challenge_animation = True
        s.status = f"⚔️ {player.name} challenges!"
        self.scheduler.call_later(
            CHALLENGE, self.settings.challenge_animation_duration, self._end_challenge_animation
        )
        return True

    async def _end_challenge_animation(self) -> None:
        self.state.challenge_animation = False
        await self.publish()

    def clear_challenger(self, _data: Any = None) -> bool:
        self.state.challenger = None
        return True

    def challenger_correct(self, _data: Any = None) -> bool:
        s = self.state
        points = self.stage.challenge_success_points
        player = s.roster.find(s.challenger)
        if player is not None:
            player.add_points(points)
        self._flash_score(f"+{points}", True)
        self._reveal()
        s.status = f"⚔️ Challenger correct! +{points} pts. Revealing answer..."
        return True

    def challenger_wrong(self, _data: Any = None) -> bool:
        s = self.state
        penalty = self.stage.challenge_failure_penalty
        player = s.roster.find(s.challenger)
        if player is not None:
            player.add_points(-penalty)
        self._flash_score(f"-{penalty}", False)
        self._reveal()
        s.status = f"⚔️ Challenger wrong! -{penalty} pts. Revealing answer..."
        return True

    # Remises à zéro & affichage

    def toggle_leaderboard(self, data: Any) -> bool:
        self.state.show_leaderboard = bool(data)
        return True

    def reset_all_scores(self, _data: Any = None) -> bool:
        s = self.state
        s.roster.reset_scores()
        s.round = 0
        s.current_player = None
        s.challenger = None
        s.phase = Phase.IDLE
        s.status = "Scores reset. Ready to start!"
        return True

    def clear_all_players(self, _data: Any = None) -> bool:
        s = self.state
        s.roster.clear()
        s.current_player = None
        s.challenger = None
        s.phase = Phase.IDLE
        return True

    # Utilitaires

    def _participant(self) -> str:
        return self.state.current_player or "Player"

    def _reveal(self) -> None:
        s = self.state
        s.revealed = True
        s.phase = Phase.REVEALED
        s.mark_current_set_used()

    def _flash_score(self, text: str, positive: bool) -> None:
        self.state.score_flash = {"text": text, "positive": positive}
        self.scheduler.call_later(FLASH, self.settings.score_flash_duration, self._clear_flash)

    async def _clear_flash(self) -> None:
        self.state.score_flash = None
        await self.publish()
