"""Messages client -> serveur: enveloppes {type, data}."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class CommandType(str, Enum):
    SET_STAGE = "setStage"
    ADD_PLAYER = "addPlayer"
    REMOVE_PLAYER = "removePlayer"
    ADJUST_POINTS = "adjustPts"
    PICK_RANDOM = "pickRandom"
    SELECT_QUESTION_SET = "selectQset"
    ADD_QUESTION_SET = "addQset"
    START_TIMER = "startTimer"
    STOP_TIMER = "stopTimer"
    RESET_TIMER = "resetTimer"
    LOCK_ANSWER = "lockAnswer"
    REVEAL_ANSWER = "revealAnswer"
    AWARD_PARTICIPANT = "awardParticipant"
    PARTICIPANT_WRONG = "participantWrong"
    NEXT_ROUND = "nextRound"
    SELECT_CHALLENGER = "selectChallenger"
    CLEAR_CHALLENGER = "clearChallenger"
    CHALLENGER_CORRECT = "challengerCorrect"
    CHALLENGER_WRONG = "challengerWrong"
    TOGGLE_LEADERBOARD = "toggleLeaderboard"
    RESET_ALL_SCORES = "resetAllScores"
    CLEAR_ALL_PLAYERS = "clearAllPlayers"
    RESET_QUESTION_SETS = "resetQsets"


class MalformedMessage(ValueError):
    """Enveloppe illisible (JSON invalide, pas un objet, type manquant)."""


@dataclass(frozen=True)
class Command:
    type: CommandType
    data: Any = None


def parse_command(raw: Union[str, bytes, dict]) -> Optional[Command]:
    """Décode une enveloppe.

    Lève MalformedMessage si le message est illisible. Retourne None pour un
    type inconnu (commande ignorée).
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedMessage(f"invalid utf-8 payload: {e}") from e
    if isinstance(raw, str):
        try:
            envelope = json.loads(raw)
        except ValueError as e:
            raise MalformedMessage(f"invalid JSON: {e}") from e
    else:
        envelope = raw

    if not isinstance(envelope, dict):
        raise MalformedMessage("envelope must be a JSON object")
    tag = envelope.get("type")
    if not isinstance(tag, str):
        raise MalformedMessage("envelope has no string 'type'")

    try:
        command_type = CommandType(tag)
    except ValueError:
        return None
    return Command(command_type, envelope.get("data"))
