"""Table des niveaux de difficulté et des points associés."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class StageConfig:
    name: str
    base_points: int
    challenge_success_points: int
    challenge_failure_penalty: int


STAGES: Dict[str, StageConfig] = {
    "easy": StageConfig("EASY", 10, 5, 5),
    "medium": StageConfig("MEDIUM", 20, 10, 10),
    "hard": StageConfig("HARD", 30, 15, 15),
    "extreme": StageConfig("EXTREME", 40, 20, 20),
}

DEFAULT_STAGE = "easy"


def get_stage(key: object) -> Optional[StageConfig]:
    """Retourne la configuration du niveau, ou None si la clé est inconnue."""
    if not isinstance(key, str):
        return None
    return STAGES.get(key)
