"""Liste ordonnée des joueurs, scores et compteurs de défis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

MAX_CHALLENGES = 2
CHALLENGE_WINDOW = 2


@dataclass
class Player:
    name: str
    points: int = 0
    used_in_draw: bool = False
    challenge_count: int = 0
    last_challenge_round: int = -99

    def add_points(self, delta: int) -> None:
        # jamais de score négatif
        self.points = max(0, self.points + delta)

    def can_challenge(self) -> bool:
        return self.challenge_count < MAX_CHALLENGES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pts": self.points,
            "used": self.used_in_draw,
            "challengeCount": self.challenge_count,
            "lastChallengeRound": self.last_challenge_round,
        }


class Roster:
    def __init__(self) -> None:
        self.players: List[Player] = []

    def __len__(self) -> int:
        return len(self.players)

    def __iter__(self) -> Iterator[Player]:
        return iter(self.players)

    def __contains__(self, player: object) -> bool:
        return any(p is player for p in self.players)

    def get(self, index: int) -> Optional[Player]:
        if 0 <= index < len(self.players):
            return self.players[index]
        return None

    def find(self, name: Optional[str]) -> Optional[Player]:
        """Recherche exacte par nom (sensible à la casse)."""
        if name is None:
            return None
        for player in self.players:
            if player.name == name:
                return player
        return None

    def add(self, name: str) -> Optional[Player]:
        """Ajoute un joueur, refusé si le nom existe déjà (insensible à la casse)."""
        lowered = name.lower()
        if any(p.name.lower() == lowered for p in self.players):
            return None
        player = Player(name=name)
        self.players.append(player)
        return player

    def remove(self, index: int) -> Optional[Player]:
        if 0 <= index < len(self.players):
            return self.players.pop(index)
        return None

    def available_for_draw(self) -> List[Player]:
        return [p for p in self.players if not p.used_in_draw]

    def refresh_challenge_windows(self, current_round: int) -> None:
        """Remet à zéro les défis des joueurs sortis de la fenêtre de deux manches."""
        for player in self.players:
            if current_round - player.last_challenge_round >= CHALLENGE_WINDOW:
                player.challenge_count = 0

    def reset_scores(self) -> None:
        for player in self.players:
            player.points = 0
            player.challenge_count = 0
            player.used_in_draw = False

    def clear(self) -> None:
        self.players = []

    def to_list(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.players]
