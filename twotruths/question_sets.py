"""Chargement et stockage des séries de questions (deux vérités, un mensonge)."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class QuestionSet:
    a: str
    b: str
    c: str
    lie: str
    explain: str = ""
    used: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestionSet":
        return cls(
            a=str(data.get("a", "")),
            b=str(data.get("b", "")),
            c=str(data.get("c", "")),
            lie=str(data.get("lie", "")),
            explain=str(data.get("explain", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "a": self.a,
            "b": self.b,
            "c": self.c,
            "lie": self.lie,
            "explain": self.explain,
            "used": self.used,
        }


def load_question_sets(json_path: str) -> List[QuestionSet]:
    """Charge le fichier JSON des séries intégrées."""
    with open(json_path, encoding="utf-8") as f:
        return [QuestionSet.from_dict(item) for item in json.load(f)]


class QuestionSetStore:
    """Séries intégrées puis séries ajoutées en cours de partie.

    L'ordre de concaténation (intégrées avant personnalisées) sert à la fois
    pour la sélection par index et pour l'avance automatique.
    """

    def __init__(self, built_in: List[QuestionSet]) -> None:
        self._pristine = [copy.deepcopy(s) for s in built_in]
        for s in self._pristine:
            s.used = False
        self.built_in: List[QuestionSet] = []
        self.custom: List[QuestionSet] = []
        self.reset_all()

    def add_custom(self, question_set: QuestionSet) -> QuestionSet:
        question_set.used = False
        self.custom.append(question_set)
        return question_set

    def list_available(self) -> List[QuestionSet]:
        return self.built_in + self.custom

    def select_by_index(self, index: int) -> Optional[QuestionSet]:
        available = self.list_available()
        if 0 <= index < len(available):
            return available[index]
        return None

    def next_unused(self) -> Optional[QuestionSet]:
        """Première série non utilisée, ou None si tout a été joué."""
        for question_set in self.list_available():
            if not question_set.used:
                return question_set
        return None

    def reset_all(self) -> None:
        self.built_in = [copy.deepcopy(s) for s in self._pristine]
        self.custom = []
