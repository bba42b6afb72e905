"""Chemins communs pour le serveur et les fichiers statiques."""

from __future__ import annotations

from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
ROOT_DIR = PACKAGE_DIR.parent
STATIC_DIR = ROOT_DIR / "public"
QUESTION_SETS_PATH = PACKAGE_DIR / "question_sets.json"
