"""Configuration du serveur (variables d'environnement TWOTRUTHS_*)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .paths import QUESTION_SETS_PATH, STATIC_DIR


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TWOTRUTHS_", env_file=".env", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    cors_allowed_origins: str = "*"

    static_dir: Path = STATIC_DIR
    question_sets_path: Path = QUESTION_SETS_PATH

    # Durées (secondes)
    draw_delay: float = 4.0
    score_flash_duration: float = 1.2
    challenge_animation_duration: float = 2.5
    tick_interval: float = 1.0
    default_timer_seconds: int = 60


@lru_cache()
def get_settings() -> Settings:
    return Settings()
