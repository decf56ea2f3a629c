"""Configuration unifiée du tableau de bord."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    override = os.getenv("HOMEDASH_DATA_DIR")
    if override:
        return Path(override)
    return Path.home() / ".homedash"


class Settings(BaseSettings):
    """Paramètres globaux du tableau de bord."""

    model_config = SettingsConfigDict(
        env_prefix="HOMEDASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Stockage local
    data_dir: Path = _default_data_dir()

    # Logs
    log_dir: Path | None = None
    log_level: str = "INFO"
    log_rotate_mb: int = 5
    log_retention_days: int = 7

    # Assistant (chat completion)
    chat_base_url: str = "https://api.perplexity.ai"
    chat_endpoint: str = "/chat/completions"
    chat_model: str = "llama-3.1-sonar-small-128k-online"
    chat_system_prompt: str = (
        "You are a helpful AI assistant integrated into a personal dashboard. "
        "Be concise, practical, and helpful. Focus on actionable advice and clear explanations."
    )
    chat_temperature: float = 0.2
    chat_top_p: float = 0.9
    chat_max_tokens: int = 1000
    chat_frequency_penalty: float = 1
    chat_presence_penalty: float = 0
    chat_timeout_seconds: float = 60.0
    chat_fallback_reply: str = "Sorry, I could not generate a response."

    # Fond d'écran quotidien
    background_url: str = "https://api.unsplash.com/photos/random"
    background_query: str = "minimal,abstract"
    background_access_key: str | None = None
    background_timeout_seconds: float = 15.0

    # Minuteur
    timer_work_seconds: int = 25 * 60
    timer_break_seconds: int = 5 * 60
    timer_pause_on_phase_end: bool = False

    # Reconnaissance vocale
    speech_language: str = "en-US"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls.json_config_settings_source,
            file_secret_settings,
        )

    @staticmethod
    def json_config_settings_source() -> dict[str, object]:
        """Charge homedash.json dans le dossier de données si présent."""
        config_path = _default_data_dir() / "homedash.json"
        if config_path.is_file():
            try:
                data = json.loads(config_path.read_text(encoding="utf-8"))
            except ValueError:
                return {}
            return data if isinstance(data, dict) else {}
        return {}

    @property
    def resolved_log_dir(self) -> Path:
        return self.log_dir or (self.data_dir / "logs")

    @property
    def store_dir(self) -> Path:
        return self.data_dir / "store"


@lru_cache()
def get_settings() -> Settings:
    """Retourne une instance de Settings mise en cache."""
    return Settings()
