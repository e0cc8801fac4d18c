import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///./reviews.db"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_log_level(default: str = "INFO") -> str:
    value = os.getenv("LOG_LEVEL", default).strip().upper()
    # unknown names come back as "Level X" strings instead of numbers
    if not isinstance(logging.getLevelName(value), int):
        return default
    return value


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def normalize_database_url(url: str) -> str:
    # Hosted Postgres providers still hand out the scheme SQLAlchemy dropped
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


@dataclass(frozen=True)
class Settings:
    bot_token: str = field(default_factory=lambda: os.getenv("BOT_TOKEN", ""))
    chat_id: str = field(default_factory=lambda: os.getenv("CHAT_ID", ""))
    database_url: str = field(
        default_factory=lambda: normalize_database_url(os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL))
    )
    database_sslmode: Optional[str] = field(default_factory=lambda: os.getenv("DATABASE_SSLMODE") or None)
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    telegram_polling: bool = field(default_factory=lambda: _env_bool("TELEGRAM_POLLING", True))
    cors_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS", "*"))
    log_level: str = field(default_factory=_env_log_level)

    def validate(self) -> List[str]:
        """Return the names of required variables that are not set."""
        missing = []
        if not self.bot_token:
            missing.append("BOT_TOKEN")
        if not self.chat_id:
            missing.append("CHAT_ID")
        return missing


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
