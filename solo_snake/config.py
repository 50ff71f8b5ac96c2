"""Runtime settings read from the environment (and a .env file, if present)."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PREFERENCES_PATH = os.path.join(os.path.expanduser("~"), ".solo_snake", "preferences.json")


@dataclass
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    leaderboard_table: str = "leaderboard"
    leaderboard_backend: str = "supabase"
    leaderboard_poll_seconds: float = 5.0
    preferences_path: str = DEFAULT_PREFERENCES_PATH
    host: str = "0.0.0.0"
    port: int = 8765
    log_level: str = "INFO"

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_ANON_KEY"),
        leaderboard_table=os.getenv("LEADERBOARD_TABLE", "leaderboard"),
        leaderboard_backend=os.getenv("LEADERBOARD_BACKEND", "supabase").lower(),
        leaderboard_poll_seconds=float(os.getenv("LEADERBOARD_POLL_SECONDS", "5")),
        preferences_path=os.path.expanduser(
            os.getenv("SNAKE_PREFERENCES_PATH", DEFAULT_PREFERENCES_PATH)
        ),
        host=os.getenv("SNAKE_HOST", "0.0.0.0"),
        port=int(os.getenv("SNAKE_PORT", "8765")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
