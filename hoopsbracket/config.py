"""Runtime configuration and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .data.team_resolver import DEFAULT_MATCH_THRESHOLD

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _safe_float(value: Optional[str], default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class AppConfig:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    espn_scoreboard_url: Optional[str] = None
    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_KEY"),
            espn_scoreboard_url=os.getenv("ESPN_SCOREBOARD_URL"),
            match_threshold=_safe_float(os.getenv("HOOPSBRACKET_MATCH_THRESHOLD"), DEFAULT_MATCH_THRESHOLD),
            log_level=os.getenv("HOOPSBRACKET_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
