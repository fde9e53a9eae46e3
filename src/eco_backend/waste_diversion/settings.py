"""
Environment-driven settings for the waste-diversion backend.
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_TABLE_NAME = "waste_diversion_records"


class DiversionSettings(BaseModel):
    database_url: Optional[str] = None
    table_name: str = DEFAULT_TABLE_NAME
    trend_window_months: int = 6
    """How many recent reporting months feed the trend chart."""

    leaderboard_limit: int = 0
    """0 returns every ranked school."""

    log_level: str = "INFO"
    log_file: Optional[str] = None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings(dotenv: bool = True) -> DiversionSettings:
    if dotenv:
        load_dotenv()
    defaults = DiversionSettings()
    return DiversionSettings(
        database_url=os.getenv("WASTE_DIVERSION_DATABASE_URL", defaults.database_url),
        table_name=os.getenv("WASTE_DIVERSION_TABLE", defaults.table_name),
        trend_window_months=max(1, _env_int("WASTE_DIVERSION_TREND_WINDOW", defaults.trend_window_months)),
        leaderboard_limit=max(0, _env_int("WASTE_DIVERSION_LEADERBOARD_LIMIT", defaults.leaderboard_limit)),
        log_level=os.getenv("WASTE_DIVERSION_LOG_LEVEL", defaults.log_level).upper(),
        log_file=os.getenv("WASTE_DIVERSION_LOG_FILE", defaults.log_file),
    )
