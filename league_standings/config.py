# league_standings/config.py
"""
Configuration for the league standings service.

This module centralizes all tunable settings (KV REST endpoint, timezone used
for naive game times, completion grace period, cache TTLs, and the leagues
covered by the status sweep).
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import List


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, returning default on missing/invalid values."""
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    """
    Read a comma-delimited string list from the environment.

    Example:
      KNOWN_LEAGUE_IDS="5v5,3v3,volleyball"
    """
    raw = os.getenv(name)
    if not raw:
        return default
    out = [x.strip() for x in raw.split(",") if x.strip()]
    return out or default


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable app configuration.

    Values are read from the environment when the instance is created, so tests
    can monkeypatch env vars and build a fresh config.
    """

    # KV store (REST API)
    kv_rest_api_url: str = field(default_factory=lambda: os.getenv("KV_REST_API_URL", ""))
    kv_rest_api_token: str = field(default_factory=lambda: os.getenv("KV_REST_API_TOKEN", ""))
    kv_timeout_seconds: int = field(default_factory=lambda: _env_int("KV_TIMEOUT_SECONDS", 10))

    # Time handling
    tz: str = field(default_factory=lambda: os.getenv("TZ", "America/Detroit"))
    completion_grace_minutes: int = field(default_factory=lambda: _env_int("COMPLETION_GRACE_MINUTES", 120))

    # Cache controls
    team_names_cache_ttl: int = field(default_factory=lambda: _env_int("TEAM_NAMES_CACHE_TTL_SECONDS", 60))

    # Status sweep
    known_league_ids: List[str] = field(
        default_factory=lambda: _env_list("KNOWN_LEAGUE_IDS", ["5v5", "3v3", "volleyball"])
    )

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    def __post_init__(self):
        """Clamp values that would make the services misbehave."""
        # dataclass frozen => use object.__setattr__
        if self.completion_grace_minutes < 0:
            object.__setattr__(self, "completion_grace_minutes", 0)
        if self.kv_timeout_seconds <= 0:
            object.__setattr__(self, "kv_timeout_seconds", 10)
        object.__setattr__(self, "kv_rest_api_url", self.kv_rest_api_url.rstrip("/"))
