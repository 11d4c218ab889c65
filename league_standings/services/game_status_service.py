# league_standings/services/game_status_service.py
"""
Game status derivation.

Responsibilities:
  - pick date/location/team names out of legacy game shapes
  - classify the stored status string into a canonical status
  - auto-promote past, unresolved scheduled games to "completed"
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Any, Dict, Mapping, Optional

from dateutil import parser as date_parser
from dateutil import tz

from ..models import CANCELED, COMPLETED, FINAL, SCHEDULED, Game

logger = logging.getLogger(__name__)

COMPLETION_GRACE_MINUTES = 120

_DIGITS_RE = re.compile(r"^\d+$")


def get_first(obj: Dict[str, Any], keys, default=None):
    """Return the first truthy value found under any of keys."""
    for k in keys:
        v = obj.get(k)
        if v:
            return v
    return default


def parse_score(v) -> Optional[int]:
    """
    Parse a stored score into a non-negative int.

    Accepts ints, integral floats and digit strings. Returns None for anything
    else (including bools, negatives and decimal strings such as "72.0").
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v if v >= 0 else None
    if isinstance(v, float):
        if v.is_integer() and v >= 0:
            return int(v)
        return None
    if isinstance(v, str):
        s = v.strip()
        return int(s) if _DIGITS_RE.match(s) else None
    return None


def classify_status(raw: Any) -> str:
    """
    Map a stored status string to a canonical status.

    Case-insensitive substring match, precedence final > canceled > completed,
    everything else is scheduled.
    """
    s = str(raw or SCHEDULED).lower()
    if "final" in s:
        return FINAL
    if "canceled" in s:
        return CANCELED
    if "completed" in s:
        return COMPLETED
    return SCHEDULED


def parse_start(value: Any, default_tz: tzinfo) -> Optional[datetime]:
    """
    Parse a game start time into an aware datetime.

    Naive values are interpreted in default_tz. Returns None when the value
    is missing or unparsable.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(str(value).strip())
        except (ValueError, OverflowError):
            try:
                dt = date_parser.parse(str(value))
            except (ValueError, OverflowError) as e:
                logger.debug("Unparsable game start %r: %s", value, e)
                return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=default_tz)
    return dt


@dataclass
class GameStatusResolver:
    """Normalizes raw game records into canonical Game values."""

    tz_name: str = "America/Detroit"
    grace_minutes: int = COMPLETION_GRACE_MINUTES

    @property
    def default_tz(self) -> tzinfo:
        """Timezone used for naive start times."""
        return tz.gettz(self.tz_name) or tz.UTC

    def _team_name(self, g: Dict[str, Any], side: str, id_to_name: Mapping[str, str]) -> str:
        """
        Resolve a display name for one side ("home" or "away").

        Precedence: explicit name fields, then id lookup, then the raw id.
        """
        team_id = g.get(f"{side}TeamId")
        return (
            g.get(f"{side}TeamName")
            or g.get(f"{side}Name")
            or (id_to_name.get(team_id) if team_id else None)
            or (str(team_id) if team_id else "")
        )

    @staticmethod
    def _scores(g: Dict[str, Any]):
        """Return (home, away) preferring the nested score object over flat fields."""
        score = g.get("score")
        if not isinstance(score, dict):
            score = {}
        home = score.get("home")
        away = score.get("away")
        return (
            home if home is not None else g.get("homeScore"),
            away if away is not None else g.get("awayScore"),
        )

    @staticmethod
    def _has_results(g: Dict[str, Any]) -> bool:
        score = g.get("score")
        if isinstance(score, dict) and score.get("home") is not None and score.get("away") is not None:
            return True
        return g.get("homeScore") is not None and g.get("awayScore") is not None

    def is_past_grace(self, date_time_iso: Any, now: datetime) -> bool:
        """Return True if the start time is at least grace_minutes before now."""
        start = parse_start(date_time_iso, self.default_tz)
        if start is None:
            return False
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.default_tz)
        return now - start >= timedelta(minutes=self.grace_minutes)

    def resolve(
        self,
        raw: Dict[str, Any],
        now: datetime,
        id_to_name: Optional[Mapping[str, str]] = None,
    ) -> Game:
        """
        Build a canonical Game from one raw record.

        Pure: depends only on (raw, now, id_to_name).
        """
        id_to_name = id_to_name or {}

        date_time_iso = get_first(raw, ("dateTimeISO", "date", "startTimeISO", "start"))
        if isinstance(date_time_iso, datetime):
            date_time_iso = date_time_iso.isoformat()
        location = get_first(raw, ("location", "court", "venue"), "")
        home_name = self._team_name(raw, "home", id_to_name)
        away_name = self._team_name(raw, "away", id_to_name)

        status = classify_status(raw.get("status"))

        # only unresolved scheduled games are promoted
        if status == SCHEDULED and not self._has_results(raw) and self.is_past_grace(date_time_iso, now):
            status = COMPLETED

        home_score, away_score = self._scores(raw)
        league_id = raw.get("leagueId")

        return Game(
            id=str(raw.get("id") or f"game:{league_id or ''}:{date_time_iso or ''}:{home_name}-{away_name}"),
            league_id=league_id,
            date_time_iso=date_time_iso,
            location=str(location),
            home_team_name=str(home_name),
            away_team_name=str(away_name),
            status=status,
            home_team_id=raw.get("homeTeamId"),
            away_team_id=raw.get("awayTeamId"),
            home_score=home_score,
            away_score=away_score,
        )
