# league_standings/models.py
"""
Domain models for the standings engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Sequence


SCHEDULED = "scheduled"
COMPLETED = "completed"
FINAL = "final"
CANCELED = "canceled"

# Statuses whose games can count in standings once both scores are present.
DECIDED_STATUSES = frozenset({COMPLETED, FINAL})


@dataclass(frozen=True)
class Team:
    """A roster entry for a league."""
    id: str
    name: str


@dataclass(frozen=True)
class Game:
    """A canonical game with a derived lifecycle status."""
    id: str
    league_id: Optional[str]
    date_time_iso: Optional[str]
    location: str
    home_team_name: str
    away_team_name: str
    status: str
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    home_score: Any = None
    away_score: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase JSON shape used by storage and the HTTP API."""
        return {
            "id": self.id,
            "leagueId": self.league_id,
            "dateTimeISO": self.date_time_iso,
            "location": self.location,
            "homeTeamName": self.home_team_name,
            "awayTeamName": self.away_team_name,
            "homeTeamId": self.home_team_id,
            "awayTeamId": self.away_team_id,
            "status": self.status,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
        }


@dataclass(frozen=True)
class StandingRow:
    """A single aggregated team row."""
    team_id: str
    team_name: str
    wins: int = 0
    losses: int = 0
    points_for: int = 0
    points_against: int = 0
    games_played: int = 0
    win_percentage: float = 0.0

    @property
    def point_differential(self) -> int:
        return self.points_for - self.points_against

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamId": self.team_id,
            "teamName": self.team_name,
            "wins": self.wins,
            "losses": self.losses,
            "pointsFor": self.points_for,
            "pointsAgainst": self.points_against,
            "winPercentage": self.win_percentage,
            "gamesPlayed": self.games_played,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StandingRow":
        """Rebuild a row from its stored JSON shape."""
        return cls(
            team_id=str(d.get("teamId") or ""),
            team_name=str(d.get("teamName") or ""),
            wins=int(d.get("wins") or 0),
            losses=int(d.get("losses") or 0),
            points_for=int(d.get("pointsFor") or 0),
            points_against=int(d.get("pointsAgainst") or 0),
            games_played=int(d.get("gamesPlayed") or 0),
            win_percentage=float(d.get("winPercentage") or 0.0),
        )


@dataclass(frozen=True)
class StandingsResult:
    """Everything a host needs after one recomputation."""
    league_id: str
    rows: Sequence[StandingRow]
    computed_at: datetime
    games_considered: int = 0
    games_counted: int = 0
    skipped: Sequence[str] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "leagueId": self.league_id,
            "standings": [r.to_dict() for r in self.rows],
            "computedAt": self.computed_at.isoformat(),
            "gamesConsidered": self.games_considered,
            "gamesCounted": self.games_counted,
            "message": f"Standings calculated for {len(self.rows)} teams",
        }
