# league_standings/handlers/schedule_handler.py
"""
Schedule view, result entry, and the scheduled -> completed status sweep.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import GameNotFoundError, InvalidResultError, StandingsError
from ..models import COMPLETED, FINAL, SCHEDULED, Game
from ..repository import LeagueRepository
from ..services.game_status_service import GameStatusResolver, classify_status, parse_score

logger = logging.getLogger(__name__)


def _valid_score(v: Any) -> Optional[int]:
    """Accept only JSON numbers that are non-negative integers."""
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    return parse_score(v)


@dataclass
class ScheduleHandler:
    """Read/write operations on a league's stored game list."""

    repository: LeagueRepository
    resolver: GameStatusResolver
    clock: Callable[[], datetime]

    def schedule(self, league_id: str, team: str = "") -> List[Game]:
        """
        Return canonical games for a league, sorted by start time.

        Args:
            league_id: league to read.
            team: optional filter; matches a team name or id on either side.
        """
        raw_games = [g for g in self.repository.load_games(league_id) if isinstance(g, dict)]
        team_ids = [t for g in raw_games for t in (g.get("homeTeamId"), g.get("awayTeamId")) if t]
        id_to_name = self.repository.cached_team_names(team_ids)

        now = self.clock()
        games = [self.resolver.resolve(g, now, id_to_name) for g in raw_games]

        if team:
            games = [
                g for g in games
                if team in (g.home_team_name, g.away_team_name, g.home_team_id, g.away_team_id)
            ]

        # undated games sort last
        games.sort(key=lambda g: (g.date_time_iso is None, str(g.date_time_iso or "")))
        return games

    def record_result(self, league_id: str, game_id: str, home_score: Any, away_score: Any) -> Dict[str, Any]:
        """
        Store a final score for one game and mark it final.

        Standings are not recomputed here; callers trigger that separately.

        Raises:
            InvalidResultError for scores that are not non-negative integers.
            GameNotFoundError if no stored game has that id.
            PersistenceError if the mirrored write fails.
        """
        hs = _valid_score(home_score)
        a_s = _valid_score(away_score)
        if hs is None or a_s is None:
            raise InvalidResultError("scores must be non-negative integers")

        games = self.repository.load_games(league_id)
        now = self.clock()

        # fallback ids embed display names
        team_ids = [
            t for g in games if isinstance(g, dict)
            for t in (g.get("homeTeamId"), g.get("awayTeamId")) if t
        ]
        id_to_name = self.repository.cached_team_names(team_ids)

        for i, raw in enumerate(games):
            if not isinstance(raw, dict):
                continue
            if str(raw.get("id") or "") != game_id and self.resolver.resolve(raw, now, id_to_name).id != game_id:
                continue

            # a nested score object would shadow the flat fields on read
            updated = {k: v for k, v in raw.items() if k != "score"}
            updated.update({"homeScore": hs, "awayScore": a_s, "status": FINAL})
            games[i] = updated
            self.repository.save_games(league_id, games)
            logger.info("Saved result for game %s in league %s: %d-%d", game_id, league_id, hs, a_s)
            return updated

        raise GameNotFoundError(f"game {game_id} not found in league {league_id}")

    def update_statuses(self, league_ids: Sequence[str]) -> Dict[str, Any]:
        """
        Persist auto-promotion for stored games across leagues.

        A league's game list is rewritten only when at least one game changed.
        A failure in one league is logged and reported; the sweep continues.
        """
        now = self.clock()
        updated: Dict[str, int] = {}
        errors: Dict[str, str] = {}

        for league_id in league_ids:
            try:
                games = self.repository.load_games(league_id)
                changed = 0
                out: List[Any] = []
                for raw in games:
                    if (
                        isinstance(raw, dict)
                        and classify_status(raw.get("status")) == SCHEDULED
                        and self.resolver.resolve(raw, now).status == COMPLETED
                    ):
                        out.append({**raw, "status": COMPLETED})
                        changed += 1
                    else:
                        out.append(raw)
                if changed:
                    self.repository.save_games(league_id, out)
                    logger.info("Updated %d games in league %s", changed, league_id)
                updated[league_id] = changed
            except StandingsError as e:
                logger.error("Status update for league %s failed: %s", league_id, e)
                errors[league_id] = str(e)

        return {
            "ok": not errors,
            "totalUpdated": sum(updated.values()),
            "leaguesChecked": len(league_ids),
            "updated": updated,
            "errors": errors,
            "timestamp": now.isoformat(),
        }
