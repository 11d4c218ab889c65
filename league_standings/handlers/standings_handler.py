# league_standings/handlers/standings_handler.py
"""
Handler/controller responsible for recomputing and serving league standings.

Keeps Flask routes simple by concentrating fetch -> compute -> persist here.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List

from ..models import StandingRow, StandingsResult
from ..repository import LeagueRepository
from ..services.standings_service import StandingsEngine

logger = logging.getLogger(__name__)


@dataclass
class StandingsHandler:
    """Orchestrates repository reads, the standings engine, and mirrored writes."""

    repository: LeagueRepository
    engine: StandingsEngine
    clock: Callable[[], datetime]

    def calculate(self, league_id: str) -> StandingsResult:
        """
        Recompute standings from scratch and persist them.

        Roster and games are read in parallel; if either read fails nothing is
        computed.

        Raises:
            InputUnavailableError if the roster or games cannot be read.
            PersistenceError if the primary or backup write fails.
        """
        logger.info("Calculating standings for league %s", league_id)

        with ThreadPoolExecutor(max_workers=2) as pool:
            teams_f = pool.submit(self.repository.load_teams, league_id)
            games_f = pool.submit(self.repository.load_games, league_id)
            teams = teams_f.result()
            raw_games = games_f.result()

        result = self.engine.compute(league_id, teams, raw_games, now=self.clock())
        logger.info(
            "League %s: %d of %d games counted, %d skipped",
            league_id, result.games_counted, result.games_considered, len(result.skipped),
        )

        self.repository.save_standings(league_id, result.rows)

        if result.rows:
            logger.info(
                "Top 3 teams: %s",
                [f"{r.team_name}: {r.wins}-{r.losses} ({r.win_percentage * 100:.1f}%), {r.points_for} PF"
                 for r in result.rows[:3]],
            )
        return result

    def current(self, league_id: str) -> List[StandingRow]:
        """Return stored standings, computing them when nothing is stored yet."""
        rows = self.repository.load_standings(league_id)
        if rows:
            return rows
        logger.info("No standings stored for league %s; calculating", league_id)
        return list(self.calculate(league_id).rows)
