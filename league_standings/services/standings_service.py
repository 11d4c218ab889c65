# league_standings/services/standings_service.py
"""
Standings logic.

Responsibilities:
  - seed one accumulator per roster team (plus teams only seen in games)
  - fold eligible games into wins/losses/points
  - hand the totals to the tie-break ranker
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Set

from ..models import DECIDED_STATUSES, Game, StandingRow, StandingsResult, Team
from .game_status_service import GameStatusResolver, parse_score
from .tiebreak_service import DecidedGame, HeadToHead, TieBreakRanker, find_head_to_head_cycles

logger = logging.getLogger(__name__)


def slugify_team_name(name: str) -> str:
    """Build a fallback team id for a team that only appears in game records."""
    return re.sub(r"\s+", "-", name.lower())


def win_percentage(wins: int, losses: int) -> float:
    """wins / (wins + losses), or 0 when no decided games."""
    total = wins + losses
    return wins / total if total > 0 else 0.0


@dataclass
class _Tally:
    """Mutable running totals for one team."""
    team_id: str
    team_name: str
    wins: int = 0
    losses: int = 0
    points_for: int = 0
    points_against: int = 0
    games_played: int = 0

    def add(self, own: int, opp: int) -> None:
        self.points_for += own
        self.points_against += opp
        self.games_played += 1
        if own > opp:
            self.wins += 1
        elif opp > own:
            self.losses += 1

    def to_row(self) -> StandingRow:
        return StandingRow(
            team_id=self.team_id,
            team_name=self.team_name,
            wins=self.wins,
            losses=self.losses,
            points_for=self.points_for,
            points_against=self.points_against,
            games_played=self.games_played,
            win_percentage=win_percentage(self.wins, self.losses),
        )


@dataclass
class Aggregation:
    """Unordered totals keyed by internal team key, plus the games that counted."""
    rows: Dict[Hashable, StandingRow]
    decided: List[DecidedGame]
    skipped: List[str] = field(default_factory=list)


class TeamIndex:
    """
    Resolves a game side to an internal team key.

    Roster teams are keyed by id. Game records that carry only a display name
    are matched by exact name; names that match nothing on the roster get a
    ("name", <name>) key of their own.
    """

    def __init__(self, teams: Iterable[Team]) -> None:
        self.tallies: Dict[Hashable, _Tally] = {}
        self._by_name: Dict[str, Hashable] = {}
        self._team_ids: Set[str] = set()
        for t in teams:
            if t.id in self.tallies:
                continue
            self.tallies[t.id] = _Tally(team_id=t.id, team_name=t.name)
            self._team_ids.add(t.id)
            if t.name in self._by_name:
                logger.warning("Duplicate team name %r on roster (ids %s, %s); name matches use the first",
                               t.name, self._by_name[t.name], t.id)
                continue
            self._by_name[t.name] = t.id

    def lookup(self, team_id: Optional[str], team_name: str) -> Optional[Hashable]:
        """Return the key for a side without seeding anything."""
        if team_id and team_id in self.tallies:
            return team_id
        if team_name and team_name in self._by_name:
            return self._by_name[team_name]
        if team_name and ("name", team_name) in self.tallies:
            return ("name", team_name)
        return None

    def discover(self, team_name: str) -> None:
        """Seed an accumulator for a name not found on the roster."""
        if not team_name or team_name in self._by_name:
            return
        key = ("name", team_name)
        if key in self.tallies:
            return
        logger.info("Team %r appears in games but not on the roster", team_name)
        slug = team_id = slugify_team_name(team_name)
        n = 2
        while team_id in self._team_ids:
            team_id = f"{slug}-{n}"
            n += 1
        if team_id != slug:
            logger.warning("Team id %r for %r is already taken; using %r", slug, team_name, team_id)
        self._team_ids.add(team_id)
        self.tallies[key] = _Tally(team_id=team_id, team_name=team_name)


@dataclass
class StandingsAggregator:
    """Folds canonical games into per-team totals."""

    def aggregate(self, teams: Sequence[Team], games: Sequence[Game]) -> Aggregation:
        index = TeamIndex(teams)

        # Seed every name seen in any game, decided or not.
        for g in games:
            for team_id, name in ((g.home_team_id, g.home_team_name), (g.away_team_id, g.away_team_name)):
                if index.lookup(team_id, name) is None:
                    index.discover(name)

        decided: List[DecidedGame] = []
        skipped: List[str] = []

        for g in games:
            if g.status not in DECIDED_STATUSES:
                continue
            if g.home_score is None or g.away_score is None:
                # completed by elapsed time, result not entered yet
                continue

            hs = parse_score(g.home_score)
            a_s = parse_score(g.away_score)
            if hs is None or a_s is None:
                logger.warning("Skipping game %s with invalid scores: %s vs %s (%r-%r)",
                               g.id, g.home_team_name, g.away_team_name, g.home_score, g.away_score)
                skipped.append(g.id)
                continue

            home_key = index.lookup(g.home_team_id, g.home_team_name)
            away_key = index.lookup(g.away_team_id, g.away_team_name)
            if home_key is None or away_key is None:
                logger.warning("Skipping game %s with missing teams: %r vs %r",
                               g.id, g.home_team_name, g.away_team_name)
                skipped.append(g.id)
                continue
            if home_key == away_key:
                logger.warning("Skipping game %s: %r listed on both sides", g.id, g.home_team_name)
                skipped.append(g.id)
                continue

            index.tallies[home_key].add(hs, a_s)
            index.tallies[away_key].add(a_s, hs)
            decided.append(DecidedGame(home_key=home_key, away_key=away_key, home_score=hs, away_score=a_s))
            logger.debug("Counted %s: %s (%d) vs %s (%d)", g.id, g.home_team_name, hs, g.away_team_name, a_s)

        rows = {key: t.to_row() for key, t in index.tallies.items()}
        return Aggregation(rows=rows, decided=decided, skipped=skipped)


@dataclass
class StandingsEngine:
    """
    Runs status resolution, aggregation and ranking over one snapshot.

    Holds no state between runs; the same (teams, games, now) always yields
    the same ordered rows.
    """

    resolver: GameStatusResolver = field(default_factory=GameStatusResolver)
    aggregator: StandingsAggregator = field(default_factory=StandingsAggregator)
    ranker: TieBreakRanker = field(default_factory=TieBreakRanker)

    def resolve_games(
        self,
        raw_games: Iterable[Dict[str, Any]],
        now: datetime,
        id_to_name: Optional[Mapping[str, str]] = None,
    ) -> List[Game]:
        """Canonicalize raw game records; non-dict entries are skipped."""
        out: List[Game] = []
        for raw in raw_games:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object game record: %r", raw)
                continue
            out.append(self.resolver.resolve(raw, now, id_to_name))
        return out

    def compute(
        self,
        league_id: str,
        teams: Sequence[Team],
        raw_games: Sequence[Dict[str, Any]],
        now: datetime,
        id_to_name: Optional[Mapping[str, str]] = None,
    ) -> StandingsResult:
        """
        Compute ordered standings for a league.

        Args:
            league_id: league being computed (carried into the result).
            teams: roster; every roster team appears in the output.
            raw_games: game records in any supported legacy shape.
            now: clock reading used for auto-promotion.
            id_to_name: extra team id -> name lookup; roster names are always included.

        Returns:
            StandingsResult with rows in final order.
        """
        names: Dict[str, str] = {t.id: t.name for t in teams}
        if id_to_name:
            names = {**id_to_name, **names}

        games = self.resolve_games(raw_games, now, names)
        agg = self.aggregator.aggregate(teams, games)
        h2h = HeadToHead(agg.decided)
        rows = self.ranker.rank(agg.rows, h2h)

        if logger.isEnabledFor(logging.DEBUG):
            cycles = find_head_to_head_cycles(list(agg.rows.keys()), h2h)
            if cycles:
                logger.debug("League %s has head-to-head cycles: %s", league_id, cycles)

        return StandingsResult(
            league_id=league_id,
            rows=tuple(rows),
            computed_at=now,
            games_considered=len(games),
            games_counted=len(agg.decided),
            skipped=tuple(agg.skipped),
        )

