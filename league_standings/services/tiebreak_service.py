# league_standings/services/tiebreak_service.py
"""
Final standings ordering.

Played teams are sorted by a cascading comparator:
  win% desc -> losses asc -> head-to-head -> point diff desc ->
  points against asc -> points for desc -> name asc
Teams with no games played follow, alphabetically.

The head-to-head step only looks at the two teams being compared, so the
overall ordering is not guaranteed to be transitive when three or more teams
split their meetings (A beats B, B beats C, C beats A). Such cycles are left
as they fall out of the sort.
"""

from __future__ import annotations

import functools
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Hashable, Iterable, List, Mapping, Sequence, Tuple

from ..models import StandingRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecidedGame:
    """An eligible game reduced to team keys and parsed scores."""
    home_key: Hashable
    away_key: Hashable
    home_score: int
    away_score: int


class HeadToHead:
    """Pairwise win lookup built from eligible games."""

    def __init__(self, games: Iterable[DecidedGame] = ()) -> None:
        self._wins: Counter = Counter()
        self._meetings: Counter = Counter()
        for g in games:
            pair = frozenset((g.home_key, g.away_key))
            self._meetings[pair] += 1
            if g.home_score > g.away_score:
                self._wins[(g.home_key, g.away_key)] += 1
            elif g.away_score > g.home_score:
                self._wins[(g.away_key, g.home_key)] += 1

    def meetings(self, a: Hashable, b: Hashable) -> int:
        """Number of eligible games played between a and b (ties included)."""
        return self._meetings[frozenset((a, b))]

    def wins(self, a: Hashable, b: Hashable) -> int:
        """Number of eligible games a won against b."""
        return self._wins[(a, b)]

    def compare(self, a: Hashable, b: Hashable) -> int:
        """
        Return <0 if a ranks ahead of b, >0 if b ranks ahead, 0 for no decision.

        No decision when the teams never met or split their wins evenly.
        """
        if not self.meetings(a, b):
            return 0
        return self.wins(b, a) - self.wins(a, b)


def name_key(name: str) -> Tuple[str, str]:
    """Case-insensitive name ordering with a case-sensitive tiebreak."""
    return (name.casefold(), name)


def _cmp(x, y) -> int:
    return (x > y) - (x < y)


@dataclass
class TieBreakRanker:
    """Orders aggregated rows into final standings."""

    def compare(self, a: Tuple[Hashable, StandingRow], b: Tuple[Hashable, StandingRow], h2h: HeadToHead) -> int:
        """Comparator for two played teams; negative means a ranks first."""
        a_key, ra = a
        b_key, rb = b

        c = _cmp(rb.win_percentage, ra.win_percentage)
        if c:
            return c

        c = _cmp(ra.losses, rb.losses)
        if c:
            return c

        c = h2h.compare(a_key, b_key)
        if c:
            return c

        c = _cmp(rb.point_differential, ra.point_differential)
        if c:
            return c

        c = _cmp(ra.points_against, rb.points_against)
        if c:
            return c

        c = _cmp(rb.points_for, ra.points_for)
        if c:
            return c

        c = _cmp(name_key(ra.team_name), name_key(rb.team_name))
        if c:
            return c

        return _cmp(str(a_key), str(b_key))

    def rank(self, rows: Mapping[Hashable, StandingRow], h2h: HeadToHead) -> List[StandingRow]:
        """
        Return rows in final standings order.

        rows must be in a stable insertion order; the played-team sort is a
        comparison sort over a possibly non-transitive comparator, so the input
        order can influence the output when head-to-head cycles exist.
        """
        played: List[Tuple[Hashable, StandingRow]] = []
        unplayed: List[StandingRow] = []
        for key, row in rows.items():
            if row.games_played > 0:
                played.append((key, row))
            else:
                unplayed.append(row)

        played.sort(key=functools.cmp_to_key(lambda a, b: self.compare(a, b, h2h)))
        unplayed.sort(key=lambda r: name_key(r.team_name))

        return [row for _, row in played] + unplayed


def find_head_to_head_cycles(order: Sequence[Hashable], h2h: HeadToHead) -> List[Tuple[Hashable, Hashable, Hashable]]:
    """
    List team triples whose head-to-head results form a cycle.

    Diagnostic only: cycles are expected when teams split meetings and do not
    indicate a ranking defect.
    """
    out: List[Tuple[Hashable, Hashable, Hashable]] = []
    n = len(order)
    for i in range(n):
        for j in range(i + 1, n):
            for k in range(j + 1, n):
                a, b, c = order[i], order[j], order[k]
                ab, bc, ca = h2h.compare(a, b), h2h.compare(b, c), h2h.compare(c, a)
                if ab and bc and ca and (ab < 0) == (bc < 0) == (ca < 0):
                    out.append((a, b, c))
    return out
