# league_standings/repository.py
"""
Storage adapter for league data.

This is the only place that knows how records are laid out in the KV store:

  league:<id>:teams       SET of team ids
  team:<teamId>           JSON string or hash with at least "name"
  league:<id>:games       JSON-encoded list (or native list) of game objects
  league:<id>:standings   JSON-encoded list of standing rows

Writes of games and standings are mirrored to "<key>:backup". The two writes
are independent; when either fails the caller gets a PersistenceError that
lists which keys were written.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence

import requests

from .cache import TTLCache
from .errors import GamesUnavailableError, InputUnavailableError, PersistenceError, RosterUnavailableError
from .kv_client import KVClient
from .models import StandingRow, Team

logger = logging.getLogger(__name__)

_READ_ERRORS = (requests.RequestException, ValueError)


def teams_key(league_id: str) -> str:
    return f"league:{league_id}:teams"


def games_key(league_id: str) -> str:
    return f"league:{league_id}:games"


def standings_key(league_id: str) -> str:
    return f"league:{league_id}:standings"


def backup_key(key: str) -> str:
    return f"{key}:backup"


def decode_list(raw: Any) -> List[Any]:
    """
    Decode a stored list value.

    Accepts a native list or a JSON-encoded string; blank/missing means empty.

    Raises:
        ValueError if a string value is not valid JSON or not a JSON list.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, str):
        if not raw.strip():
            return []
        parsed = json.loads(raw)
        if not isinstance(parsed, list):
            raise ValueError(f"expected a JSON list, got {type(parsed).__name__}")
        return parsed
    logger.warning("Unexpected stored list type %s; treating as empty", type(raw).__name__)
    return []


def decode_team(team_id: str, raw: Any) -> Team:
    """Build a Team from a stored record, falling back to the id as its name."""
    data = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("team:%s is not JSON; using id as name", team_id)
            data = None
    if isinstance(data, dict):
        name = data.get("name")
        return Team(id=team_id, name=str(name) if name else team_id)
    return Team(id=team_id, name=team_id)


@dataclass
class LeagueRepository:
    """Reads league inputs and writes mirrored outputs through a KVClient."""

    kv: KVClient
    cache: TTLCache
    team_names_ttl: int = 60
    max_workers: int = 8

    # --- reads ---

    def load_teams(self, league_id: str) -> List[Team]:
        """
        Return the league roster.

        Raises:
            RosterUnavailableError if the set or any team record cannot be read.
        """
        try:
            team_ids = self.kv.smembers(teams_key(league_id))
            if not team_ids:
                return []
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(team_ids))) as pool:
                records = list(pool.map(lambda tid: self.kv.get(f"team:{tid}"), team_ids))
        except _READ_ERRORS as e:
            raise RosterUnavailableError(f"roster for league {league_id} unavailable: {e}") from e

        teams = [decode_team(tid, rec) for tid, rec in zip(team_ids, records)]
        logger.info("Found %d teams in league %s", len(teams), league_id)
        return teams

    def load_games(self, league_id: str) -> List[Dict[str, Any]]:
        """
        Return the raw game records for a league.

        Raises:
            GamesUnavailableError if the key cannot be read or decoded.
        """
        key = games_key(league_id)
        try:
            games = decode_list(self.kv.get(key))
        except _READ_ERRORS as e:
            raise GamesUnavailableError(f"games for league {league_id} unavailable: {e}") from e
        logger.info("Found %d total games in league %s", len(games), league_id)
        return games

    def load_standings(self, league_id: str) -> List[StandingRow]:
        """
        Return previously stored standings (empty list if none).

        Raises:
            InputUnavailableError if the key cannot be read, or a stored row
            carries values that are not numbers.
        """
        try:
            rows = decode_list(self.kv.get(standings_key(league_id)))
            return [StandingRow.from_dict(r) for r in rows if isinstance(r, dict)]
        except _READ_ERRORS + (TypeError,) as e:
            raise InputUnavailableError(f"standings for league {league_id} unavailable: {e}") from e

    def team_names(self, team_ids: Iterable[str]) -> Dict[str, str]:
        """
        Look up display names for team ids.

        Missing or unreadable teams are left out; callers fall back to the id.
        """
        ids = sorted({str(t) for t in team_ids if t})
        if not ids:
            return {}

        def fetch(tid: str):
            try:
                return tid, self.kv.get(f"team:{tid}")
            except _READ_ERRORS as e:
                logger.warning("Could not read team:%s: %s", tid, e)
                return tid, None

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(ids))) as pool:
            pairs = list(pool.map(fetch, ids))

        out: Dict[str, str] = {}
        for tid, raw in pairs:
            if raw is None:
                continue
            out[tid] = decode_team(tid, raw).name
        return out

    def cached_team_names(self, team_ids: Sequence[str]) -> Dict[str, str]:
        """team_names() behind the TTL cache, keyed on the id set."""
        ids = sorted({str(t) for t in team_ids if t})
        return self.cache.get_or_set(
            key="team-names:" + ",".join(ids),
            ttl_seconds=self.team_names_ttl,
            loader=lambda: self.team_names(ids),
        )

    # --- writes ---

    def _mirror_write(self, key: str, payload: str) -> None:
        """
        Write payload to key and its backup as two independent writes.

        Raises:
            PersistenceError if either write fails; nothing is rolled back.
        """
        targets = [key, backup_key(key)]

        def write(k: str):
            try:
                self.kv.set(k, payload)
                return k, None
            except (requests.RequestException, ValueError) as e:
                return k, e

        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = list(pool.map(write, targets))

        written = [k for k, err in outcomes if err is None]
        failed = [k for k, err in outcomes if err is not None]
        if failed:
            for k, err in outcomes:
                if err is not None:
                    logger.error("Write to %s failed: %s", k, err)
            raise PersistenceError(f"failed to write {', '.join(failed)}", written=written, failed=failed)

    def save_standings(self, league_id: str, rows: Sequence[StandingRow]) -> None:
        payload = json.dumps([r.to_dict() for r in rows])
        self._mirror_write(standings_key(league_id), payload)
        logger.info("Saved standings for %d teams in league %s", len(rows), league_id)

    def save_games(self, league_id: str, games: Sequence[Dict[str, Any]]) -> None:
        self._mirror_write(games_key(league_id), json.dumps(list(games)))
