"""Shared fixtures: an in-memory KV store and a fixed clock."""
from __future__ import annotations

import itertools
import json
from datetime import datetime, timedelta, timezone

import pytest
import requests

from league_standings.models import Team

_ids = itertools.count(1)

NOW = datetime(2025, 3, 1, 20, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def hours_ago(h: float) -> str:
    return iso(NOW - timedelta(hours=h))


def game(home, away, hs=None, as_=None, status="final", when=None, **extra):
    """Build a raw stored game record."""
    g = {
        "id": extra.pop("id", f"g{next(_ids)}"),
        "leagueId": "L1",
        "homeTeamName": home,
        "awayTeamName": away,
        "status": status,
        "dateTimeISO": when or hours_ago(24),
    }
    if hs is not None:
        g["homeScore"] = hs
    if as_ is not None:
        g["awayScore"] = as_
    g.update(extra)
    return g


def teams(*names):
    return [Team(id=n.lower(), name=n) for n in names]


class FakeKV:
    """Dict-backed stand-in for KVClient with per-key failure injection."""

    def __init__(self):
        self.values = {}
        self.sets = {}
        self.fail_get = set()
        self.fail_set = set()
        self.get_calls = []

    def get(self, key):
        self.get_calls.append(key)
        if key in self.fail_get:
            raise requests.ConnectionError(f"cannot read {key}")
        return self.values.get(key)

    def set(self, key, value):
        if key in self.fail_set:
            raise requests.ConnectionError(f"cannot write {key}")
        self.values[key] = value

    def smembers(self, key):
        if key in self.fail_get:
            raise requests.ConnectionError(f"cannot read {key}")
        return list(self.sets.get(key, []))

    def seed_league(self, league_id, team_names, games):
        self.sets[f"league:{league_id}:teams"] = [n.lower() for n in team_names]
        for n in team_names:
            self.values[f"team:{n.lower()}"] = json.dumps({"name": n})
        self.values[f"league:{league_id}:games"] = json.dumps(games)


@pytest.fixture
def kv():
    return FakeKV()


@pytest.fixture
def clock():
    return lambda: NOW
