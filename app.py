# app.py
"""
Flask entrypoint for the league standings service.

Routes (JSON):
  - GET  /api/leagues/<league_id>/standings
  - POST /api/leagues/<league_id>/standings/calculate
  - GET  /api/leagues/<league_id>/schedule?team=...
  - POST /api/leagues/<league_id>/games/<game_id>/result
  - POST /api/admin/update-game-statuses   (GET allowed for manual runs)
  - GET  /health

Notes:
  - Standings are recomputed only when /standings/calculate is called (or when
    nothing is stored yet). Entering a result does not recompute them.
  - "Standings could not be calculated" is reported as an error status; an empty
    league is a 200 with an empty list.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from dateutil import tz
from flask import Flask, jsonify, request

from league_standings.cache import TTLCache
from league_standings.config import AppConfig
from league_standings.errors import (
    GameNotFoundError,
    InputUnavailableError,
    InvalidResultError,
    PersistenceError,
)
from league_standings.handlers.schedule_handler import ScheduleHandler
from league_standings.handlers.standings_handler import StandingsHandler
from league_standings.kv_client import KVClient
from league_standings.repository import LeagueRepository
from league_standings.services.game_status_service import GameStatusResolver
from league_standings.services.standings_service import StandingsEngine

STANDINGS_FAILED = "standings could not be calculated"


def create_app(
    cfg: Optional[AppConfig] = None,
    kv: Optional[Any] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Flask:
    """
    App factory.

    Builds shared dependencies (KV client + cache + repository + handlers) once per
    process. kv and clock can be injected for tests.
    """
    cfg = cfg or AppConfig()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app_tz = tz.gettz(cfg.tz) or tz.UTC
    clock = clock or (lambda: datetime.now(tz=app_tz))
    if kv is None:
        kv = KVClient(cfg.kv_rest_api_url, cfg.kv_rest_api_token, timeout=cfg.kv_timeout_seconds)

    repository = LeagueRepository(kv=kv, cache=TTLCache(), team_names_ttl=cfg.team_names_cache_ttl)
    resolver = GameStatusResolver(tz_name=cfg.tz, grace_minutes=cfg.completion_grace_minutes)
    standings = StandingsHandler(
        repository=repository,
        engine=StandingsEngine(resolver=resolver),
        clock=clock,
    )
    schedule = ScheduleHandler(repository=repository, resolver=resolver, clock=clock)

    app = Flask(__name__)
    log = app.logger

    def error_response(message: str, e: Exception, status: int) -> Tuple[Any, int]:
        """Build the JSON error body shared by all routes."""
        body: Dict[str, Any] = {"ok": False, "error": message, "detail": str(e)}
        if isinstance(e, PersistenceError):
            body["written"] = e.written
            body["failed"] = e.failed
        return jsonify(body), status

    # -------------------------
    # Standings
    # -------------------------

    @app.get("/api/leagues/<league_id>/standings")
    def get_standings(league_id: str):
        """Stored standings; computed on first request if none exist."""
        try:
            rows = standings.current(league_id)
        except InputUnavailableError as e:
            log.error("Standings for %s unavailable: %s", league_id, e)
            return error_response(STANDINGS_FAILED, e, 502)
        except PersistenceError as e:
            log.error("Standings for %s not saved: %s", league_id, e)
            return error_response(STANDINGS_FAILED, e, 500)

        resp = jsonify([r.to_dict() for r in rows])
        resp.headers["Cache-Control"] = "no-store"
        return resp

    @app.post("/api/leagues/<league_id>/standings/calculate")
    def calculate_standings(league_id: str):
        """Recompute standings from scratch and store them."""
        try:
            result = standings.calculate(league_id)
        except InputUnavailableError as e:
            log.error("Error calculating standings for %s: %s", league_id, e)
            return error_response(STANDINGS_FAILED, e, 502)
        except PersistenceError as e:
            log.error("Error saving standings for %s: %s", league_id, e)
            return error_response(STANDINGS_FAILED, e, 500)
        return jsonify(result.to_dict())

    # -------------------------
    # Schedule
    # -------------------------

    @app.get("/api/leagues/<league_id>/schedule")
    def get_schedule(league_id: str):
        """
        Canonical schedule for a league.

        Query:
          - team=<name or id> (optional)
        """
        team = (request.args.get("team") or "").strip()
        try:
            games = schedule.schedule(league_id, team=team)
        except InputUnavailableError as e:
            return error_response("Failed to read schedule", e, 502)

        resp = jsonify([g.to_dict() for g in games])
        resp.headers["Cache-Control"] = "public, s-maxage=60, stale-while-revalidate=30"
        return resp

    @app.post("/api/leagues/<league_id>/games/<game_id>/result")
    def post_result(league_id: str, game_id: str):
        """Record a final score: JSON body {"homeScore": int, "awayScore": int}."""
        body = request.get_json(silent=True) or {}
        try:
            game = schedule.record_result(league_id, game_id, body.get("homeScore"), body.get("awayScore"))
        except InvalidResultError as e:
            return error_response("Invalid scores", e, 400)
        except GameNotFoundError as e:
            return error_response("Game not found", e, 404)
        except InputUnavailableError as e:
            return error_response("Failed to read schedule", e, 502)
        except PersistenceError as e:
            return error_response("Failed to save result", e, 500)

        return jsonify(
            {
                "ok": True,
                "gameId": game_id,
                "homeScore": game["homeScore"],
                "awayScore": game["awayScore"],
                "message": "Result saved successfully",
            }
        )

    # -------------------------
    # Status sweep
    # -------------------------

    @app.route("/api/admin/update-game-statuses", methods=["GET", "POST"])
    def update_game_statuses():
        """Promote past scheduled games to completed across the configured leagues."""
        out = schedule.update_statuses(cfg.known_league_ids)
        return jsonify(out), (200 if out["ok"] else 500)

    # -------------------------
    # Health
    # -------------------------

    @app.get("/health")
    def health():
        """Simple health endpoint for Docker/monitoring checks."""
        return {"ok": True}

    return app


# WSGI entrypoint for gunicorn (app:app)
app = create_app()

if __name__ == "__main__":
    # Dev server (not for production).
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")), debug=True)
