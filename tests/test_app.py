import json
from datetime import timedelta

import pytest

from app import create_app
from league_standings.config import AppConfig
from tests.conftest import NOW, game, hours_ago, iso


@pytest.fixture
def client(kv, clock):
    cfg = AppConfig(tz="UTC", known_league_ids=["5v5", "3v3"])
    app = create_app(cfg=cfg, kv=kv, clock=clock)
    app.testing = True
    return app.test_client()


def seed_basic(kv):
    kv.seed_league(
        "5v5",
        ["A", "B", "C"],
        [
            game("A", "B", 72, 65, id="g1"),
            game("B", "C", status="scheduled", when=iso(NOW + timedelta(days=2)), id="g2"),
            game("C", "A", status="scheduled", when=hours_ago(3), id="g3"),
        ],
    )


def test_health(client):
    assert client.get("/health").get_json() == {"ok": True}


def test_calculate_persists_and_orders(kv, client):
    seed_basic(kv)
    resp = client.post("/api/leagues/5v5/standings/calculate")
    body = resp.get_json()

    assert resp.status_code == 200
    assert body["ok"] is True
    assert [r["teamName"] for r in body["standings"]] == ["A", "B", "C"]
    assert body["standings"][0]["wins"] == 1
    assert body["gamesCounted"] == 1

    stored = json.loads(kv.values["league:5v5:standings"])
    assert stored == body["standings"]
    assert kv.values["league:5v5:standings:backup"] == kv.values["league:5v5:standings"]


def test_empty_league_is_not_an_error(client):
    resp = client.post("/api/leagues/empty/standings/calculate")
    assert resp.status_code == 200
    assert resp.get_json()["standings"] == []
    assert client.get("/api/leagues/empty/standings").get_json() == []


def test_unreadable_roster_fails_calculation(kv, client):
    seed_basic(kv)
    kv.fail_get.add("league:5v5:teams")
    resp = client.post("/api/leagues/5v5/standings/calculate")
    assert resp.status_code == 502
    assert resp.get_json()["error"] == "standings could not be calculated"
    assert "league:5v5:standings" not in kv.values


def test_unreadable_games_fails_calculation(kv, client):
    seed_basic(kv)
    kv.fail_get.add("league:5v5:games")
    resp = client.post("/api/leagues/5v5/standings/calculate")
    assert resp.status_code == 502
    assert resp.get_json()["ok"] is False


def test_failed_backup_write_is_reported(kv, client):
    seed_basic(kv)
    kv.fail_set.add("league:5v5:standings:backup")
    resp = client.post("/api/leagues/5v5/standings/calculate")
    body = resp.get_json()
    assert resp.status_code == 500
    assert body["written"] == ["league:5v5:standings"]
    assert body["failed"] == ["league:5v5:standings:backup"]


def test_get_standings_prefers_stored(kv, client):
    seed_basic(kv)
    kv.values["league:5v5:standings"] = json.dumps([{"teamId": "z", "teamName": "Stored", "wins": 9}])
    rows = client.get("/api/leagues/5v5/standings").get_json()
    assert [r["teamName"] for r in rows] == ["Stored"]


def test_get_standings_with_malformed_stored_numbers(kv, client):
    seed_basic(kv)
    kv.values["league:5v5:standings"] = json.dumps([{"teamId": "a", "teamName": "A", "wins": "n/a"}])
    resp = client.get("/api/leagues/5v5/standings")
    body = resp.get_json()
    assert resp.status_code == 502
    assert body["ok"] is False
    assert body["error"] == "standings could not be calculated"


def test_get_standings_computes_when_missing(kv, client):
    seed_basic(kv)
    resp = client.get("/api/leagues/5v5/standings")
    assert resp.headers["Cache-Control"] == "no-store"
    assert [r["teamName"] for r in resp.get_json()] == ["A", "B", "C"]
    assert "league:5v5:standings" in kv.values


def test_schedule_resolves_statuses_and_sorts(kv, client):
    seed_basic(kv)
    games = client.get("/api/leagues/5v5/schedule").get_json()
    assert [g["id"] for g in games] == ["g1", "g3", "g2"]
    status = {g["id"]: g["status"] for g in games}
    assert status == {"g1": "final", "g2": "scheduled", "g3": "completed"}


def test_schedule_team_filter_and_id_names(kv, client):
    kv.values["team:t7"] = json.dumps({"name": "Sevens"})
    kv.values["league:3v3:games"] = json.dumps([
        {"id": "x1", "homeTeamId": "t7", "awayTeamName": "Other", "dateTimeISO": hours_ago(1)},
        {"id": "x2", "homeTeamName": "Else", "awayTeamName": "Other", "dateTimeISO": hours_ago(1)},
    ])
    games = client.get("/api/leagues/3v3/schedule?team=Sevens").get_json()
    assert [g["id"] for g in games] == ["x1"]
    assert games[0]["homeTeamName"] == "Sevens"


def test_record_result_marks_final_without_recomputing(kv, client):
    seed_basic(kv)
    resp = client.post("/api/leagues/5v5/games/g3/result", json={"homeScore": 50, "awayScore": 48})
    assert resp.status_code == 200
    stored = {g["id"]: g for g in json.loads(kv.values["league:5v5:games"])}
    assert stored["g3"]["status"] == "final"
    assert (stored["g3"]["homeScore"], stored["g3"]["awayScore"]) == (50, 48)
    assert kv.values["league:5v5:games:backup"] == kv.values["league:5v5:games"]
    assert "league:5v5:standings" not in kv.values


def test_record_result_then_calculate_counts_game(kv, client):
    seed_basic(kv)
    client.post("/api/leagues/5v5/games/g3/result", json={"homeScore": 50, "awayScore": 48})
    body = client.post("/api/leagues/5v5/standings/calculate").get_json()
    rows = {r["teamName"]: r for r in body["standings"]}
    assert rows["C"]["wins"] == 1
    assert rows["A"]["losses"] == 1


def test_record_result_by_schedule_id_for_game_without_stored_id(kv, client):
    kv.values["team:t1"] = json.dumps({"name": "Hawks"})
    kv.values["team:t2"] = json.dumps({"name": "Owls"})
    kv.values["league:3v3:games"] = json.dumps([
        {"leagueId": "3v3", "homeTeamId": "t1", "awayTeamId": "t2",
         "dateTimeISO": hours_ago(24), "status": "scheduled"},
    ])
    game_id = client.get("/api/leagues/3v3/schedule").get_json()[0]["id"]
    assert game_id.endswith(":Hawks-Owls")

    resp = client.post(f"/api/leagues/3v3/games/{game_id}/result", json={"homeScore": 3, "awayScore": 1})
    assert resp.status_code == 200
    stored = json.loads(kv.values["league:3v3:games"])[0]
    assert stored["status"] == "final"
    assert (stored["homeScore"], stored["awayScore"]) == (3, 1)


@pytest.mark.parametrize("payload", [{"homeScore": -1, "awayScore": 2}, {"homeScore": "3", "awayScore": 2},
                                     {"homeScore": True, "awayScore": 0}, {}])
def test_record_result_rejects_bad_scores(kv, client, payload):
    seed_basic(kv)
    resp = client.post("/api/leagues/5v5/games/g1/result", json=payload)
    assert resp.status_code == 400


def test_record_result_unknown_game(kv, client):
    seed_basic(kv)
    resp = client.post("/api/leagues/5v5/games/nope/result", json={"homeScore": 1, "awayScore": 0})
    assert resp.status_code == 404


def test_update_game_statuses(kv, client):
    seed_basic(kv)
    body = client.post("/api/admin/update-game-statuses").get_json()
    assert body["ok"] is True
    assert body["updated"] == {"5v5": 1, "3v3": 0}
    assert body["totalUpdated"] == 1
    stored = {g["id"]: g for g in json.loads(kv.values["league:5v5:games"])}
    assert stored["g3"]["status"] == "completed"
    assert stored["g2"]["status"] == "scheduled"
    assert "league:3v3:games" not in kv.values


def test_update_game_statuses_reports_league_failure(kv, client):
    seed_basic(kv)
    kv.fail_get.add("league:3v3:games")
    resp = client.get("/api/admin/update-game-statuses")
    body = resp.get_json()
    assert resp.status_code == 500
    assert body["updated"] == {"5v5": 1}
    assert "3v3" in body["errors"]
