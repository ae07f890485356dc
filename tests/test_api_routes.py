"""
tests/test_api_routes.py — Dashboard API
=========================================

FastAPI TestClient against an in-memory SQLite engine (see conftest).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from wangbot.services.progression_service import (
    create_user_server_data,
    ensure_server_exists,
    ensure_user_exists,
)

SERVER = 500


def _seed(engine, user_id: int, xp: int, avatar: str | None = None, **kwargs) -> None:
    ensure_user_exists(engine, user_id, f"user{user_id}", "0", avatar)
    ensure_server_exists(engine, SERVER, "Test Server", None, 1)
    create_user_server_data(engine, user_id, SERVER, xp=xp, **kwargs)


def _card_body(**overrides):
    body = {
        "user": {"id": "42", "username": "wang", "discriminator": "0", "avatar": None},
        "stats": {"totalXp": 1250, "points": 500, "rank": 3, "totalMessages": 10, "voiceTime": 1},
        "style": {"accentColor": "#FF0000", "progressGradient": ["#FF0000", None]},
        "achievements": [{"name": "전설", "icon": "👑", "rarity": "legendary"}],
    }
    body.update(overrides)
    return body


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# POST /api/profile-card/{user_id}/{guild_id}
# ---------------------------------------------------------------------------
class TestRenderProfileCard:
    def test_returns_svg(self, client):
        resp = client.post(f"/api/profile-card/42/{SERVER}", json=_card_body())
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("image/svg+xml")
        root = ET.fromstring(resp.text)
        assert root.tag.endswith("svg")
        assert "350 / 700 XP" in resp.text
        assert 'stroke="#FF0000"' in resp.text

    def test_minimal_payload(self, client):
        resp = client.post(
            f"/api/profile-card/42/{SERVER}",
            json={"user": {"id": 42, "username": "wang"}, "stats": {}},
        )
        assert resp.status_code == 200
        assert "0 / 400 XP" in resp.text

    def test_missing_user_is_rejected(self, client):
        resp = client.post(f"/api/profile-card/42/{SERVER}", json={"stats": {"totalXp": 1}})
        assert resp.status_code == 422

    def test_negative_xp_is_rejected(self, client):
        body = _card_body(stats={"totalXp": -5})
        assert client.post(f"/api/profile-card/42/{SERVER}", json=body).status_code == 422


# ---------------------------------------------------------------------------
# GET / PUT /api/profile-card/{user_id}/{guild_id}/style
# ---------------------------------------------------------------------------
class TestCardStyle:
    def test_default_style_for_unknown_member(self, client):
        resp = client.get(f"/api/profile-card/1/{SERVER}/style")
        assert resp.status_code == 200
        assert resp.json() == {
            "accentColor": "#5865F2",
            "progressGradient": ["#5865F2", "#FF73FA"],
            "backgroundColor": None,
            "backgroundImage": None,
        }

    def test_put_without_record_is_404(self, client):
        resp = client.put(f"/api/profile-card/1/{SERVER}/style", json={"accentColor": "#112233"})
        assert resp.status_code == 404

    def test_put_then_get(self, client, db_engine):
        _seed(db_engine, 1, 100)
        style = {
            "accentColor": "#112233",
            "progressGradient": ["#112233", "#445566"],
            "backgroundColor": "linear-gradient(135deg, #000000 0%, #FFFFFF 100%)",
            "backgroundImage": "",
        }
        resp = client.put(f"/api/profile-card/1/{SERVER}/style", json=style)
        assert resp.status_code == 200
        assert resp.json()["backgroundImage"] is None

        stored = client.get(f"/api/profile-card/1/{SERVER}/style").json()
        assert stored["accentColor"] == "#112233"
        assert stored["progressGradient"] == ["#112233", "#445566"]
        assert stored["backgroundColor"].startswith("linear-gradient")

    def test_invalid_accent_is_422(self, client, db_engine):
        _seed(db_engine, 1, 100)
        resp = client.put(f"/api/profile-card/1/{SERVER}/style", json={"accentColor": "red"})
        assert resp.status_code == 422

    def test_gradient_needs_two_stops(self, client, db_engine):
        _seed(db_engine, 1, 100)
        resp = client.put(
            f"/api/profile-card/1/{SERVER}/style",
            json={"progressGradient": ["#111111", "#222222", "#333333"]},
        )
        assert resp.status_code == 422

    def test_background_image_must_be_http(self, client, db_engine):
        _seed(db_engine, 1, 100)
        resp = client.put(
            f"/api/profile-card/1/{SERVER}/style",
            json={"backgroundImage": "javascript:alert(1)"},
        )
        assert resp.status_code == 422

    def test_malformed_background_url_is_not_stored(self, client, db_engine):
        _seed(db_engine, 1, 100)
        for bad in ("http://[::1", "https://"):
            resp = client.put(f"/api/profile-card/1/{SERVER}/style", json={"backgroundImage": bad})
            assert resp.status_code == 422, bad
        assert client.get(f"/api/profile-card/1/{SERVER}/style").json()["backgroundImage"] is None

    def test_background_url_kept_verbatim(self, client, db_engine):
        _seed(db_engine, 1, 100)
        url = "https://cdn.example.com/bg.png?w=800&h=400"
        resp = client.put(f"/api/profile-card/1/{SERVER}/style", json={"backgroundImage": url})
        assert resp.status_code == 200
        assert resp.json()["backgroundImage"] == url


# ---------------------------------------------------------------------------
# Public read endpoints
# ---------------------------------------------------------------------------
class TestLeaderboard:
    def test_ordered_by_xp(self, client, db_engine):
        _seed(db_engine, 1, 100)
        _seed(db_engine, 2, 1250, avatar="abc123")
        _seed(db_engine, 3, 400, avatar="https://cdn.example.com/x.png")

        resp = client.get(f"/api/leaderboard/{SERVER}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["guild_id"] == str(SERVER)
        users = data["users"]
        assert [u["id"] for u in users] == ["2", "3", "1"]
        assert [u["rank"] for u in users] == [1, 2, 3]

        top = users[0]
        assert top["level"] == 3
        assert top["xp_in_level"] == 350
        assert top["xp_for_next"] == 700
        assert top["xp_progress"] == 0.5
        assert top["avatar_url"] == "https://cdn.discordapp.com/avatars/2/abc123.png"
        assert users[1]["avatar_url"] == "https://cdn.example.com/x.png"
        assert users[2]["avatar_url"] == "https://cdn.discordapp.com/embed/avatars/0.png"

    def test_limit(self, client, db_engine):
        for uid in range(1, 6):
            _seed(db_engine, uid, uid * 10)
        users = client.get(f"/api/leaderboard/{SERVER}?limit=2").json()["users"]
        assert len(users) == 2

    def test_limit_bounds(self, client):
        assert client.get(f"/api/leaderboard/{SERVER}?limit=0").status_code == 422
        assert client.get(f"/api/leaderboard/{SERVER}?limit=101").status_code == 422

    def test_empty_server(self, client):
        assert client.get("/api/leaderboard/999").json() == {"guild_id": "999", "users": []}


class TestMember:
    def test_unknown_member_is_404(self, client):
        assert client.get(f"/api/users/1/servers/{SERVER}").status_code == 404

    def test_member(self, client, db_engine):
        _seed(db_engine, 1, 1250, points=500, profile_card={"accentColor": "#ABCDEF"})
        _seed(db_engine, 2, 5000)

        data = client.get(f"/api/users/1/servers/{SERVER}").json()
        assert data["user_id"] == "1"
        assert data["xp"] == 1250
        assert data["points"] == 500
        assert data["rank"] == 2
        assert data["level"] == 3
        assert data["style"]["accentColor"] == "#ABCDEF"
