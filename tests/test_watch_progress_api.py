"""Tests for the watch progress HTTP API.

Tests cover:
- Episode and movie progress endpoints
- Resume shelf and watch history listings
- Error envelopes, including storage failures
- Access token handling
- Rate limiting
"""

import asyncio

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError
from starlette.requests import Request

from app.api.deps import create_access_token
from app.models import ContinueWatching, WatchHistory
from app.services.watch_progress_service import watch_progress_service
from app.utils import rate_limiter as rate_limiter_module
from app.utils.rate_limiter import RateLimiter

EPISODE_URL = "/api/content/tv-show/{show}/season/{season}/episode/{episode}/watch-history"
MOVIE_URL = "/api/content/content/{content}/watch-history"
SHELF_URL = "/api/content/continue-watching"


def episode_url(show="s1", season=1, episode=5):
    return EPISODE_URL.format(show=show, season=season, episode=episode)


def movie_url(content="m1"):
    return MOVIE_URL.format(content=content)


def count_rows(session_factory):
    session = session_factory()
    try:
        return session.query(WatchHistory).count(), session.query(ContinueWatching).count()
    finally:
        session.close()


def make_request(client_ip, path="/"):
    return Request({
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": b"",
        "headers": [],
        "client": (client_ip, 50000),
    })


# =============================================================================
# Episode progress
# =============================================================================


class TestEpisodeProgress:

    def test_uses_catalog_duration(self, client, auth_headers):
        response = client.post(episode_url(), json={"progress": 1200}, headers=auth_headers("u1"))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["episodeId"] == "e5"
        assert data["contentId"] == "s1"
        assert data["profileId"] == "p1"
        assert data["completionPercentage"] == 50.0
        assert data["completed"] is False
        assert data["watchTime"] == 2400.0

    def test_completed_flag_clears_resume_shelf(self, client, auth_headers):
        headers = auth_headers("u1")
        client.post(episode_url(), json={"progress": 1200}, headers=headers)

        response = client.post(episode_url(), json={"progress": 1300, "completed": True}, headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["completed"] is True
        assert data["completionPercentage"] == 100.0

        shelf = client.get(SHELF_URL, headers=headers).json()
        assert shelf == {"success": True, "data": []}

    def test_explicit_duration(self, client, auth_headers):
        response = client.post(
            episode_url(), json={"progress": 30, "duration": 60}, headers=auth_headers("u1")
        )

        assert response.status_code == 200
        assert response.json()["data"]["completionPercentage"] == 50.0

    def test_without_any_duration_is_rejected(self, client, auth_headers):
        response = client.post(
            episode_url(show="s2", season=1, episode=1), json={"progress": 30}, headers=auth_headers("u1")
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "validation_failed"

    def test_unknown_episode_returns_404(self, client, auth_headers):
        response = client.post(episode_url(episode=42), json={"progress": 30}, headers=auth_headers("u1"))

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Episode not found",
            "error": "not_found",
        }

    def test_without_active_profile_returns_400(self, client, auth_headers):
        response = client.post(episode_url(), json={"progress": 30}, headers=auth_headers("u3"))

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Active profile is required"
        assert body["error"] == "precondition_failed"

    def test_unknown_body_fields_are_rejected(self, client, auth_headers):
        response = client.post(
            episode_url(), json={"progress": 30, "userId": "u2"}, headers=auth_headers("u1")
        )

        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_negative_progress_is_rejected(self, client, auth_headers):
        response = client.post(episode_url(), json={"progress": -1}, headers=auth_headers("u1"))

        assert response.status_code == 422


# =============================================================================
# Movie progress
# =============================================================================


class TestMovieProgress:

    def test_record_and_list_resume_shelf(self, client, auth_headers):
        headers = auth_headers("u1")

        response = client.post(movie_url(), json={"progress": 60, "duration": 120}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["episodeId"] is None

        shelf = client.get(SHELF_URL, headers=headers)

        assert shelf.status_code == 200
        items = shelf.json()["data"]
        assert len(items) == 1
        item = items[0]
        assert item["progress"] == 60.0
        assert item["completionPercentage"] == 50.0
        assert item["isEpisode"] is False
        assert item["episode"] is None
        assert item["content"]["id"] == "m1"
        assert item["content"]["type"] == "MOVIE"
        assert item["content"]["genres"] == [{"id": "g1", "name": "Drama"}]
        assert "updatedAt" in item

    def test_accepts_episode_id(self, client, auth_headers):
        headers = auth_headers("u1")
        client.post(
            movie_url("s1"),
            json={"progress": 100, "duration": 2400, "episodeId": "e6"},
            headers=headers,
        )

        items = client.get(SHELF_URL, headers=headers).json()["data"]

        assert len(items) == 1
        assert items[0]["isEpisode"] is True
        assert items[0]["episode"]["id"] == "e6"
        assert items[0]["episode"]["season"]["seasonNumber"] == 1
        assert items[0]["content"]["title"] == "Harbour Lights"

    def test_rejects_mismatched_episode(self, client, auth_headers, session_factory):
        response = client.post(
            movie_url("s1"),
            json={"progress": 100, "duration": 2400, "episodeId": "e99"},
            headers=auth_headers("u1"),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert count_rows(session_factory) == (0, 0)

    def test_rejects_zero_duration(self, client, auth_headers):
        response = client.post(movie_url(), json={"progress": 0, "duration": 0}, headers=auth_headers("u1"))

        assert response.status_code == 422

    def test_storage_failure_renders_error_envelope(self, client, auth_headers, session_factory, monkeypatch):
        original_upsert = watch_progress_service._upsert

        def failing_upsert(db, model, *args, **kwargs):
            if model is ContinueWatching:
                raise OperationalError("INSERT INTO continue_watching", {}, Exception("disk I/O error"))
            return original_upsert(db, model, *args, **kwargs)

        monkeypatch.setattr(watch_progress_service, "_upsert", failing_upsert)

        response = client.post(movie_url(), json={"progress": 60, "duration": 120}, headers=auth_headers("u1"))

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Failed to record watch history",
            "error": "storage_failure",
        }
        assert "disk I/O error" not in response.text
        assert count_rows(session_factory) == (0, 0)


# =============================================================================
# Listings
# =============================================================================


class TestListings:

    def test_resume_shelf_is_scoped_to_active_profile(self, client, auth_headers):
        client.post(movie_url(), json={"progress": 60, "duration": 120}, headers=auth_headers("u1"))

        response = client.get(SHELF_URL, headers=auth_headers("u2"))

        assert response.json() == {"success": True, "data": []}

    def test_watch_history(self, client, auth_headers):
        headers = auth_headers("u1")
        client.post(movie_url(), json={"progress": 119, "duration": 120}, headers=headers)

        response = client.get("/api/user/watch-history", params={"limit": 5}, headers=headers)

        assert response.status_code == 200
        records = response.json()["data"]
        assert len(records) == 1
        assert records[0]["completed"] is True
        assert records[0]["profile"] == {"id": "p1", "name": "Main", "avatar": None}

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# =============================================================================
# Authentication
# =============================================================================


class TestAuthentication:

    def test_access_token_cookie_is_accepted(self, client):
        client.cookies.set("accessToken", create_access_token("u1"))
        try:
            response = client.get(SHELF_URL)
        finally:
            client.cookies.clear()

        assert response.status_code == 200

    def test_missing_token_returns_401(self, client):
        response = client.get(SHELF_URL)

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    def test_invalid_token_returns_401(self, client):
        response = client.get(SHELF_URL, headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    def test_unknown_user_returns_401(self, client, auth_headers):
        response = client.get(SHELF_URL, headers=auth_headers("ghost"))

        assert response.status_code == 401
        assert response.json()["message"] == "User not found"


# =============================================================================
# Rate limiting
# =============================================================================


class TestRateLimiting:

    def test_blocks_after_minute_quota(self, client, monkeypatch):
        limiter = RateLimiter(requests_per_minute=2, requests_per_hour=100)
        monkeypatch.setattr("app.main.rate_limiter", limiter)

        statuses = [client.get("/").status_code for _ in range(3)]

        assert statuses == [200, 200, 429]
        assert client.get("/health").status_code == 200

    def test_idle_clients_are_evicted(self, monkeypatch):
        clock = [1_000_000.0]
        monkeypatch.setattr(rate_limiter_module.time, "time", lambda: clock[0])
        limiter = RateLimiter(requests_per_minute=5, requests_per_hour=100)

        for i in range(500):
            asyncio.run(limiter.check_rate_limit(make_request(f"10.0.{i // 256}.{i % 256}")))
        assert len(limiter.minute_tracker) == 500

        clock[0] += 7200
        asyncio.run(limiter.check_rate_limit(make_request("192.168.1.1")))

        assert list(limiter.minute_tracker) == ["ip:192.168.1.1"]
        assert list(limiter.hour_tracker) == ["ip:192.168.1.1"]

    def test_window_expiry_restores_quota(self, monkeypatch):
        clock = [1_000_000.0]
        monkeypatch.setattr(rate_limiter_module.time, "time", lambda: clock[0])
        limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100)

        asyncio.run(limiter.check_rate_limit(make_request("10.0.0.1")))
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(limiter.check_rate_limit(make_request("10.0.0.1")))
        assert exc_info.value.status_code == 429

        clock[0] += 61
        asyncio.run(limiter.check_rate_limit(make_request("10.0.0.1")))
