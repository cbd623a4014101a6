"""Tests for the recent activities listing endpoint."""

from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt
from sqlalchemy.exc import OperationalError

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from main import create_app
from wyzebank.application.use_cases.activity import (
    ActivityStorageError,
    record_user_activity,
)
from wyzebank.config import get_settings
from wyzebank.infrastructure.notifications import ActivityBus
from wyzebank.infrastructure.repositories import UserActivityRepository
from wyzebank.interfaces.api.routes import activity as activity_routes
from wyzebank.utils import now_in_utc


@pytest.fixture
def client(reset_database) -> TestClient:
    return TestClient(create_app())


def _seed(session, user_id: int, count: int, **fields) -> list[int]:
    bus = ActivityBus()
    ids = []
    for index in range(count):
        event = {
            "user_id": user_id,
            "type": "transfer",
            "status": "completed",
            "description": f"Transfer #{index}",
            **fields,
        }
        ids.append(record_user_activity(session, event, bus=bus).id)
    return ids


def test_requires_session(client: TestClient):
    response = client.get("/api/recent-activities")

    assert response.status_code == 401


def test_lists_only_own_activity_newest_first(client, db_session, session_headers):
    own_ids = _seed(db_session, 1, 3)
    _seed(db_session, 2, 2)

    response = client.get("/api/recent-activities", headers=session_headers(1))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert [item["id"] for item in body["items"]] == list(reversed(own_ids))
    assert all(item["user_id"] == 1 for item in body["items"])
    assert body["page"] == 1
    assert body["pageSize"] == 20
    assert body["hasNextPage"] is False
    assert body["nextPage"] is None


def test_response_headers(client, db_session, session_headers):
    response = client.get("/api/recent-activities", headers=session_headers(1))

    assert response.headers["cache-control"] == "no-store"
    assert response.headers["x-request-id"]


def test_item_shape(client, db_session, session_headers):
    record_user_activity(
        db_session,
        {
            "user_id": 1,
            "type": "deposit",
            "status": "completed",
            "amount_cents": 5000,
            "currency": "USD",
        },
        bus=ActivityBus(),
    )

    item = client.get("/api/recent-activities", headers=session_headers(1)).json()["items"][0]

    assert set(item) == {
        "id",
        "user_id",
        "type",
        "status",
        "description",
        "amount_cents",
        "currency",
        "source",
        "ip",
        "user_agent",
        "created_at",
    }
    assert item["amount_cents"] == 5000
    assert item["description"] is None
    assert item["created_at"]


def test_pagination(client, db_session, session_headers):
    ids = _seed(db_session, 1, 7)

    first = client.get(
        "/api/recent-activities", params={"pageSize": 5}, headers=session_headers(1)
    ).json()
    second = client.get(
        "/api/recent-activities",
        params={"pageSize": 5, "page": 2},
        headers=session_headers(1),
    ).json()

    assert first["hasNextPage"] is True
    assert first["nextPage"] == 2
    assert len(first["items"]) == 5
    assert second["hasNextPage"] is False
    assert second["nextPage"] is None
    assert [item["id"] for item in first["items"] + second["items"]] == list(reversed(ids))


@pytest.mark.parametrize("requested, expected", [(1, 5), (500, 100), (30, 30)])
def test_page_size_is_clamped(client, db_session, session_headers, requested, expected):
    response = client.get(
        "/api/recent-activities", params={"pageSize": requested}, headers=session_headers(1)
    )

    assert response.json()["pageSize"] == expected


def test_offset_beyond_limit_returns_empty_page(client, db_session, session_headers):
    _seed(db_session, 1, 1)

    body = client.get(
        "/api/recent-activities",
        params={"page": 3000, "pageSize": 5},
        headers=session_headers(1),
    ).json()

    assert body["items"] == []
    assert body["total"] == 10000
    assert body["hasNextPage"] is False
    assert body["meta"]["estimate"] is True
    assert body["meta"]["degraded"] is False


def test_filters_by_type_status_and_source(client, db_session, session_headers):
    _seed(db_session, 1, 2)
    deposit_ids = _seed(db_session, 1, 1, type="deposit", source="ach")
    _seed(db_session, 1, 1, type="deposit", status="failed", source="ach")

    body = client.get(
        "/api/recent-activities",
        params={"type": "deposit", "status": "completed", "source": "ach"},
        headers=session_headers(1),
    ).json()

    assert [item["id"] for item in body["items"]] == deposit_ids


def test_free_text_search_is_case_insensitive(client, db_session, session_headers):
    _seed(db_session, 1, 2)
    coffee_ids = _seed(db_session, 1, 1, description="Coffee shop")
    agent_ids = _seed(db_session, 1, 1, user_agent="CoffeeBrowser/1.0")

    body = client.get(
        "/api/recent-activities", params={"q": "  COFFEE "}, headers=session_headers(1)
    ).json()

    assert sorted(item["id"] for item in body["items"]) == sorted(coffee_ids + agent_ids)


def test_free_text_search_treats_wildcards_literally(client, db_session, session_headers):
    _seed(db_session, 1, 2)
    percent_ids = _seed(db_session, 1, 1, description="Cashback 5% applied")

    body = client.get(
        "/api/recent-activities", params={"q": "%"}, headers=session_headers(1)
    ).json()

    assert [item["id"] for item in body["items"]] == percent_ids


def test_date_range_filters(client, db_session, session_headers):
    _seed(db_session, 1, 2)
    today = now_in_utc().date()
    tomorrow = today + timedelta(days=1)
    yesterday = today - timedelta(days=1)

    def total(params):
        return client.get(
            "/api/recent-activities", params=params, headers=session_headers(1)
        ).json()["total"]

    assert total({"from": yesterday.isoformat(), "to": tomorrow.isoformat()}) == 2
    assert total({"from": tomorrow.isoformat()}) == 0
    assert total({"to": yesterday.isoformat()}) == 0
    assert total({"from": "not-a-date"}) == 2
    assert total({"from": "2026-13-45"}) == 2


def test_filter_by_id_is_scoped_to_the_user(client, db_session, session_headers):
    own_ids = _seed(db_session, 1, 2)
    foreign_ids = _seed(db_session, 2, 1)

    own = client.get(
        "/api/recent-activities", params={"id": own_ids[0]}, headers=session_headers(1)
    ).json()
    foreign = client.get(
        "/api/recent-activities", params={"id": foreign_ids[0]}, headers=session_headers(1)
    ).json()

    assert [item["id"] for item in own["items"]] == [own_ids[0]]
    assert foreign["items"] == []
    assert foreign["total"] == 0


def test_storage_failure_returns_degraded_empty_page(client, session_headers, monkeypatch):
    def failing(*args, **kwargs):
        raise ActivityStorageError("Could not load recent activity")

    monkeypatch.setattr(activity_routes, "list_recent_activities", failing)

    response = client.get("/api/recent-activities", headers=session_headers(1))

    assert response.status_code == 200
    body = response.json()
    assert body["items"] == []
    assert body["total"] == 0
    assert body["page"] == 1
    assert body["pageSize"] == 20
    assert body["hasNextPage"] is False
    assert body["meta"]["degraded"] is True
    assert body["meta"]["error"] == "TemporaryUnavailable"
    assert response.headers["cache-control"] == "no-store"


def test_count_failure_estimates_the_total(client, db_session, session_headers, monkeypatch):
    ids = _seed(db_session, 1, 7)

    def failing_count(self, *args, **kwargs):
        raise OperationalError("SELECT count(*)", {}, Exception("timeout"))

    monkeypatch.setattr(UserActivityRepository, "count_for_user", failing_count)

    full = client.get(
        "/api/recent-activities", params={"pageSize": 5}, headers=session_headers(1)
    ).json()
    last = client.get(
        "/api/recent-activities",
        params={"pageSize": 5, "page": 2},
        headers=session_headers(1),
    ).json()

    assert [item["id"] for item in full["items"]] == list(reversed(ids))[:5]
    assert full["total"] == 6
    assert full["hasNextPage"] is True
    assert full["meta"]["estimate"] is True
    assert full["meta"]["degraded"] is False
    assert last["total"] == 7
    assert last["hasNextPage"] is False
    assert last["meta"]["estimate"] is True


def test_meta_block(client, db_session, session_headers):
    _seed(db_session, 1, 1)
    headers = {**session_headers(1), "X-Request-ID": "req-meta"}

    response = client.get("/api/recent-activities", headers=headers)

    meta = response.json()["meta"]
    assert meta["requestId"] == "req-meta"
    assert meta["degraded"] is False
    assert meta["estimate"] is False
    assert isinstance(meta["durationMs"], int)
    assert meta["durationMs"] >= 0
    assert meta["error"] is None


def test_generated_request_id_matches_meta(client, session_headers):
    response = client.get("/api/recent-activities", headers=session_headers(1))

    assert response.json()["meta"]["requestId"] == response.headers["x-request-id"]


def test_token_without_uid_claim_is_unauthorized(client):
    settings = get_settings()
    token = jwt.encode(
        {"sub": "42", "exp": now_in_utc() + timedelta(minutes=5)},
        settings.secret_key,
        algorithm="HS256",
    )

    response = client.get(
        "/api/recent-activities", headers={"Cookie": f"{settings.session_cookie_name}={token}"}
    )

    assert response.status_code == 401


def test_request_id_is_echoed(client, session_headers):
    headers = {**session_headers(1), "X-Request-ID": "req-123"}

    response = client.get("/api/recent-activities", headers=headers)

    assert response.headers["x-request-id"] == "req-123"
