"""
test_api.py — HTTP surface of the client records service.

Covers:
    • POST/GET/PUT /api/v1/clients — status codes, envelopes, error bodies
    • GET /api/v1/search           — argument check, raw passthrough
    • GET /api/v1/health           — 200 ok / 503 degraded

Run with:
    pytest tests/test_api.py -v
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from backend.app.clients.repository import ClientRepository
from backend.app.main import create_app

from tests.fakes import (
    FakeProducer,
    FakeSearch,
    InMemoryClientRepository,
    make_dependencies,
)


def _payload(**overrides) -> dict:
    body = {
        "full_name": "Anna Petrova",
        "phone": "+79161234567",
        "email": "anna.petrova@mail.com",
        "advertising_channel": "instagram",
        "specialist_id": 7,
        "meeting_place": "Main office",
        "occupation": "Teacher",
        "gender": "female",
        "age": 34,
        "reason_for_visit": "Back pain",
        "specialist_notes": "Prefers mornings",
    }
    body.update(overrides)
    return body


def _client(deps) -> TestClient:
    return TestClient(create_app(deps))


def _sqlite_repository() -> ClientRepository:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return ClientRepository(engine)


class TestCreateClient:

    def test_created(self, deps):
        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=_payload())

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Client created successfully"
        assert body["client"]["id"] == 1
        assert body["client"]["email"] == "anna.petrova@mail.com"
        assert body["client"]["specialist_notes"] == "Prefers mornings"

    def test_notification_sent_after_create(self):
        producer = FakeProducer()
        deps = make_dependencies(queue=producer)

        with _client(deps) as client:
            client.post("/api/v1/clients", json=_payload(email="ivan@mail.com"))

        assert producer.sent == [("client-created", "ivan@mail.com")]

    def test_queue_outage_does_not_fail_create(self):
        deps = make_dependencies(queue=FakeProducer(fail=True))

        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=_payload())

        assert resp.status_code == 201

    def test_missing_required_field(self, deps):
        body = _payload()
        del body["reason_for_visit"]

        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=body)

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
        assert deps.repository.records == {}

    def test_malformed_email(self, deps):
        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=_payload(email="anna-at-mail"))

        assert resp.status_code == 400
        fields = resp.json()["error"]["details"]["fields"]
        assert any(f["field"] == "email" for f in fields)

    def test_zero_age(self, deps):
        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=_payload(age=0))

        assert resp.status_code == 400

    def test_email_stored_exactly_as_sent(self, deps):
        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=_payload(email="Anna.Petrova@MAIL.COM"))

        assert resp.status_code == 201
        assert resp.json()["client"]["email"] == "Anna.Petrova@MAIL.COM"
        assert deps.repository.records[1].email == "Anna.Petrova@MAIL.COM"
        assert deps.queue.sent == [("client-created", "Anna.Petrova@MAIL.COM")]

    def test_display_name_email_rejected(self, deps):
        with _client(deps) as client:
            resp = client.post(
                "/api/v1/clients", json=_payload(email="Anna <anna.petrova@mail.com>"),
            )

        assert resp.status_code == 400
        assert deps.repository.records == {}

    def test_whitespace_name_rejected_by_service(self, deps):
        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=_payload(full_name="  "))

        assert resp.status_code == 400
        assert resp.json()["error"]["details"]["field"] == "full_name"

    def test_storage_failure_is_opaque(self):
        deps = make_dependencies(repository=InMemoryClientRepository(fail=True))

        with _client(deps) as client:
            resp = client.post("/api/v1/clients", json=_payload())

        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "STORAGE_ERROR"
        assert error["message"] == "Failed to create client"
        assert "connection reset" not in resp.text


class TestGetClient:

    def test_existing(self, deps):
        with _client(deps) as client:
            created = client.post("/api/v1/clients", json=_payload()).json()["client"]
            resp = client.get(f"/api/v1/clients/{created['id']}")

        assert resp.status_code == 200
        assert resp.json()["full_name"] == "Anna Petrova"

    def test_missing(self, deps):
        with _client(deps) as client:
            resp = client.get("/api/v1/clients/999")

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    def test_non_numeric_id(self, deps):
        with _client(deps) as client:
            resp = client.get("/api/v1/clients/abc")

        assert resp.status_code == 404

    @pytest.mark.parametrize("client_id", ["99999999999999999999999", "2147483648", "0"])
    def test_out_of_range_id_on_database(self, client_id):
        deps = make_dependencies(repository=_sqlite_repository())

        with _client(deps) as client:
            client.portal.call(deps.repository.init_schema)
            fetched = client.get(f"/api/v1/clients/{client_id}")
            replaced = client.put(f"/api/v1/clients/{client_id}", json=_payload())

        assert fetched.status_code == 404
        assert fetched.json()["error"]["code"] == "NOT_FOUND"
        assert replaced.status_code == 404

    def test_storage_failure(self):
        deps = make_dependencies(repository=InMemoryClientRepository(fail=True))

        with _client(deps) as client:
            resp = client.get("/api/v1/clients/1")

        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "STORAGE_ERROR"


class TestUpdateClient:

    def test_full_replacement(self, deps):
        with _client(deps) as client:
            created = client.post("/api/v1/clients", json=_payload()).json()["client"]
            replacement = _payload(full_name="Anna Sidorova", age=35)
            del replacement["specialist_notes"]
            del replacement["advertising_channel"]
            resp = client.put(f"/api/v1/clients/{created['id']}", json=replacement)

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Client updated successfully"
        assert body["client"]["full_name"] == "Anna Sidorova"
        assert body["client"]["specialist_notes"] == ""
        assert body["client"]["advertising_channel"] == ""

    def test_missing(self, deps):
        with _client(deps) as client:
            resp = client.put("/api/v1/clients/42", json=_payload())

        assert resp.status_code == 404

    def test_invalid_body(self, deps):
        with _client(deps) as client:
            created = client.post("/api/v1/clients", json=_payload()).json()["client"]
            resp = client.put(f"/api/v1/clients/{created['id']}", json=_payload(phone=""))

        assert resp.status_code == 400
        assert deps.repository.records[created["id"]].phone == "+79161234567"


class TestSearch:

    def test_missing_query(self, deps):
        with _client(deps) as client:
            resp = client.get("/api/v1/search")

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_ARGUMENT"
        assert deps.search.calls == []

    def test_raw_body_passthrough(self):
        raw = b'{"took":3,"hits":{"total":{"value":1},"hits":[{"_id":"1"}]}}'
        deps = make_dependencies(search=FakeSearch(body=raw))

        with _client(deps) as client:
            resp = client.get("/api/v1/search", params={"q": "full_name:Anna"})

        assert resp.status_code == 200
        assert resp.content == raw
        assert resp.headers["content-type"].startswith("application/json")
        assert deps.search.calls == [("clients", "full_name:Anna")]

    def test_backend_failure(self):
        deps = make_dependencies(search=FakeSearch(fail=True))

        with _client(deps) as client:
            resp = client.get("/api/v1/search", params={"q": "Anna"})

        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "SEARCH_ERROR"


class TestHealth:

    def test_all_available(self, deps):
        with _client(deps) as client:
            resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["details"] == {
            "cache": "available",
            "queue": "available",
            "search": "available",
            "storage": "available",
        }

    def test_degraded(self):
        deps = make_dependencies(search=FakeSearch(fail=True))

        with _client(deps) as client:
            resp = client.get("/api/v1/health")

        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["details"]["search"] == "unavailable"
        assert body["details"]["storage"] == "available"

    def test_liveness(self, deps):
        with _client(deps) as client:
            resp = client.get("/health/live")

        assert resp.json() == {"status": "alive"}

    def test_request_id_echoed(self, deps):
        with _client(deps) as client:
            resp = client.get("/health/live", headers={"X-Request-ID": "abc123"})

        assert resp.headers["X-Request-ID"] == "abc123"

    def test_unsafe_request_id_replaced(self, deps):
        with _client(deps) as client:
            resp = client.get("/health/live", headers={"X-Request-ID": "bad/id" * 20})

        assert resp.headers["X-Request-ID"] != "bad/id" * 20
        assert len(resp.headers["X-Request-ID"]) == 16
