from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import bureau_intake.main as main_module
from bureau_intake.errors import DataStoreError
from bureau_intake.intake import IntakeService


class FakeStore:
    def __init__(self, fail_tables: set[str] | None = None) -> None:
        self.rows: list[tuple[str, dict]] = []
        self.fail_tables = fail_tables or set()

    async def insert_row(self, table: str, row: dict) -> dict:
        if table in self.fail_tables:
            raise DataStoreError(message=f'relation "public.{table}" does not exist')
        self.rows.append((table, row))
        return {"id": f"{table}-{len(self.rows)}", **row}


@pytest.fixture()
def store():
    return FakeStore()


@pytest.fixture()
def api_client(store):
    main_module.app.dependency_overrides[main_module.get_intake_service] = lambda: IntakeService(store)
    try:
        with TestClient(main_module.app) as client:
            yield client
    finally:
        main_module.app.dependency_overrides.clear()


def test_get_returns_hint(api_client):
    response = api_client.get("/api/intake")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "hint": "Send POST with JSON body"}


def test_health_and_landing_page(api_client):
    assert api_client.get("/api/health").json() == {"ok": True}

    landing = api_client.get("/")
    assert landing.status_code == 200
    assert "/api/intake" in landing.text


def test_post_creates_client(api_client, store):
    response = api_client.post(
        "/api/intake",
        json={"submission": {"questions": [
            {"name": "Contact Email", "value": "a@b.com"},
            {"name": "Legal Business Name", "value": "Acme LLC"},
            {"name": "Package", "value": "pro"},
        ]}},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "client_id": "clients-1"}
    assert store.rows == [("clients", {"email": "a@b.com", "legal_name": "Acme LLC", "tier": "Premium"})]


def test_post_without_email_or_name_names_email(api_client, store):
    response = api_client.post("/api/intake", json={"answers": [{"label": "Notes", "value": "hello"}]})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Missing required field: email"}
    assert store.rows == []


def test_post_without_legal_name(api_client):
    response = api_client.post("/api/intake", json={"email": "a@b.com"})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required field: legal_name"


def test_post_rejects_invalid_json(api_client):
    response = api_client.post(
        "/api/intake",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid JSON payload"}


def test_post_rejects_non_object_json(api_client):
    response = api_client.post("/api/intake", json=["a@b.com"])

    assert response.status_code == 400
    assert response.json()["error"] == "Webhook payload must be a JSON object"


def test_post_rejects_oversized_body(api_client, monkeypatch):
    monkeypatch.setattr(main_module.settings, "INTAKE_MAX_BODY_BYTES", 16)

    response = api_client.post("/api/intake", json={"email": "a@b.com", "legal_name": "Acme LLC"})

    assert response.status_code == 413
    assert response.json() == {"ok": False, "error": "Payload too large"}


def test_post_rejects_oversized_chunked_body(api_client, monkeypatch, store):
    monkeypatch.setattr(main_module.settings, "INTAKE_MAX_BODY_BYTES", 16)

    response = api_client.post(
        "/api/intake",
        content=iter([b'{"email": "a@b.com", ', b'"legal_name": "Acme LLC"}']),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 413
    assert response.json() == {"ok": False, "error": "Payload too large"}
    assert store.rows == []


def test_client_insert_failure_returns_500_with_store_message(api_client, store):
    store.fail_tables.add("clients")

    response = api_client.post("/api/intake", json={"email": "a@b.com", "legal_name": "Acme LLC"})

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": 'relation "public.clients" does not exist'}


def test_brand_kit_failure_still_succeeds(api_client, store):
    store.fail_tables.add("brand_kits")

    response = api_client.post(
        "/api/intake",
        json={"email": "a@b.com", "legal_name": "Acme LLC", "primary_color": "#000000"},
    )

    assert response.status_code == 200
    assert response.json()["client_id"] == "clients-1"


def test_unexpected_error_returns_generic_500(api_client):
    class ExplodingService:
        async def process(self, payload):
            raise KeyError("boom")

    main_module.app.dependency_overrides[main_module.get_intake_service] = lambda: ExplodingService()

    response = api_client.post("/api/intake", json={"email": "a@b.com", "legal_name": "Acme LLC"})

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Internal server error"}


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "PURGE"])
def test_other_methods_are_rejected(api_client, method):
    response = api_client.request(method, "/api/intake")

    assert response.status_code == 405
    assert response.headers["allow"] == "GET, POST"
    assert response.json() == {"ok": False, "error": "Method not allowed"}


def test_missing_configuration_returns_500(monkeypatch):
    monkeypatch.setattr(main_module.settings, "INTAKE_DATASTORE_SERVICE_KEY", None)
    main_module.get_intake_service.cache_clear()
    try:
        with TestClient(main_module.app) as client:
            response = client.post("/api/intake", json={"email": "a@b.com", "legal_name": "Acme LLC"})
    finally:
        main_module.get_intake_service.cache_clear()

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Missing env var: INTAKE_DATASTORE_SERVICE_KEY"}


def test_head_on_intake_is_rejected(api_client):
    response = api_client.head("/api/intake")

    assert response.status_code == 405
    assert response.headers["allow"] == "GET, POST"


def test_unknown_route_keeps_default_not_found(api_client):
    response = api_client.get("/api/missing")

    assert response.status_code == 404
