"""API tests for the admin storage summary endpoint."""

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.rate_limit import limiter
from app.main import app
from app.storage.dependencies import get_record_store, get_storage_backend
from tests.utils.fakes import FakeRecordStore, FakeStorage, dir_entry, file_entry, rows_of_size

SUMMARY_URL = "/api/admin/storage/summary"
ADMIN_AUTH = ("admin", "test-pass")


@pytest.fixture
def record_store():
    return FakeRecordStore(
        rows=rows_of_size(10, 1000),
        count=10,
        with_photo_count=2,
        rpc_result=5_000_000,
    )


@pytest.fixture
def storage():
    return FakeStorage(
        {
            "": [dir_entry("2024")],
            "2024": [file_entry("a.jpg", 300), file_entry("b.jpg", 700)],
        }
    )


@pytest.fixture
def client(record_store, storage):
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_storage_backend] = lambda: storage
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestStorageSummaryEndpoint:
    def test_requires_credentials(self, client):
        response = client.get(SUMMARY_URL)

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == 'Basic realm="admin-api"'

    def test_rejects_wrong_password(self, client):
        response = client.get(SUMMARY_URL, auth=("admin", "wrong"))

        assert response.status_code == 401
        assert response.json()["detail"] == "Credenciales invalidas"

    def test_returns_summary(self, client):
        response = client.get(SUMMARY_URL, auth=ADMIN_AUTH)

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["bucket"] == "fotos-activaciones"
        assert summary["activations_count"] == 10
        assert summary["activations_with_photo_count"] == 2
        assert summary["storage_objects_count"] == 2
        assert summary["storage_used_bytes"] == 1000
        assert summary["storage_limit_source"] == "supabase_free_default"
        assert summary["database_size_bytes"] == 5_000_000
        assert summary["database_size_source"] == "rpc:get_database_size_bytes"
        assert summary["database_estimation"]["per_row_estimated_bytes"] == 1340
        assert summary["plan_reference"]["name"] == "Supabase Free"

        combined = summary["combined_capacity_estimation"]
        assert combined["one_attachment_per_unit_assumed"] is True
        assert combined["average_attachment_bytes"] == 500
        assert combined["limiting_factor"] in ("storage", "database")
        assert combined["estimated_remaining"] == min(
            combined["remaining_by_storage"], combined["remaining_by_database"]
        )

    def test_degraded_database_figures_still_succeed(self, client, record_store):
        record_store.failures["rpc"] = "permission denied"
        record_store.failures["sample"] = "permission denied"

        response = client.get(SUMMARY_URL, auth=ADMIN_AUTH)

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["database_size_bytes"] is None
        assert summary["database_size_unavailable_reason"] == "permission denied"
        assert summary["database_estimation"] is None
        assert summary["database_estimation_unavailable_reason"] == "permission denied"
        assert summary["combined_capacity_estimation"]["limiting_factor"] == "storage"

    def test_bucket_failure_is_bad_gateway(self, client, storage):
        storage.fail_on["2024"] = RuntimeError("Bucket not found")

        response = client.get(SUMMARY_URL, auth=ADMIN_AUTH)

        assert response.status_code == 502
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "STORAGE_LIST_ERROR"
        assert body["error"]["message"] == "No se pudo calcular uso del bucket de fotos"
        assert body["error"]["details"]["reason"] == "Bucket not found"

    def test_count_failure_is_bad_gateway(self, client, record_store):
        record_store.failures["count"] = "connection refused"

        response = client.get(SUMMARY_URL, auth=ADMIN_AUTH)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "RECORD_COUNT_ERROR"


class TestHealth:
    def test_public_health(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_admin_health_requires_auth(self, client):
        assert client.get("/api/admin/healthz").status_code == 401

    def test_admin_health_returns_user(self, client):
        response = client.get("/api/admin/healthz", auth=ADMIN_AUTH)

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "user": "admin"}

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


class TestRateLimit:
    @pytest.fixture
    def enabled_limiter(self, monkeypatch):
        monkeypatch.setattr(limiter, "enabled", True)
        limiter.reset()
        yield limiter
        limiter.reset()

    def test_summary_is_rate_limited(self, client, enabled_limiter):
        allowed = int(settings.ADMIN_SUMMARY_RATE_LIMIT.split("/")[0])

        for _ in range(allowed):
            assert client.get(SUMMARY_URL, auth=ADMIN_AUTH).status_code == 200

        assert client.get(SUMMARY_URL, auth=ADMIN_AUTH).status_code == 429

    def test_health_is_not_rate_limited(self, client, enabled_limiter):
        allowed = int(settings.ADMIN_SUMMARY_RATE_LIMIT.split("/")[0])

        for _ in range(allowed + 1):
            assert client.get("/healthz").status_code == 200
