"""Integration tests for FastAPI API endpoints via TestClient."""

import pytest
from fastapi.testclient import TestClient

from contract_intel.api.dependencies import build_services
from contract_intel.api.main import create_app
from contract_intel.storage.memory import InMemoryContractStore


@pytest.fixture
def make_client(settings, make_llm, all_responses):
    """TestClient over an app wired with an in-memory store and a scripted LLM."""
    clients = []

    def _make(llm=None):
        services = build_services(
            settings,
            store=InMemoryContractStore(),
            llm=llm or make_llm(all_responses),
        )
        client = TestClient(create_app(services=services))
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


def upload(client, text, title=None, filename="msa.txt", content_type="text/plain"):
    data = {"title": title} if title else {}
    return client.post(
        "/api/contracts/upload",
        files={"contract": (filename, text.encode("utf-8"), content_type)},
        data=data,
    )


class TestHealthEndpoints:

    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"]
        assert body["data"]["name"] == "Contract Intelligence API"
        assert body["data"]["endpoints"]["contracts"] == "/api/contracts"

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "healthy"
        assert data["ai_enabled"] is True
        assert data["email_enabled"] is False


class TestUpload:

    def test_upload_text(self, client, sample_contract_text, settings):
        resp = upload(client, sample_contract_text, title="Acme MSA")

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["title"] == "Acme MSA"
        assert data["status"] == "pending"
        assert data["file_type"] == "text"
        assert data["raw_text"] == sample_contract_text
        assert len(list(settings.upload_dir.iterdir())) == 1

    def test_title_defaults_to_filename(self, client, sample_contract_text):
        resp = upload(client, sample_contract_text, filename="beta.txt")
        assert resp.json()["data"]["title"] == "beta.txt"

    def test_rejects_mime_type(self, client):
        resp = upload(client, "hello", filename="scan.png", content_type="image/png")
        assert resp.status_code == 400
        body = resp.json()
        assert not body["ok"]
        assert "Invalid file type" in body["error"]

    def test_rejects_oversized_file(self, client, settings):
        settings.max_file_size = 10
        resp = upload(client, "x" * 11)
        assert resp.status_code == 400
        assert "File too large" in resp.json()["error"]

    def test_empty_file_removed(self, client, settings):
        resp = upload(client, "   \n")
        assert resp.status_code == 400
        assert "Could not extract text" in resp.json()["error"]
        assert list(settings.upload_dir.iterdir()) == []

    def test_store_failure_removes_file(self, settings, make_llm, all_responses, sample_contract_text):
        class BrokenStore(InMemoryContractStore):
            async def create(self, record):
                raise RuntimeError("disk full")

        services = build_services(settings, store=BrokenStore(), llm=make_llm(all_responses))
        with TestClient(create_app(services=services), raise_server_exceptions=False) as broken:
            resp = upload(broken, sample_contract_text)

        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "Internal server error"}
        assert list(settings.upload_dir.iterdir()) == []

    def test_missing_file_field(self, client):
        resp = client.post("/api/contracts/upload", data={"title": "No file"})
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Validation failed")


class TestAnalyze:

    def test_full_analysis(self, client, sample_contract_text):
        contract_id = upload(client, sample_contract_text, title="Acme MSA").json()["data"]["id"]

        resp = client.post(f"/api/contracts/{contract_id}/analyze")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "analyzed"
        assert data["risk_level"] == "high"
        assert data["compliance_score"] == 72
        assert data["pricing_analysis"]["market_position"] == "favorable"
        assert [p["name"] for p in data["parties"]] == ["Acme Software Inc.", "Beta Retail LLC"]
        assert data["financial_terms"][0]["amount"] == 50000
        assert data["ai_confidence_score"] == pytest.approx(0.75)
        assert data["error_count"] == 0

    def test_similar_contracts_linked(self, client, sample_contract_text):
        first = upload(client, sample_contract_text, title="First").json()["data"]["id"]
        second = upload(client, sample_contract_text, title="Second").json()["data"]["id"]

        data = client.post(f"/api/contracts/{second}/analyze").json()["data"]

        assert len(data["similar_contracts"]) == 1
        assert data["similar_contracts"][0]["contract_id"] == first
        assert data["similar_contracts"][0]["similarity"] > 0.3
        assert "payment" in data["similar_contracts"][0]["matched_features"]

    def test_ai_unavailable_fails_run(self, make_client, make_llm, sample_contract_text):
        client = make_client(make_llm(available=False))
        contract_id = upload(client, sample_contract_text).json()["data"]["id"]

        resp = client.post(f"/api/contracts/{contract_id}/analyze")

        assert resp.status_code == 400
        body = resp.json()
        assert not body["ok"]
        assert "AI service" in body["error"]
        assert body["data"]["status"] == "failed"
        assert body["data"]["error_count"] == 1

    def test_analyze_unknown(self, client):
        resp = client.post("/api/contracts/nope/analyze")
        assert resp.status_code == 404
        assert resp.json() == {"ok": False, "error": "Contract not found: nope"}


class TestContractEndpoints:

    def test_list_and_get(self, client, sample_contract_text):
        first = upload(client, sample_contract_text, title="First").json()["data"]["id"]
        second = upload(client, sample_contract_text, title="Second").json()["data"]["id"]
        client.post(f"/api/contracts/{first}/analyze")

        listed = client.get("/api/contracts").json()["data"]
        assert {c["id"] for c in listed} == {first, second}

        high = client.get("/api/contracts", params={"riskLevel": "high"}).json()["data"]
        assert [c["id"] for c in high] == [first]

        pending = client.get("/api/contracts", params={"status": "pending"}).json()["data"]
        assert [c["id"] for c in pending] == [second]

        got = client.get(f"/api/contracts/{second}").json()["data"]
        assert got["title"] == "Second"

    def test_list_rejects_bad_limit(self, client):
        resp = client.get("/api/contracts", params={"limit": 0})
        assert resp.status_code == 400

    def test_get_unknown(self, client):
        resp = client.get("/api/contracts/missing")
        assert resp.status_code == 404
        assert not resp.json()["ok"]

    def test_delete(self, client, sample_contract_text, settings):
        contract_id = upload(client, sample_contract_text).json()["data"]["id"]

        resp = client.delete(f"/api/contracts/{contract_id}")

        assert resp.status_code == 200
        assert resp.json()["data"]["deleted"]
        assert resp.json()["data"]["file_deleted"]
        assert list(settings.upload_dir.iterdir()) == []
        assert client.get(f"/api/contracts/{contract_id}").status_code == 404


class TestDashboard:

    def test_stats_and_deadlines(self, client, sample_contract_text):
        contract_id = upload(client, sample_contract_text, title="Acme MSA").json()["data"]["id"]
        upload(client, sample_contract_text, title="Unanalyzed")
        client.post(f"/api/contracts/{contract_id}/analyze")

        stats = client.get("/api/contracts/stats/dashboard").json()["data"]
        assert stats == {
            "total_contracts": 2,
            "analyzed_contracts": 1,
            "high_risk_contracts": 1,
            "avg_compliance_score": 72.0,
            "upcoming_deadlines": 1,
        }

        deadlines = client.get("/api/contracts/deadlines/upcoming").json()["data"]
        assert len(deadlines) == 1
        assert deadlines[0]["contract_title"] == "Acme MSA"
        assert deadlines[0]["date_type"] == "renewal"
