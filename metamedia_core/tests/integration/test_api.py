"""
METAMEDIA CORE — Integration Tests for the HTTP API
The app runs its real lifespan against a scripted upstream.
"""
import time

import pytest
from fastapi.testclient import TestClient

import metamedia_core.chat.session as session_module
import metamedia_core.data.acquisition as acquisition_module
import metamedia_core.engines.orchestrator as orchestrator_module
from metamedia_core.api.app import app
from metamedia_core.chat.session import GREETING, ConversationSession
from metamedia_core.engines.orchestrator import RefreshOrchestrator


@pytest.fixture
def client(monkeypatch, fake_adapter, acquisition_client, fast_refresh):
    orchestrator = RefreshOrchestrator(acquisition_client, fast_refresh)
    monkeypatch.setattr(acquisition_module, "_client", acquisition_client)
    monkeypatch.setattr(orchestrator_module, "_orchestrator", orchestrator)
    monkeypatch.setattr(session_module, "_session", ConversationSession(fake_adapter))
    with TestClient(app) as test_client:
        yield test_client


def wait_for_records(client: TestClient, domain: str, timeout: float = 2.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        view = client.get(f"/api/v1/domains/{domain}").json()
        if view["records"] or time.monotonic() > deadline:
            return view
        time.sleep(0.02)


# ─── System Endpoints ───────────────────────────────────────────

class TestSystemEndpoints:
    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime_since"] is not None

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        data = response.json()
        assert data["app"]["name"] == "METAMEDIA CORE"
        assert data["components"]["parsers_registered"] == 5
        assert data["components"]["acquisition"]["adapter"] == "fake"
        assert data["components"]["orchestrator"]["started"] is True
        assert data["components"]["chat"]["state"] == "IDLE"


# ─── Dashboard Endpoints ────────────────────────────────────────

class TestDashboardEndpoints:
    def test_categories(self, client):
        data = client.get("/api/v1/categories").json()
        assert data["categories"][0] == "MARKETS"
        assert len(data["categories"]) == 7

    def test_startup_populates_ticker(self, client):
        view = wait_for_records(client, "ticker")
        assert [t["symbol"] for t in view["records"]] == ["BTC", "ETH"]
        assert view["records"][0]["is_positive"] is True

    def test_initial_category_load(self, client):
        view = wait_for_records(client, "news")
        assert {s["category"] for s in view["records"]} == {"MARKETS"}
        assert view["sources"][0]["uri"] == "https://coindesk.example/markets"

    def test_dashboard(self, client):
        data = client.get("/api/v1/dashboard").json()
        assert data["active_category"] == "MARKETS"
        assert set(data["domains"]) == {"ticker", "macro", "news", "social", "events"}
        assert len(data["nodes"]) == 3

    def test_unknown_domain(self, client):
        assert client.get("/api/v1/domains/weather").status_code == 404

    def test_set_category(self, client):
        response = client.post("/api/v1/category", json={"category": "DEFI"})
        assert response.status_code == 200
        assert response.json()["active_category"] == "DEFI"
        assert client.get("/api/v1/dashboard").json()["active_category"] == "DEFI"

    def test_set_invalid_category(self, client):
        assert client.post("/api/v1/category", json={"category": "WEATHER"}).status_code == 422

    def test_manual_resync(self, client):
        wait_for_records(client, "news")
        data = client.post("/api/v1/resync").json()
        assert data["triggered"] is True
        assert data["dashboard"]["error"] is None
        assert data["dashboard"]["last_sync_time"] != "NEVER"

    def test_auto_refresh_toggle(self, client):
        data = client.post("/api/v1/social/auto-refresh", json={"enabled": False}).json()
        assert data["auto_refresh_social"] is False

    def test_social_search(self, client, fake_adapter):
        data = client.post("/api/v1/social/search", json={"query": "ethereum"}).json()
        assert [p["handle"] for p in data["records"]] == ["@analyst", "@bear"]
        assert any("ethereum" in c["prompt"] for c in fake_adapter.calls)


# ─── Chat Endpoints ─────────────────────────────────────────────

class TestChatEndpoints:
    def test_transcript_starts_with_greeting(self, client):
        data = client.get("/api/v1/chat").json()
        assert data["state"] == "IDLE"
        assert data["turns"][0]["text"] == GREETING

    def test_send_message(self, client):
        response = client.post("/api/v1/chat", json={"message": "Status report"})
        assert response.status_code == 200
        data = response.json()
        assert data["reply"]["role"] == "model"
        assert data["reply"]["text"] == "Standing by."
        assert len(client.get("/api/v1/chat").json()["turns"]) == 3

    def test_blank_message_rejected(self, client):
        assert client.post("/api/v1/chat", json={"message": "  "}).status_code == 409
