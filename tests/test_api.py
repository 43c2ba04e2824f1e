from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from storebot.application.ports.llm import LLMCompletion, LLMPort
from storebot.application.use_cases.classify_message import ClassifyMessageUseCase
from storebot.application.use_cases.direct_call import DirectCallRouter
from storebot.application.use_cases.handle_chat_message import HandleChatMessageUseCase
from storebot.application.use_cases.reply_composer import ReplyComposer
from storebot.infrastructure.telemetry.debug_recorder import DebugRecorder
from storebot.main import app
from storebot.wiring.dependencies import get_chat_use_case, get_data_gateway, get_debug_recorder

from conftest import STORE


class _ProductsLLM(LLMPort):
    def complete_json(self, prompt: str, request_id: str | None = None) -> LLMCompletion:
        return LLMCompletion(text=json.dumps({"function_to_call": "get_products", "extracted_params": {}}))


@pytest.fixture
def client(executor, gateway):
    recorder = DebugRecorder()
    uc = HandleChatMessageUseCase(
        classifier=ClassifyMessageUseCase(llm=_ProductsLLM()),
        executor=executor,
        router=DirectCallRouter(),
        composer=ReplyComposer(),
        recorder=recorder,
    )
    app.dependency_overrides[get_chat_use_case] = lambda: uc
    app.dependency_overrides[get_data_gateway] = lambda: gateway
    app.dependency_overrides[get_debug_recorder] = lambda: recorder
    try:
        yield TestClient(app), recorder
    finally:
        app.dependency_overrides.clear()


def test_health():
    """Test that the health endpoint answers ok."""
    assert TestClient(app).get("/health").json() == {"status": "ok"}


def test_chat_runs_classified_function(client):
    """Test that /chat runs the classified function and composes its reply."""
    http, _ = client
    resp = http.post(
        "/api/v1/chat",
        json={"store_id": STORE, "message": "show me products", "history": [{"role": "user", "content": "hi"}]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["function_called"] == "get_products"
    assert body["result"]["success"] is True
    assert body["text"] == "Here are 2 products:"
    assert body["components"][0]["type"] == "products"


def test_direct_booking_scenario(client):
    """Test that a direct booking succeeds once and the same slot is then NotAvailable."""
    http, _ = client
    data = {
        "serviceName": "Haircut",
        "date": "2025-03-11",
        "time": "09:00",
        "customerName": "Ana",
        "customerEmail": "ana@example.com",
    }

    first = http.post("/api/v1/direct", json={"store_id": STORE, "action": "confirm_booking", "data": data}).json()
    second = http.post("/api/v1/direct", json={"store_id": STORE, "action": "confirm_booking", "data": data}).json()

    assert first["result"]["success"] is True
    assert first["result"]["data"]["booking"]["status"] == "confirmed"
    assert first["display_text"] == "Book Haircut on 2025-03-11 at 09:00"
    assert second["result"]["success"] is False
    assert "NotAvailable" in second["result"]["error"]
    assert second["text"].startswith("Sorry, 09:00 on 2025-03-11 is already booked.")


def test_direct_unknown_action_is_400(client):
    """Test that an unmapped UI action is rejected with 400."""
    http, _ = client
    resp = http.post("/api/v1/direct", json={"store_id": STORE, "action": "launch_rocket", "data": {}})

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["error_kind"] == "UnknownFunction"


def test_debug_requests_lists_recent_turns(client):
    """Test that handled turns are listed and fetchable by id."""
    http, recorder = client
    http.post("/api/v1/chat", json={"store_id": STORE, "message": "products please"})
    assert recorder.flush()

    body = http.get("/api/v1/debug/requests").json()
    assert body["requests"][0]["user_message"] == "products please"
    assert body["requests"][0]["status"] == "complete"

    request_id = body["requests"][0]["id"]
    assert http.get(f"/api/v1/debug/requests/{request_id}").status_code == 200
    assert http.get("/api/v1/debug/requests/missing").status_code == 404


def test_cache_stats_and_clear(client):
    """Test that cached tabs show in stats and disappear after clear."""
    http, _ = client
    http.post("/api/v1/direct", json={"store_id": STORE, "action": "view_services", "data": {}})

    stats = http.get(f"/api/v1/cache/{STORE}/stats").json()
    assert stats["tabs"]["services"]["rows"] == 3

    cleared = http.delete(f"/api/v1/cache/{STORE}").json()
    assert cleared["removed"] >= 1
    assert http.get(f"/api/v1/cache/{STORE}/stats").json()["tabs"] == {}


def test_cache_stats_rejects_unknown_cache_type(client):
    """Test that an unknown cache_type is a 400."""
    http, _ = client
    assert http.get(f"/api/v1/cache/{STORE}/stats", params={"cache_type": "redis"}).status_code == 400


def test_chat_rejects_empty_message(client):
    """Test that an empty message fails request validation."""
    http, _ = client
    assert http.post("/api/v1/chat", json={"store_id": STORE, "message": ""}).status_code == 422


def test_precache_warms_store_and_shows_in_stats(client):
    """Test that POST precache reads the core tabs and they then appear in cache stats."""
    http, _ = client
    body = http.post(f"/api/v1/cache/{STORE}/precache").json()

    assert body["rows"] == {"services": 3, "products": 2, "hours": 2}
    assert body["failed"] == {}
    stats = http.get(f"/api/v1/cache/{STORE}/stats", params={"cache_type": "memory"}).json()
    assert set(stats["tabs"]) == {"services", "products", "hours"}


def test_precache_rejects_unknown_cache_type(client):
    """Test that an unknown cache_type is a 400 for precache too."""
    http, _ = client
    assert http.post(f"/api/v1/cache/{STORE}/precache", params={"cache_type": "redis"}).status_code == 400
