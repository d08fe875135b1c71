from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app
from config.settings import get_settings
from counsel.completion import CompletionError, CompletionResult
from counsel.core.prompt import FINDER_PROMPT, LISA_PROMPT, SEARCH_DIRECTIVE
from conftest import make_settings


ATTORNEYS = "- **Jane Roe** \n  - **Phone:** 555-0100"


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}


def test_chatbot_ready_conversation(api, fake_client):
    fake_client.results = [
        CompletionResult(
            content=ATTORNEYS,
            annotations=[{"type": "url_citation", "url": "https://roe.example"}],
            usage={"total_tokens": 10},
        )
    ]
    resp = api.post(
        "/api/chatbot",
        json={
            "messages": [
                {"role": "assistant", "content": "Hello! What legal issue are you facing?"},
                {"role": "user", "content": "I need help with a divorce"},
                {"role": "user", "content": "I live in Austin, TX"},
            ]
        },
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == ATTORNEYS
    assert body["annotations"] == [{"type": "url_citation", "url": "https://roe.example"}]
    assert body["searchTriggered"] is True
    assert body["usage"] == {"total_tokens": 10}
    assert body["timestamp"]

    (call,) = fake_client.calls
    assert call["max_tokens"] == 2000
    assert call["messages"][0] == {"role": "system", "content": f"{FINDER_PROMPT}\n\n{SEARCH_DIRECTIVE}"}
    assert [m["content"] for m in call["messages"][1:]] == [
        "Hello! What legal issue are you facing?",
        "I need help with a divorce",
        "I live in Austin, TX",
    ]


def test_chatbot_not_ready_uses_baseline(api, fake_client):
    resp = api.post("/api/chatbot", json={"messages": [{"role": "user", "content": "I need help with a divorce"}]})

    assert resp.status_code == 200
    assert resp.json()["searchTriggered"] is False
    (call,) = fake_client.calls
    assert call["messages"][0] == {"role": "system", "content": FINDER_PROMPT}


def test_chatbot_missing_messages_is_rejected(api, fake_client):
    resp = api.post("/api/chatbot", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid messages format"}
    assert fake_client.calls == []


def test_chatbot_non_list_messages_is_rejected(api, fake_client):
    resp = api.post("/api/chatbot", json={"messages": "divorce in Austin, TX"})
    assert resp.status_code == 400
    assert fake_client.calls == []


def test_chatbot_bad_role_is_rejected(api, fake_client):
    resp = api.post("/api/chatbot", json={"messages": [{"role": "tool", "content": "x"}]})
    assert resp.status_code == 400
    assert fake_client.calls == []


def test_chatbot_provider_failure(api, fake_client):
    fake_client.results = [CompletionError("Completion API call failed: quota exceeded")]
    resp = api.post("/api/chatbot", json={"messages": [{"role": "user", "content": "hi"}]})

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "An unexpected error occurred. Please try again."
    assert body["details"] == "Completion API call failed: quota exceeded"


def test_chatbot_failure_details_hidden_outside_development(api, fake_client, settings):
    settings.app_env = "production"
    fake_client.results = [CompletionError("boom")]
    resp = api.post("/api/chatbot", json={"messages": [{"role": "user", "content": "hi"}]})
    assert resp.status_code == 500
    assert resp.json()["details"] is None


def test_missing_api_key():
    app.dependency_overrides[get_settings] = lambda: make_settings(openai_api_key=None)
    try:
        with TestClient(app) as client:
            for path in ("/api/chatbot", "/api/lisa"):
                resp = client.post(path, json={"messages": [{"role": "user", "content": "hi"}]})
                assert resp.status_code == 500
                assert resp.json() == {"error": "OpenAI API key not configured"}

            for path in ("/api/chatbot", "/api/lisa"):
                resp = client.get(path)
                assert resp.status_code == 500
                body = resp.json()
                assert body["status"] == "error"
                assert body["message"] == "OpenAI API key not configured"
    finally:
        app.dependency_overrides.clear()


def test_lisa_missing_messages_is_rejected(api, fake_client):
    resp = api.post("/api/lisa", json={"prompt": "Write an email."})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid messages format"}
    assert fake_client.calls == []


def test_lisa_non_list_messages_is_rejected(api, fake_client):
    resp = api.post("/api/lisa", json={"messages": {"role": "user", "content": "transcript"}})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid messages format"}
    assert fake_client.calls == []


def test_lisa_uses_default_prompt_and_latest_user_turn(api, fake_client):
    resp = api.post(
        "/api/lisa",
        json={
            "messages": [
                {"role": "user", "content": "old transcript"},
                {"role": "assistant", "content": "old email"},
                {"role": "user", "content": "new transcript"},
            ]
        },
    )

    assert resp.status_code == 200
    (call,) = fake_client.calls
    assert call["max_tokens"] == 3000
    assert call["messages"] == [
        {"role": "system", "content": LISA_PROMPT},
        {"role": "user", "content": "new transcript"},
    ]


def test_lisa_custom_prompt(api, fake_client):
    resp = api.post(
        "/api/lisa",
        json={"prompt": "Write an email.", "messages": [{"role": "user", "content": "transcript"}]},
    )
    assert resp.status_code == 200
    assert fake_client.calls[0]["messages"][0] == {"role": "system", "content": "Write an email."}


def test_lisa_without_user_turn(api, fake_client):
    resp = api.post("/api/lisa", json={"messages": [{"role": "assistant", "content": "hello"}]})
    assert resp.status_code == 400
    assert fake_client.calls == []


def test_lisa_health(api):
    body = api.get("/api/lisa").json()
    assert body["status"] == "healthy"
    assert body["message"] == "LISA API is running"


def test_chatbot_health_with_search(api, fake_client, settings):
    fake_client.results = [
        CompletionResult(content="October 17, 2026", annotations=[{"type": "url_citation", "url": "https://time.example"}])
    ]
    body = api.get("/api/chatbot").json()

    assert body["status"] == "healthy"
    assert body["currentDate"] == "October 17, 2026"
    assert body["searchToolUsed"] is True
    (call,) = fake_client.calls
    assert call["model"] == settings.health_check_model
    assert call["max_tokens"] == 50


def test_chatbot_health_retries_once_without_search(api, fake_client):
    fake_client.results = [
        CompletionResult(content="maybe today"),
        CompletionResult(content="October 17, 2026", annotations=[{"type": "web_search", "query": "current date today"}]),
    ]
    body = api.get("/api/chatbot").json()

    assert len(fake_client.calls) == 2
    assert body["searchToolUsed"] is True
    assert body["currentDate"] == "October 17, 2026"


def test_chatbot_health_keeps_first_answer_when_retry_does_not_search(api, fake_client):
    fake_client.results = [CompletionResult(content="first"), CompletionResult(content="second")]
    body = api.get("/api/chatbot").json()

    assert len(fake_client.calls) == 2
    assert body["searchToolUsed"] is False
    assert body["currentDate"] == "first"


def test_chatbot_health_failure(api, fake_client):
    fake_client.results = [CompletionError("down")]
    resp = api.get("/api/chatbot")
    assert resp.status_code == 500
    assert resp.json()["status"] == "error"
