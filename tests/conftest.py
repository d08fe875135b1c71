from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import app, get_completion_client
from config.settings import Settings, get_settings
from counsel.completion import CompletionResult


class FakeCompletionClient:
    def __init__(self, results: Optional[List[Any]] = None):
        self.results = list(results or [])
        self.calls: List[Dict[str, Any]] = []

    def complete(self, messages, max_tokens, model=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "model": model})
        result = self.results.pop(0) if self.results else CompletionResult(content="ok")
        if isinstance(result, Exception):
            raise result
        return result


def make_settings(**overrides: Any) -> Settings:
    settings = Settings()
    settings.openai_api_key = "test-key"
    settings.app_env = "development"
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def api(settings, fake_client):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_completion_client] = lambda: fake_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
