from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
import openai
from openai import OpenAI

from config.settings import Settings, get_settings


SEARCH_ANNOTATION_TYPES = {"web_search", "url_citation"}


class CompletionError(RuntimeError):
    """Provider call failed; the original exception is chained."""


@dataclass
class CompletionResult:
    content: str = ""
    annotations: List[Dict[str, Any]] = field(default_factory=list)
    usage: Optional[Dict[str, Any]] = None


def _as_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, dict):
        return dict(item)
    if hasattr(item, "model_dump"):
        return item.model_dump()
    return {"value": item}


def search_queries(annotations: Sequence[Dict[str, Any]]) -> List[str]:
    return [
        a.get("query") or "Unknown query"
        for a in annotations
        if a.get("type") == "web_search"
    ]


def has_search_evidence(annotations: Sequence[Dict[str, Any]]) -> bool:
    return any(a.get("type") in SEARCH_ANNOTATION_TYPES for a in annotations)


class SearchCompletionClient:
    """Chat completions against a search-enabled model with the hosted web search tool on."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[OpenAI] = None):
        self.settings = settings or get_settings()
        if client is None:
            if not self.settings.openai_api_key:
                raise RuntimeError(
                    "OPENAI_API_KEY not set. Please configure it in environment or .env"
                )
            client = OpenAI(
                api_key=self.settings.openai_api_key,
                http_client=httpx.Client(timeout=self.settings.request_timeout),
            )
        self._client = client

    def complete(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        model: Optional[str] = None,
    ) -> CompletionResult:
        try:
            completion = self._client.chat.completions.create(
                model=model or self.settings.openai_model,
                messages=messages,
                web_search_options={},
                max_tokens=max_tokens,
            )
        except (openai.OpenAIError, httpx.HTTPError) as exc:
            raise CompletionError(f"Completion API call failed: {exc}") from exc

        usage = completion.usage.model_dump() if completion.usage is not None else None
        if not completion.choices:
            return CompletionResult(usage=usage)

        message = completion.choices[0].message
        return CompletionResult(
            content=message.content or "",
            annotations=[_as_dict(a) for a in (message.annotations or [])],
            usage=usage,
        )
