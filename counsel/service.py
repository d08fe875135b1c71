from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from config.settings import Settings
from counsel.completion import (
    CompletionResult,
    SearchCompletionClient,
    has_search_evidence,
    search_queries,
)
from counsel.core.assembler import (
    assemble_finder_messages,
    assemble_lisa_messages,
    to_openai_messages,
)
from counsel.core.classifier import classify
from counsel.core.prompt import PromptSet


logger = logging.getLogger("counsel.service")

VERSION = "1.0.0"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _last_content(turns: Sequence[BaseMessage]) -> str:
    return turns[-1].content if turns else ""


def _response_body(result: CompletionResult) -> Dict[str, Any]:
    return {
        "message": result.content,
        "annotations": result.annotations,
        "timestamp": utc_timestamp(),
        "searchTriggered": len(result.annotations) > 0,
        "usage": result.usage,
    }


def log_search_usage(annotations: List[Dict[str, Any]], user_query: str, response: str) -> None:
    queries = search_queries(annotations)
    lowered = response.lower()
    logger.info(
        "Search usage: queries=%s searches=%s annotations=%s mentions_attorneys=%s query=%r",
        queries,
        len(queries),
        len(annotations),
        "attorney" in lowered or "lawyer" in lowered,
        _truncate(user_query, 200),
    )
    logger.debug("Annotations: %s", annotations)


def run_attorney_finder(
    turns: Sequence[BaseMessage],
    client: SearchCompletionClient,
    prompts: PromptSet,
    settings: Settings,
) -> Dict[str, Any]:
    user_query = _last_content(turns)
    verdict = classify(turns)
    logger.info(
        "Incoming finder request: messages=%s last=%r legal_issue=%s location=%s ready=%s",
        len(turns),
        _truncate(user_query, 100),
        verdict.legal_issue,
        verdict.location,
        verdict.ready,
    )
    if verdict.ready and verdict.weak_location:
        logger.warning(
            "Location %r is a weak match; search may be premature",
            verdict.location,
        )

    outbound = assemble_finder_messages(turns, verdict, prompts)
    result = client.complete(to_openai_messages(outbound), max_tokens=settings.finder_max_tokens)

    log_search_usage(result.annotations, user_query, result.content)
    if verdict.ready and not result.annotations:
        logger.warning("Search should have been triggered but no annotations found")
        logger.info(
            "Conversation context: %s",
            [f"{m.type}: {_truncate(m.content, 50)}" for m in turns],
        )

    logger.info(
        "Finder response generated: length=%s annotations=%s usage=%s",
        len(result.content),
        len(result.annotations),
        result.usage,
    )
    return _response_body(result)


def run_lisa(
    turns: Sequence[BaseMessage],
    client: SearchCompletionClient,
    prompt: str,
    settings: Settings,
) -> Dict[str, Any]:
    outbound = assemble_lisa_messages(turns, prompt)
    logger.info(
        "Incoming LISA request: messages=%s last=%r",
        len(turns),
        _truncate(outbound[-1].content, 100),
    )
    result = client.complete(to_openai_messages(outbound), max_tokens=settings.lisa_max_tokens)
    logger.info(
        "LISA response generated: length=%s annotations=%s usage=%s",
        len(result.content),
        len(result.annotations),
        result.usage,
    )
    return _response_body(result)


def _health_probe(
    client: SearchCompletionClient,
    prompts: PromptSet,
    settings: Settings,
    user_prompt: str,
) -> CompletionResult:
    messages = [SystemMessage(content=prompts.health_system), HumanMessage(content=user_prompt)]
    result = client.complete(
        to_openai_messages(messages),
        max_tokens=settings.health_max_tokens,
        model=settings.health_check_model,
    )
    logger.info(
        "Health probe: search=%s queries=%s annotations=%s date=%r",
        has_search_evidence(result.annotations),
        search_queries(result.annotations),
        len(result.annotations),
        result.content,
    )
    return result


def run_health_check(
    client: SearchCompletionClient,
    prompts: PromptSet,
    settings: Settings,
) -> Dict[str, Any]:
    """Ask the search model for today's date; retry once if it answered without searching."""
    result = _health_probe(client, prompts, settings, prompts.health_user)
    searched = has_search_evidence(result.annotations)
    current_date = result.content or "Date unavailable"

    if not searched:
        logger.info("Retrying health probe with explicit search prompt")
        retry = _health_probe(client, prompts, settings, prompts.health_retry_user)
        if has_search_evidence(retry.annotations):
            searched = True
            current_date = retry.content or "Date unavailable"

    return {
        "status": "healthy",
        "message": "Chatbot API is running",
        "currentDate": current_date,
        "searchToolUsed": searched,
        "searchToolRequired": True,
        "timestamp": utc_timestamp(),
        "version": VERSION,
    }
