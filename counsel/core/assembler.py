from __future__ import annotations

from typing import Dict, List, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from counsel.core.classifier import ReadinessVerdict
from counsel.core.prompt import PromptSet


ROLE_BY_TYPE = {"system": "system", "human": "user", "ai": "assistant"}


class ConversationError(ValueError):
    """Raised when a transcript cannot be turned into an outbound request."""


def to_lc_messages(history: Sequence[dict]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for item in history or []:
        role = (item.get("role") or "").lower()
        content = item.get("content") or ""
        if role in ("user", "human"):
            messages.append(HumanMessage(content=content))
        elif role in ("assistant", "ai", "bot"):
            messages.append(AIMessage(content=content))
        elif role == "system":
            messages.append(SystemMessage(content=content))
        else:
            raise ConversationError(f"Unsupported message role: {role!r}")
    return messages


def assemble_finder_messages(
    turns: Sequence[BaseMessage],
    verdict: ReadinessVerdict,
    prompts: PromptSet,
) -> List[BaseMessage]:
    """Build the attorney-finder payload: one system turn, then the caller's turns.

    Caller-supplied system turns are dropped so the configured prompt is the
    only instruction the model sees.
    """
    system_text = prompts.finder_with_directive if verdict.ready else prompts.finder
    body = [m for m in turns if not isinstance(m, SystemMessage)]
    return [SystemMessage(content=system_text), *body]


def assemble_lisa_messages(turns: Sequence[BaseMessage], prompt: str) -> List[BaseMessage]:
    latest = next((m for m in reversed(turns) if isinstance(m, HumanMessage)), None)
    if latest is None:
        raise ConversationError("LISA needs at least one user message")
    return [SystemMessage(content=prompt), latest]


def to_openai_messages(messages: Sequence[BaseMessage]) -> List[Dict[str, str]]:
    return [{"role": ROLE_BY_TYPE[m.type], "content": m.content} for m in messages]
