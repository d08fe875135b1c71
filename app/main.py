from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from pydantic import BaseModel, Field

from config.settings import Settings, get_settings
from counsel.completion import SearchCompletionClient
from counsel.core.assembler import ConversationError, to_lc_messages
from counsel.core.prompt import PromptSet, get_prompts
from counsel.service import (
    VERSION,
    run_attorney_finder,
    run_health_check,
    run_lisa,
    utc_timestamp,
)


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("counsel")

app = FastAPI(title="Counsel Finder Chat API", version=VERSION)

# CORS: allow local frontend during development
settings = get_settings()
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ApiKeyMissing(RuntimeError):
    pass


class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "system"] = Field(..., description="'user', 'assistant' or 'system'")
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatTurn] = Field(..., description="Full conversation so far, oldest first")


class LisaRequest(ChatRequest):
    prompt: Optional[str] = Field(
        default=None,
        description="LISA instructions; the configured default is used when omitted",
    )


@lru_cache(maxsize=1)
def _client_for(settings: Settings) -> SearchCompletionClient:
    return SearchCompletionClient(settings)


def get_completion_client(settings: Settings = Depends(get_settings)) -> SearchCompletionClient:
    if not settings.openai_api_key:
        raise ApiKeyMissing("OpenAI API key not configured")
    return _client_for(settings)


def _error_response(exc: Exception, settings: Settings, label: str) -> JSONResponse:
    logger.exception("%s failed: %s", label, exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred. Please try again.",
            "details": str(exc) if settings.is_development else None,
            "timestamp": utc_timestamp(),
        },
    )


@app.exception_handler(RequestValidationError)
def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid messages format"})


@app.exception_handler(ApiKeyMissing)
def api_key_missing(request: Request, exc: ApiKeyMissing) -> JSONResponse:
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    if request.method == "GET":
        content = {"status": "error", "message": str(exc), "timestamp": utc_timestamp()}
    else:
        content = {"error": str(exc)}
    return JSONResponse(status_code=500, content=content)


@app.post("/api/chatbot")
def chatbot(
    req: ChatRequest,
    client: SearchCompletionClient = Depends(get_completion_client),
    prompts: PromptSet = Depends(get_prompts),
    settings: Settings = Depends(get_settings),
) -> Any:
    try:
        turns = to_lc_messages([t.model_dump() for t in req.messages])
        return run_attorney_finder(turns, client, prompts, settings)
    except ConversationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        return _error_response(e, settings, "Chatbot request")


@app.get("/api/chatbot")
def chatbot_health(
    client: SearchCompletionClient = Depends(get_completion_client),
    prompts: PromptSet = Depends(get_prompts),
    settings: Settings = Depends(get_settings),
) -> Any:
    try:
        return run_health_check(client, prompts, settings)
    except Exception as e:
        logger.exception("Health check failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "message": "Health check failed",
                "timestamp": utc_timestamp(),
                "error": str(e) if settings.is_development else None,
            },
        )


@app.post("/api/lisa")
def lisa(
    req: LisaRequest,
    client: SearchCompletionClient = Depends(get_completion_client),
    prompts: PromptSet = Depends(get_prompts),
    settings: Settings = Depends(get_settings),
) -> Any:
    try:
        turns = to_lc_messages([t.model_dump() for t in req.messages])
        return run_lisa(turns, client, req.prompt or prompts.lisa, settings)
    except ConversationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        return _error_response(e, settings, "LISA request")


@app.get("/api/lisa")
def lisa_health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    if not settings.openai_api_key:
        raise ApiKeyMissing("OpenAI API key not configured")
    return {
        "status": "healthy",
        "message": "LISA API is running",
        "timestamp": utc_timestamp(),
        "version": VERSION,
    }


@app.get("/health")
def health():
    return {"status": "ok"}
