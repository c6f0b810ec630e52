"""FastAPI application for the chat proxy.

Provides a single /api/chat endpoint that validates the user message,
forwards it to the Gemini generateContent API with fixed generation and
safety settings, and reshapes the reply into ``{"aiResponse": ...}``.

Every failure is translated into an ``{"error", "details"}`` envelope:
1. Empty message -> 400, provider never called
2. Provider non-2xx -> same status, provider body under ``details``
3. No candidates -> 500
4. Unreadable body or anything else -> 500 with diagnostics under ``details``
"""

import os
import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chatproxy.config import ProxyConfig, load_config, require_api_key
from chatproxy.models import ChatRequest, ChatResponse, ErrorResponse
from chatproxy.provider import NoCandidatesError, ProviderHTTPError, call_provider
from chatproxy.telemetry import log_request, setup_logging

CONFIG_PATH: Optional[str] = os.getenv("CHAT_PROXY_CONFIG")

EMPTY_MESSAGE_ERROR = "Message cannot be empty"
UNEXPECTED_ERROR = "An unexpected error occurred"

CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

_config: Optional[ProxyConfig] = None


def get_config() -> ProxyConfig:
    """Return the loaded proxy configuration (lazy-init)."""
    global _config
    if _config is None:
        _config = load_config(CONFIG_PATH)
    return _config


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Load config and logging, and refuse to start without a credential."""
    cfg = get_config()
    setup_logging(cfg.log_file, cfg.log_level)
    require_api_key(cfg)
    yield


app = FastAPI(title="Gemini Chat Proxy", version="0.1.0", lifespan=lifespan)


def _error_response(status: int, message: str, details: Any = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body = ErrorResponse(error=message, details=details)
    return JSONResponse(status_code=status, content=body.to_content())


@app.post("/api/chat", response_model=None)
async def chat(request: ChatRequest) -> JSONResponse:
    """Forward one user message to the provider and return its reply."""
    config = get_config()
    api_key = require_api_key(config)
    request_id = "chat-{}".format(uuid.uuid4().hex[:12])

    try:
        message = request.message or ""
        if not message.strip():
            log_request(
                outcome="validation_error",
                status=400,
                error=EMPTY_MESSAGE_ERROR,
                request_id=request_id,
            )
            return _error_response(400, EMPTY_MESSAGE_ERROR)

        ai_response = await call_provider(config, message, api_key=api_key)

    except ProviderHTTPError as exc:
        log_request(
            outcome="provider_error",
            status=exc.status_code,
            error=str(exc),
            details=exc.details,
            request_id=request_id,
        )
        return _error_response(exc.status_code, str(exc), details=exc.details)
    except NoCandidatesError as exc:
        log_request(
            outcome="no_candidates",
            status=500,
            error=str(exc),
            request_id=request_id,
        )
        return _error_response(500, str(exc))
    except Exception as exc:
        details = traceback.format_exc()
        log_request(
            outcome="unexpected_error",
            status=500,
            error="{}: {}".format(type(exc).__name__, exc),
            details=details,
            request_id=request_id,
        )
        return _error_response(500, UNEXPECTED_ERROR, details=details)

    log_request(outcome="success", status=200, request_id=request_id)

    response = ChatResponse(aiResponse=ai_response)
    return JSONResponse(status_code=200, content=response.model_dump())


@app.options("/api/chat")
async def chat_preflight() -> JSONResponse:
    """Answer CORS preflight requests with a static permissive header set."""
    headers = {"Access-Control-Allow-Origin": get_config().allowed_origins}
    headers.update(CORS_HEADERS)
    return JSONResponse(status_code=200, content={}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Treat an unreadable request body as an unexpected failure.

    Covers bodies that are not JSON as well as a ``message`` that is not a
    string; both end up in the same 500 envelope as other unexpected errors.
    """
    details = jsonable_encoder(exc.errors())
    log_request(
        outcome="unexpected_error",
        status=500,
        error="Request body could not be parsed",
        details=details,
    )
    return _error_response(500, UNEXPECTED_ERROR, details=details)
