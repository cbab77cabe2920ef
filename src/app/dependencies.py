"""
Request-scoped accessors and error translation shared by routes.

app.state (set in main.lifespan):
- config: default.yaml contents
- store: RecordStore
- logs_dir: run log directory
- llm_provider / stt_provider: injected providers (None: built from config per service)
"""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from src.app.providers.base import LLMProvider, SpeechToTextProvider
from src.core.store import RecordStore
from src.domain.errors import ErrorCodes, ServiceError

STATUS_BY_CODE: dict[str, int] = {
    ErrorCodes.MISSING_REQUIRED_FIELD: 400,
    ErrorCodes.INVALID_FIELD_VALUE: 400,
    ErrorCodes.EMPTY_ANSWER: 400,
    ErrorCodes.INVALID_CREDENTIALS: 401,
    ErrorCodes.INVALID_USER: 401,
    ErrorCodes.INVALID_TOKEN: 401,
    ErrorCodes.TOKEN_EXPIRED: 401,
    ErrorCodes.NOT_FOUND: 404,
    ErrorCodes.UNKNOWN_SECTION: 404,
    ErrorCodes.DUPLICATE_EMAIL: 409,
}


def get_config(request: Request) -> dict:
    config: dict = request.app.state.config
    return config


def get_store(request: Request) -> RecordStore:
    store: RecordStore = request.app.state.store
    return store


def get_logs_dir(request: Request) -> Path | None:
    return getattr(request.app.state, "logs_dir", None)


def get_llm_provider(request: Request) -> LLMProvider | None:
    return getattr(request.app.state, "llm_provider", None)


def get_stt_provider(request: Request) -> SpeechToTextProvider | None:
    return getattr(request.app.state, "stt_provider", None)


def status_for(error: ServiceError) -> int:
    return STATUS_BY_CODE.get(error.code, 500)


def error_response(
    error: ServiceError,
    status_code: int | None = None,
    **extra: Any,
) -> JSONResponse:
    """
    {"error": message, **extra} with the code's HTTP status.

    Args:
        error: service error
        status_code: override (some endpoints answer 500 for everything)
        **extra: additional body fields (details, degraded result)
    """
    return JSONResponse(
        status_code=status_code or status_for(error),
        content={"error": error.message, **extra},
    )
