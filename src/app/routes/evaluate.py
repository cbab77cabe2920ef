"""
Evaluation Routes: answer scoring.

- POST /api/evaluate-response
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.app.dependencies import error_response, get_config, get_llm_provider, get_logs_dir
from src.app.services.evaluate import EvaluationService
from src.domain import constants
from src.domain.errors import ErrorCodes, ServiceError

logger = logging.getLogger(__name__)

api_router = APIRouter()


def build_evaluation_service(request: Request) -> EvaluationService:
    return EvaluationService(
        config=get_config(request),
        provider=get_llm_provider(request),
        logs_dir=get_logs_dir(request),
        rng=getattr(request.app.state, "evaluation_rng", None),
    )


def degraded_response() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", **constants.DEGRADED_EVALUATION},
    )


@api_router.post("/evaluate-response", response_model=None)
async def evaluate_response(request: Request) -> dict[str, Any] | JSONResponse:
    """
    Score one answer.

    Body: {question, answer, jobRole, domain, experienceLevel?}

    Errors:
        400 missing fields (a JSON body that is not an object has none);
        500 LLM not configured;
        500 with a degraded evaluation body when the model call fails
        or the body is not JSON
    """
    try:
        payload = await request.json()
    except ValueError as e:
        logger.error(f"Evaluation request body is not JSON: {e}")
        return degraded_response()
    if not isinstance(payload, dict):
        payload = {}

    service = build_evaluation_service(request)
    try:
        result = await service.evaluate(payload)
    except ServiceError as e:
        if e.code in (ErrorCodes.MISSING_REQUIRED_FIELD, ErrorCodes.LLM_NOT_CONFIGURED):
            return error_response(e)
        logger.error(f"Evaluation failed: {e}")
        return degraded_response()

    return result.to_dict()
