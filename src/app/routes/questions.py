"""
Question Routes: interview question generation.

- POST /api/generate-questions
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from src.app.dependencies import (
    error_response,
    get_config,
    get_llm_provider,
    get_logs_dir,
    get_store,
)
from src.app.services.questions import QuestionService
from src.domain.errors import ServiceError

logger = logging.getLogger(__name__)

api_router = APIRouter()

FAILURE_DETAILS = "Failed to generate interview questions"


def build_question_service(request: Request) -> QuestionService:
    return QuestionService(
        config=get_config(request),
        store=get_store(request),
        provider=get_llm_provider(request),
        logs_dir=get_logs_dir(request),
    )


@api_router.post("/generate-questions", response_model=None)
async def generate_questions(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Generate interview questions.

    Body: {jobRole, domain, experienceLevel, interviewType,
           additionalConstraints?, numQuestions?, userId?}

    Returns:
        {questions, resumePersonalized, totalQuestions}; any failure is a 500
        {error, details}
    """
    service = build_question_service(request)
    try:
        question_set = await service.generate(payload or {})
    except ServiceError as e:
        logger.error(f"Question generation failed: {e}")
        return error_response(e, status_code=500, details=FAILURE_DETAILS)

    return question_set.to_response()
