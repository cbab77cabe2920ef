"""
Interview Routes: interview sessions.

- POST /api/interviews
- GET  /api/interviews/{interview_id}
- POST /api/interviews/{interview_id}/questions/{number}/start
- GET  /api/interviews/{interview_id}/questions/{number}/timer
- POST /api/interviews/{interview_id}/questions/{number}/answer
- POST /api/interviews/{interview_id}/complete
- GET  /api/interviews/{interview_id}/results
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from src.app.dependencies import error_response, get_config, get_store, status_for
from src.app.routes.evaluate import build_evaluation_service
from src.app.routes.questions import FAILURE_DETAILS, build_question_service
from src.app.services.interviews import InterviewService
from src.domain.errors import ServiceError

logger = logging.getLogger(__name__)

api_router = APIRouter()


def build_interview_service(request: Request) -> InterviewService:
    return InterviewService(
        config=get_config(request),
        store=get_store(request),
        question_service=build_question_service(request),
        evaluation_service=build_evaluation_service(request),
        clock=getattr(request.app.state, "clock", None),
    )


@api_router.post("/interviews", status_code=201, response_model=None)
async def create_interview(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Create an interview with generated questions.

    Body: {userId, jobRole, domain, experienceLevel, interviewType,
           additionalConstraints?, numQuestions?}

    Errors:
        400 missing fields; 500 {error, details} when generation fails
    """
    try:
        return await build_interview_service(request).create_interview(payload or {})
    except ServiceError as e:
        if status_for(e) == 400:
            return error_response(e)
        logger.error(f"Interview creation failed: {e}")
        return error_response(e, status_code=500, details=FAILURE_DETAILS)


@api_router.get("/interviews/{interview_id}", response_model=None)
async def get_interview(request: Request, interview_id: str) -> dict[str, Any] | JSONResponse:
    try:
        return build_interview_service(request).get_interview(interview_id)
    except ServiceError as e:
        return error_response(e)


@api_router.post("/interviews/{interview_id}/questions/{number}/start", response_model=None)
async def start_question(
    request: Request,
    interview_id: str,
    number: int,
) -> dict[str, Any] | JSONResponse:
    try:
        return build_interview_service(request).start_question(interview_id, number)
    except ServiceError as e:
        return error_response(e)


@api_router.get("/interviews/{interview_id}/questions/{number}/timer", response_model=None)
async def question_timer(
    request: Request,
    interview_id: str,
    number: int,
) -> dict[str, Any] | JSONResponse:
    try:
        return build_interview_service(request).question_timer(interview_id, number)
    except ServiceError as e:
        return error_response(e)


@api_router.post("/interviews/{interview_id}/questions/{number}/answer", response_model=None)
async def answer_question(
    request: Request,
    interview_id: str,
    number: int,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Submit and evaluate an answer.

    Body: {speechText?, textContent?, codeContent?, responseLanguage?,
           facialAnalysis?, elapsedSeconds?, timedOut?}

    Errors:
        400 empty answer, completed interview or malformed fields; 404 unknown interview/question;
        500 evaluation failed (the answer is kept unscored)
    """
    service = build_interview_service(request)
    try:
        return await service.answer_question(interview_id, number, payload or {})
    except ServiceError as e:
        return error_response(e)


@api_router.post("/interviews/{interview_id}/complete", response_model=None)
async def complete_interview(request: Request, interview_id: str) -> dict[str, Any] | JSONResponse:
    try:
        return build_interview_service(request).complete_interview(interview_id)
    except ServiceError as e:
        return error_response(e)


@api_router.get("/interviews/{interview_id}/results", response_model=None)
async def interview_results(request: Request, interview_id: str) -> dict[str, Any] | JSONResponse:
    try:
        return build_interview_service(request).compute_results(interview_id)
    except ServiceError as e:
        return error_response(e)
