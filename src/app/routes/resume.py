"""
Resume Routes: resume sections and summary.

- POST   /api/generate-resume-summary
- GET    /api/resume/{user_id}/summary
- GET    /api/resume/{user_id}/{section}
- POST   /api/resume/{user_id}/{section}
- PUT    /api/resume/{user_id}/{section}               (save all)
- PUT    /api/resume/{user_id}/{section}/{record_id}
- DELETE /api/resume/{user_id}/{section}/{record_id}
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
from src.app.services.resume import ResumeService, ResumeSummaryService, get_section
from src.domain.errors import ServiceError

logger = logging.getLogger(__name__)

api_router = APIRouter()


# =============================================================================
# Summary
# =============================================================================


@api_router.post("/generate-resume-summary", response_model=None)
async def generate_resume_summary(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Generate and store the user's resume summary.

    Body: {userId}

    Returns:
        {summary}; any failure is a 500 {error}
    """
    service = ResumeSummaryService(
        config=get_config(request),
        store=get_store(request),
        provider=get_llm_provider(request),
        logs_dir=get_logs_dir(request),
    )
    try:
        summary = await service.generate_summary((payload or {}).get("userId"))
    except ServiceError as e:
        logger.error(f"Resume summary failed: {e}")
        return error_response(e, status_code=500)

    return {"summary": summary}


@api_router.get("/resume/{user_id}/summary", response_model=None)
async def get_resume_summary(request: Request, user_id: str) -> dict[str, Any] | JSONResponse:
    service = ResumeSummaryService(config=get_config(request), store=get_store(request))
    try:
        return service.get_summary(user_id)
    except ServiceError as e:
        return error_response(e)


# =============================================================================
# Sections
# =============================================================================


@api_router.get("/resume/{user_id}/{section}", response_model=None)
async def list_section(
    request: Request,
    user_id: str,
    section: str,
) -> list[dict[str, Any]] | dict[str, Any] | JSONResponse:
    """
    Rows of a section. personal-info returns its single row (404 when absent).
    """
    service = ResumeService(get_store(request))
    try:
        if get_section(section).single:
            return service.get_personal_info(user_id)
        return service.list_records(user_id, section)
    except ServiceError as e:
        return error_response(e)


@api_router.post("/resume/{user_id}/{section}", response_model=None)
async def create_section_record(
    request: Request,
    user_id: str,
    section: str,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    service = ResumeService(get_store(request))
    try:
        return service.create_record(user_id, section, payload or {})
    except ServiceError as e:
        return error_response(e)


@api_router.put("/resume/{user_id}/{section}", response_model=None)
async def save_section(
    request: Request,
    user_id: str,
    section: str,
    payload: list[dict[str, Any]] | dict[str, Any] | None = Body(None),
) -> list[dict[str, Any]] | JSONResponse:
    """
    Form "save all": rows with id are updated, the rest are created.

    Body: list of rows (personal-info: one object)
    """
    service = ResumeService(get_store(request))
    try:
        return service.save_all(user_id, section, payload or [])
    except ServiceError as e:
        return error_response(e)


@api_router.put("/resume/{user_id}/{section}/{record_id}", response_model=None)
async def update_section_record(
    request: Request,
    user_id: str,
    section: str,
    record_id: str,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    service = ResumeService(get_store(request))
    try:
        return service.update_record(user_id, section, record_id, payload or {})
    except ServiceError as e:
        return error_response(e)


@api_router.delete("/resume/{user_id}/{section}/{record_id}", response_model=None)
async def delete_section_record(
    request: Request,
    user_id: str,
    section: str,
    record_id: str,
) -> dict[str, Any] | JSONResponse:
    service = ResumeService(get_store(request))
    try:
        service.delete_record(user_id, section, record_id)
    except ServiceError as e:
        return error_response(e)

    return {"deleted": True, "id": record_id}
