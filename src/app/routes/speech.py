"""
Speech Routes: speech-to-text.

- POST /api/speech-to-text          {audioUrl}
- POST /api/speech-to-text/upload   multipart file
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, File, Request, UploadFile
from fastapi.responses import JSONResponse

from src.app.dependencies import error_response, get_config, get_stt_provider
from src.app.services.transcribe import TranscriptionService
from src.domain.errors import ServiceError

logger = logging.getLogger(__name__)

api_router = APIRouter()

FAILURE_DETAILS = "Check function logs for more information"


def build_transcription_service(request: Request) -> TranscriptionService:
    return TranscriptionService(
        config=get_config(request),
        provider=get_stt_provider(request),
        transport=getattr(request.app.state, "audio_transport", None),
    )


@api_router.post("/speech-to-text", response_model=None)
async def speech_to_text(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Transcribe recorded audio by URL.

    Returns:
        {text}; any failure is a 500 {error, details}
    """
    service = build_transcription_service(request)
    try:
        text = await service.transcribe_url((payload or {}).get("audioUrl"))
    except ServiceError as e:
        logger.error(f"Speech-to-text failed: {e}")
        return error_response(e, status_code=500, details=FAILURE_DETAILS)

    return {"text": text}


@api_router.post("/speech-to-text/upload", response_model=None)
async def speech_to_text_upload(
    request: Request,
    file: UploadFile = File(...),
) -> dict[str, Any] | JSONResponse:
    service = build_transcription_service(request)
    audio = await file.read()
    try:
        text = await service.transcribe_bytes(
            audio,
            filename=file.filename or "recording.webm",
            content_type=file.content_type or "audio/webm",
        )
    except ServiceError as e:
        logger.error(f"Speech-to-text upload failed: {e}")
        return error_response(e, status_code=500, details=FAILURE_DETAILS)

    return {"text": text}
