"""
Facial Analysis Routes.

- POST /api/facial-analysis/score  {frames: [landmarks, ...], duration_analyzed?}
"""

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from src.core.facial import summarize_frames

api_router = APIRouter()


@api_router.post("/facial-analysis/score", response_model=None)
async def score_frames(payload: dict[str, Any] | None = Body(None)) -> dict[str, Any] | JSONResponse:
    """
    Score a batch of face-mesh landmark frames.

    Frames without a detectable face, or with unreadable points, are skipped.

    Returns:
        Aggregated summary (emotions, confidence, engagement,
        duration_analyzed, sample_count)
    """
    body = payload or {}
    frames = body.get("frames")
    if not isinstance(frames, list):
        return JSONResponse(status_code=400, content={"error": "frames must be a list"})

    try:
        summary = summarize_frames(frames, body.get("duration_analyzed"))
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    return summary.to_dict()
