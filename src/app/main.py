"""
FastAPI application entry point.

Run:
- dev: uvicorn src.app.main:app --reload
- prod: uvicorn src.app.main:app
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.app.routes import auth, evaluate, facial, interviews, questions, resume, speech
from src.core.logging import configure_logging
from src.core.store import create_store

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """Load settings (missing file: empty settings)."""
    if config_path is None:
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: environment, settings, logging, store.

    State already set on app.state (tests) is kept.
    """
    load_dotenv()
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

    state = app.state
    if getattr(state, "config", None) is None:
        state.config = load_config()
    if getattr(state, "store", None) is None:
        state.store = create_store(state.config, PROJECT_ROOT)
    if getattr(state, "logs_dir", None) is None:
        state.logs_dir = PROJECT_ROOT / state.config.get("paths", {}).get("logs_dir", "logs")
    for name in ("llm_provider", "stt_provider"):
        if not hasattr(state, name):
            setattr(state, name, None)

    logger.info(f"Interview service started (store: {type(state.store).__name__})")

    yield


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Mock Interview Service",
    description="AI interview questions, answer evaluation, resume summaries, speech-to-text",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


# =============================================================================
# Routes
# =============================================================================

app.include_router(questions.api_router, prefix="/api", tags=["Questions API"])
app.include_router(evaluate.api_router, prefix="/api", tags=["Evaluation API"])
app.include_router(resume.api_router, prefix="/api", tags=["Resume API"])
app.include_router(speech.api_router, prefix="/api", tags=["Speech API"])
app.include_router(auth.api_router, prefix="/api", tags=["Auth API"])
app.include_router(interviews.api_router, prefix="/api", tags=["Interviews API"])
app.include_router(facial.api_router, prefix="/api", tags=["Facial Analysis API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/")
async def root() -> dict[str, Any]:
    return {
        "message": "Mock Interview Service",
        "endpoints": {
            "generate_questions": "/api/generate-questions",
            "evaluate_response": "/api/evaluate-response",
            "resume_summary": "/api/generate-resume-summary",
            "resume": "/api/resume/{user_id}/{section}",
            "speech_to_text": "/api/speech-to-text",
            "auto_login": "/api/auto-login",
            "auth": "/api/auth",
            "interviews": "/api/interviews",
            "facial_analysis": "/api/facial-analysis/score",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
