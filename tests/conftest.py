"""
Pytest fixtures for the interview service tests.

- Stores live under tmp_path (JsonFileStore)
- Providers are AsyncMock stand-ins; no test touches the network
"""

import random
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.app.providers.base import LLMProvider, SpeechToTextProvider, TranscriptionResult
from src.app.routes import auth, evaluate, facial, interviews, questions, resume, speech
from src.core.store import JsonFileStore
from src.testing.fakes import make_generation

# =============================================================================
# Path / Config Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def default_config(project_root: Path) -> dict:
    """default.yaml contents."""
    with open(project_root / "default.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def config() -> dict:
    """Settings used by service and route tests."""
    return {
        "ai": {"llm": {"provider": "gemini"}, "stt": {"model": "scribe_v1"}},
        "interview": {"question_time_limit": 180, "default_num_questions": 5},
        "auth": {"token_ttl_minutes": 5, "site_url": "http://interview.test"},
    }


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def logs_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


# =============================================================================
# Provider Fixtures
# =============================================================================


@pytest.fixture
def llm_provider() -> MagicMock:
    """
    LLM provider mock.

    Set the reply with:
        llm_provider.generate.return_value = make_generation("...")
    """
    provider = MagicMock(spec=LLMProvider)
    provider.generate = AsyncMock(return_value=make_generation('{"questions": []}'))
    return provider


@pytest.fixture
def stt_provider() -> MagicMock:
    provider = MagicMock(spec=SpeechToTextProvider)
    provider.transcribe = AsyncMock(
        return_value=TranscriptionResult(text="hello world", model_used="scribe_v1")
    )
    return provider


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def app(config, store, logs_dir, llm_provider, stt_provider) -> FastAPI:
    """API routes mounted on a bare app with test state."""
    app = FastAPI()
    for module in (questions, evaluate, resume, speech, auth, interviews, facial):
        app.include_router(module.api_router, prefix="/api")

    app.state.config = config
    app.state.store = store
    app.state.logs_dir = logs_dir
    app.state.llm_provider = llm_provider
    app.state.stt_provider = stt_provider
    app.state.evaluation_rng = random.Random(7)
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
