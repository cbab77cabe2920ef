"""
test_llm_plumbing.py - provider resolution, model call wrapping, run logs
"""

import json
from unittest.mock import AsyncMock

import pytest

from src.app.providers.base import LLMCallParams, LLMError
from src.app.services.llm import finish_run, generate_text, resolve_llm_provider
from src.core.logging import create_run_log
from src.domain.errors import ServiceError
from src.testing.fakes import make_generation


class TestResolveLLMProvider:
    def test_injected_provider_wins(self, llm_provider):
        assert resolve_llm_provider({}, llm_provider) is llm_provider

    def test_missing_key_is_service_error(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(ServiceError) as exc_info:
            resolve_llm_provider({"ai": {"llm": {"provider": "gemini"}}})

        assert exc_info.value.code == "LLM_NOT_CONFIGURED"

    def test_unknown_provider_is_service_error(self):
        with pytest.raises(ServiceError) as exc_info:
            resolve_llm_provider({"ai": {"llm": {"provider": "nope"}}})

        assert exc_info.value.code == "LLM_NOT_CONFIGURED"


class TestGenerateText:
    async def test_records_model_on_run_log(self, llm_provider):
        llm_provider.generate.return_value = make_generation("reply", model="gemini-x")
        run_log = create_run_log("evaluate_response")

        text = await generate_text(llm_provider, "prompt", LLMCallParams(), run_log)

        assert text == "reply"
        assert run_log.model_used == "gemini-x"
        assert run_log.prompt_hash.startswith("sha256:")

    async def test_provider_error_wrapped(self, llm_provider):
        llm_provider.generate = AsyncMock(side_effect=LLMError("FALLBACK_FAILED", "down"))
        run_log = create_run_log("evaluate_response")

        with pytest.raises(ServiceError) as exc_info:
            await generate_text(llm_provider, "prompt", LLMCallParams(), run_log)

        assert exc_info.value.code == "UPSTREAM_FAILED"
        assert exc_info.value.message == "down"
        assert exc_info.value.context["provider_code"] == "FALLBACK_FAILED"


class TestFinishRun:
    def test_success_saved(self, logs_dir):
        run_log = create_run_log("resume_summary", subject_id="u1")

        finish_run(run_log, logs_dir)

        saved = json.loads((logs_dir / f"run_{run_log.run_id}.json").read_text(encoding="utf-8"))
        assert saved["result"] == "success"
        assert saved["subject_id"] == "u1"

    def test_failure_records_error(self, logs_dir):
        run_log = create_run_log("resume_summary")

        finish_run(run_log, logs_dir, error=ServiceError("EMPTY_SUMMARY", "empty"))

        saved = json.loads((logs_dir / f"run_{run_log.run_id}.json").read_text(encoding="utf-8"))
        assert saved["result"] == "failed"
        assert saved["error_code"] == "EMPTY_SUMMARY"

    def test_without_logs_dir_nothing_written(self, tmp_path):
        run_log = create_run_log("resume_summary")

        finish_run(run_log, None)

        assert run_log.result == "success"
        assert list(tmp_path.rglob("run_*.json")) == []
