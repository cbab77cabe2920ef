"""
test_provider_factory.py - providers built from config
"""

import pytest

from src.app.providers import (
    ClaudeProvider,
    ElevenLabsProvider,
    GeminiProvider,
    LLMError,
    SpeechToTextError,
    create_llm_provider,
    create_stt_provider,
)


@pytest.fixture(autouse=True)
def api_keys(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic-key")
    monkeypatch.setenv("ELEVENLABS_API_KEY", "xi-key")


class TestCreateLLMProvider:
    def test_gemini_default(self):
        provider = create_llm_provider({})

        assert isinstance(provider, GeminiProvider)

    def test_gemini_models_from_config(self):
        provider = create_llm_provider(
            {"ai": {"llm": {"provider": "gemini", "model": "m1", "fallback": None}}}
        )

        assert provider.model == "m1"
        assert provider.fallback is None

    def test_anthropic(self):
        provider = create_llm_provider({"ai": {"llm": {"provider": "anthropic", "model": "c1"}}})

        assert isinstance(provider, ClaudeProvider)
        assert provider.model == "c1"

    def test_unknown(self):
        with pytest.raises(LLMError) as exc_info:
            create_llm_provider({"ai": {"llm": {"provider": "openai"}}})

        assert exc_info.value.code == "UNKNOWN_PROVIDER"

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY")
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(LLMError) as exc_info:
            create_llm_provider({})

        assert exc_info.value.code == "LLM_NOT_CONFIGURED"


class TestCreateSTTProvider:
    def test_model_from_config(self):
        provider = create_stt_provider({"ai": {"stt": {"model": "scribe_v2"}}})

        assert isinstance(provider, ElevenLabsProvider)
        assert provider.model == "scribe_v2"

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("ELEVENLABS_API_KEY")

        with pytest.raises(SpeechToTextError):
            create_stt_provider({})
