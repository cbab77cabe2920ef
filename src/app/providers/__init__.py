"""
AI Provider Abstraction.

Providers are swappable; model names come from config only.
"""

from .anthropic import ClaudeProvider
from .base import (
    GenerationResult,
    LLMCallParams,
    LLMError,
    LLMProvider,
    ProviderError,
    SpeechToTextError,
    SpeechToTextProvider,
    TranscriptionResult,
)
from .elevenlabs import ElevenLabsProvider
from .gemini import GeminiProvider


def create_llm_provider(config: dict) -> LLMProvider:
    """
    LLM provider from config (ai.llm).

    Raises:
        LLMError: unknown provider, or API key missing
    """
    llm_config = config.get("ai", {}).get("llm", {})
    provider = llm_config.get("provider", "gemini")

    if provider == "gemini":
        kwargs = {}
        if llm_config.get("model"):
            kwargs["model"] = llm_config["model"]
        if "fallback" in llm_config:
            kwargs["fallback"] = llm_config["fallback"]
        return GeminiProvider(**kwargs)

    if provider == "anthropic":
        if llm_config.get("model"):
            return ClaudeProvider(model=llm_config["model"])
        return ClaudeProvider()

    raise LLMError("UNKNOWN_PROVIDER", f"Unknown LLM provider: {provider!r}")


def create_stt_provider(config: dict) -> SpeechToTextProvider:
    """
    Speech-to-text provider from config (ai.stt).

    Raises:
        SpeechToTextError: API key missing
    """
    stt_config = config.get("ai", {}).get("stt", {})
    if stt_config.get("model"):
        return ElevenLabsProvider(model=stt_config["model"])
    return ElevenLabsProvider()


__all__ = [
    "LLMProvider",
    "LLMCallParams",
    "GenerationResult",
    "ProviderError",
    "LLMError",
    "SpeechToTextProvider",
    "SpeechToTextError",
    "TranscriptionResult",
    "ClaudeProvider",
    "GeminiProvider",
    "ElevenLabsProvider",
    "create_llm_provider",
    "create_stt_provider",
]
