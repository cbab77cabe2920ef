"""
AI Provider abstract interfaces.

- Providers are swappable; model names come from config only
- model_requested + model_used are always recorded
- prompt_hash is recorded for run logs (prompts themselves are not stored)
"""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class LLMCallParams:
    """
    Sampling parameters of one LLM call.

    None means "provider default".
    """
    temperature: float | None = None
    top_k: int | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "top_k": self.top_k,
            "top_p": self.top_p,
            "max_output_tokens": self.max_output_tokens,
        }


def compute_hash(content: str) -> str:
    """SHA-256 hash (16 hex chars)."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class GenerationResult:
    """
    LLM text generation result.

    - model_requested: model set in config
    - model_used: model actually called (differs after fallback)
    - fallback_triggered: fallback model was used
    """
    text: str
    provider: str | None = None
    model_requested: str | None = None
    model_used: str | None = None
    fallback_triggered: bool = False
    prompt_hash: str | None = None
    model_params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "provider": self.provider,
            "model_requested": self.model_requested,
            "model_used": self.model_used,
            "fallback_triggered": self.fallback_triggered,
            "prompt_hash": self.prompt_hash,
            "model_params": self.model_params,
        }


@dataclass
class TranscriptionResult:
    """Speech-to-text result."""
    text: str
    model_used: str | None = None
    language_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "model_used": self.model_used,
            "language_code": self.language_code,
        }


# =============================================================================
# Provider Exceptions
# =============================================================================


class ProviderError(Exception):
    """Provider related error."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class LLMError(ProviderError):
    """LLM call error."""
    pass


class SpeechToTextError(ProviderError):
    """Speech-to-text error."""
    pass


# =============================================================================
# Abstract Providers
# =============================================================================


class LLMProvider(ABC):
    """
    LLM Provider interface.

    Role: prompt in, text out. Parsing and fallbacks live in services.
    """

    name: str = "llm"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        params: LLMCallParams | None = None,
    ) -> GenerationResult:
        """
        Generate text for a prompt.

        Args:
            prompt: full prompt
            params: sampling parameters

        Returns:
            GenerationResult

        Raises:
            LLMError: call failed (after fallback/retries)
        """
        ...


class SpeechToTextProvider(ABC):
    """
    Speech-to-text Provider interface.

    Role: audio bytes → transcript
    """

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> TranscriptionResult:
        """
        Transcribe audio.

        Raises:
            SpeechToTextError: call failed
        """
        ...
