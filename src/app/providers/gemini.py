"""
Google Gemini LLM Provider.

Fallback exception policy:
- FALLBACK_ERRORS: NotFound, ServiceUnavailable, ResourceExhausted → fallback model
- REJECT_IMMEDIATELY: InvalidArgument, PermissionDenied, Unauthenticated → fail now
"""

import logging
import os
from typing import Any

from .base import GenerationResult, LLMCallParams, LLMError, LLMProvider, compute_hash

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_FALLBACK = "gemini-1.5-flash-8b"

# =============================================================================
# Exception Mapping
# =============================================================================

FALLBACK_ERRORS: tuple[type[Exception], ...] = ()

REJECT_IMMEDIATELY: tuple[type[Exception], ...] = ()

# google-api-core ships with google-generativeai
try:
    from google.api_core.exceptions import (
        InvalidArgument,
        NotFound,
        PermissionDenied,
        ResourceExhausted,
        ServiceUnavailable,
        Unauthenticated,
    )

    FALLBACK_ERRORS = (
        NotFound,            # unknown/unsupported model name
        ServiceUnavailable,  # 5xx
        ResourceExhausted,   # 429 quota/rate limit
    )

    REJECT_IMMEDIATELY = (
        InvalidArgument,
        PermissionDenied,
        Unauthenticated,
    )
except ImportError:
    pass


def resolve_api_key(api_key: str | None = None) -> str | None:
    """Argument > GOOGLE_API_KEY > GEMINI_API_KEY."""
    return (
        api_key
        or os.environ.get("GOOGLE_API_KEY")
        or os.environ.get("GEMINI_API_KEY")
    )


class GeminiProvider(LLMProvider):
    """
    Gemini Provider.

    Usage:
        provider = GeminiProvider(model="gemini-1.5-flash", fallback="gemini-1.5-flash-8b")
        result = await provider.generate(prompt, LLMCallParams(temperature=0.7))
    """

    name = "gemini"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        fallback: str | None = DEFAULT_FALLBACK,
        api_key: str | None = None,
    ):
        """
        Args:
            model: primary model ID (from config)
            fallback: fallback model (None: fail without retry)
            api_key: API key (env GOOGLE_API_KEY or GEMINI_API_KEY)

        Raises:
            LLMError: no API key (fail-fast)
        """
        self.model = model
        self.fallback = fallback
        self.api_key = resolve_api_key(api_key)

        if not self.api_key:
            raise LLMError(
                "LLM_NOT_CONFIGURED",
                "Gemini API key not configured",
            )

        self._client: Any = None

    def _get_client(self) -> Any:
        """Gemini module (lazy init)."""
        if self._client is None:
            try:
                import google.generativeai as genai
                genai.configure(api_key=self.api_key)
                self._client = genai
            except ImportError as e:
                raise LLMError(
                    "GEMINI_NOT_INSTALLED",
                    "google-generativeai package not installed. "
                    "Run: pip install google-generativeai",
                ) from e
        return self._client

    async def generate(
        self,
        prompt: str,
        params: LLMCallParams | None = None,
    ) -> GenerationResult:
        """
        Generate text.

        Fallback policy:
        - FALLBACK_ERRORS → retry on the fallback model
        - REJECT_IMMEDIATELY → error right away
        """
        params = params or LLMCallParams()
        model_requested = self.model
        prompt_hash = compute_hash(prompt)

        try:
            text = await self._call_api(self.model, prompt, params)
            return self._result(text, model_requested, self.model, False, prompt_hash, params)

        except FALLBACK_ERRORS as e:
            logger.warning(
                f"Primary model ({self.model}) failed with fallback error: {e}. "
                f"Attempting fallback..."
            )

            if self.fallback is None:
                raise LLMError(
                    "NO_FALLBACK",
                    self._get_user_friendly_error_message(e),
                    model=self.model,
                ) from e

            try:
                logger.info(f"Trying fallback model: {self.fallback}")
                text = await self._call_api(self.fallback, prompt, params)
                logger.info("Fallback model succeeded")
                return self._result(
                    text, model_requested, self.fallback, True, prompt_hash, params
                )
            except Exception as fallback_error:
                logger.error(f"Fallback model also failed: {fallback_error}")
                raise LLMError(
                    "FALLBACK_FAILED",
                    f"{self._get_user_friendly_error_message(fallback_error)} "
                    f"Both the primary and the fallback model failed.",
                    primary_model=self.model,
                    fallback_model=self.fallback,
                ) from fallback_error

        except REJECT_IMMEDIATELY as e:
            logger.error(f"Authentication or input error: {e}", exc_info=True)
            raise LLMError(
                "AUTH_OR_INPUT_ERROR",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        except LLMError:
            raise

        except Exception as e:
            logger.error(f"Gemini call failed with unexpected error: {e}", exc_info=True)
            raise LLMError(
                "GENERATION_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

    def _result(
        self,
        text: str,
        model_requested: str,
        model_used: str,
        fallback_triggered: bool,
        prompt_hash: str,
        params: LLMCallParams,
    ) -> GenerationResult:
        return GenerationResult(
            text=text,
            provider=self.name,
            model_requested=model_requested,
            model_used=model_used,
            fallback_triggered=fallback_triggered,
            prompt_hash=prompt_hash,
            model_params=params.to_dict(),
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """User-facing message for an API error."""
        if isinstance(error, REJECT_IMMEDIATELY + FALLBACK_ERRORS):
            name = type(error).__name__
            if name == "Unauthenticated":
                return "Google API authentication failed. Check GOOGLE_API_KEY."
            if name == "PermissionDenied":
                return "The API key is not permitted to perform this operation."
            if name == "ResourceExhausted":
                return "API quota exceeded. Try again later."
            if name == "ServiceUnavailable":
                return "Google API is temporarily unavailable. Try again later."
            if name == "InvalidArgument":
                return "The request was rejected as invalid."
            if name == "NotFound":
                return "The configured Gemini model was not found."

        error_str = str(error).lower()
        if "api_key" in error_str or "api key" in error_str:
            return "Check the API key configuration."
        if "quota" in error_str or "limit" in error_str:
            return "API quota exceeded. Try again later."
        if "connection" in error_str:
            return "Network connection error."
        if "timeout" in error_str:
            return "The request timed out. Try again."

        return f"Gemini API error: {error}"

    async def _call_api(self, model: str, prompt: str, params: LLMCallParams) -> str:
        """Single Gemini call. Exceptions propagate for the fallback policy."""
        genai = self._get_client()

        generation_config = {k: v for k, v in params.to_dict().items() if v is not None}
        model_instance = genai.GenerativeModel(model, generation_config=generation_config)

        response = await model_instance.generate_content_async(prompt)

        # .text raises ValueError when the candidate was blocked/empty
        try:
            text = response.text
        except ValueError:
            logger.warning(f"Gemini returned no text (model={model})")
            return ""
        return text or ""
