"""
Anthropic (Claude) LLM Provider.

Alternative to Gemini, selected with ai.llm.provider: anthropic.
- model_requested + model_used always recorded
- Transient errors retried with exponential backoff
"""

import logging
import os
from typing import Any

from src.utils.retry import retry_with_exponential_backoff

from .base import GenerationResult, LLMCallParams, LLMError, LLMProvider, compute_hash

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS = 2048


class ClaudeProvider(LLMProvider):
    """
    Claude API Provider.

    Usage:
        provider = ClaudeProvider(model="claude-sonnet-4-5")
        result = await provider.generate(prompt, LLMCallParams(temperature=0.3))
    """

    name = "anthropic"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        """
        Args:
            model: model ID (from config)
            api_key: API key (env ANTHROPIC_API_KEY)
            max_tokens: default output cap when params do not set one

        Raises:
            LLMError: no API key (fail-fast)
        """
        self.model = model
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")

        if not self.api_key:
            raise LLMError(
                "LLM_NOT_CONFIGURED",
                "Anthropic API key not configured. Set ANTHROPIC_API_KEY.",
            )

        self.max_tokens = max_tokens
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic client (lazy init)."""
        if self._client is None:
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
            except ImportError as e:
                raise LLMError(
                    "ANTHROPIC_NOT_INSTALLED",
                    "anthropic package not installed. Run: pip install anthropic",
                ) from e
        return self._client

    async def generate(
        self,
        prompt: str,
        params: LLMCallParams | None = None,
    ) -> GenerationResult:
        """
        Generate text.

        Automatic retries:
        - RateLimitError, APIConnectionError, APITimeoutError, InternalServerError
        - up to 3 retries, exponential backoff
        """
        params = params or LLMCallParams()
        prompt_hash = compute_hash(prompt)

        try:
            response = await self._call_api_with_retry(prompt, params)
        except LLMError:
            raise
        except Exception as e:
            logger.error(f"Claude call failed: {e}", exc_info=True)
            raise LLMError(
                "GENERATION_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        text = "".join(
            getattr(block, "text", "") for block in (response.content or [])
        )

        return GenerationResult(
            text=text,
            provider=self.name,
            model_requested=self.model,
            model_used=getattr(response, "model", None) or self.model,
            fallback_triggered=False,
            prompt_hash=prompt_hash,
            model_params=params.to_dict(),
        )

    def _api_kwargs(self, prompt: str, params: LLMCallParams) -> dict[str, Any]:
        api_kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": params.max_output_tokens or self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if params.temperature is not None:
            api_kwargs["temperature"] = params.temperature
        if params.top_k is not None:
            api_kwargs["top_k"] = params.top_k
        if params.top_p is not None:
            api_kwargs["top_p"] = params.top_p
        return api_kwargs

    async def _call_api_with_retry(self, prompt: str, params: LLMCallParams) -> Any:
        """API call with retries on transient errors."""
        import anthropic

        retryable_exceptions = (
            anthropic.RateLimitError,
            anthropic.APIConnectionError,
            anthropic.APITimeoutError,
            anthropic.InternalServerError,
        )

        async def _api_call() -> Any:
            client = self._get_client()
            return await client.messages.create(**self._api_kwargs(prompt, params))

        return await retry_with_exponential_backoff(
            _api_call,
            max_retries=3,
            initial_delay=1.0,
            max_delay=30.0,
            exceptions=retryable_exceptions,
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """User-facing message for an API error."""
        import anthropic

        if isinstance(error, anthropic.APIConnectionError) and not isinstance(
            error, anthropic.APITimeoutError
        ):
            return "Cannot reach the Anthropic API. Check the network connection."
        if isinstance(error, anthropic.RateLimitError):
            return "API rate limit exceeded. Try again later."
        if isinstance(error, anthropic.AuthenticationError):
            return "API authentication failed. Check ANTHROPIC_API_KEY."
        if isinstance(error, anthropic.PermissionDeniedError):
            return "The API key is not permitted to perform this operation."
        if isinstance(error, anthropic.BadRequestError):
            return "The request was rejected as invalid."
        if isinstance(error, anthropic.APITimeoutError):
            return "The API did not respond in time. Try again later."

        return f"Claude API error: {error}"
