"""
ElevenLabs speech-to-text Provider.

POST {base_url}/v1/speech-to-text, multipart (file + model_id), header xi-api-key.
Response JSON carries the transcript in "text".
"""

import logging
import os
from typing import Any

import httpx

from src.utils.retry import RetryableError, retry_with_exponential_backoff

from .base import SpeechToTextError, SpeechToTextProvider, TranscriptionResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.elevenlabs.io"
DEFAULT_STT_MODEL = "scribe_v1"
DEFAULT_TIMEOUT = 60.0


class ElevenLabsProvider(SpeechToTextProvider):
    """
    ElevenLabs STT Provider.

    Usage:
        provider = ElevenLabsProvider(model="scribe_v1")
        result = await provider.transcribe(audio_bytes)
    """

    def __init__(
        self,
        model: str = DEFAULT_STT_MODEL,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            model: STT model ID (config ai.stt.model)
            api_key: API key (env ELEVENLABS_API_KEY)
            base_url: API base URL
            timeout: request timeout (seconds)
            transport: httpx transport override (tests)

        Raises:
            SpeechToTextError: no API key (fail-fast)
        """
        self.model = model
        self.api_key = api_key or os.environ.get("ELEVENLABS_API_KEY")

        if not self.api_key:
            raise SpeechToTextError(
                "STT_NOT_CONFIGURED",
                "ElevenLabs API key not configured",
            )

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> TranscriptionResult:
        """
        Transcribe audio.

        5xx/429/connection errors are retried (3 times, exponential backoff).

        Raises:
            SpeechToTextError: API rejected the request or kept failing
        """
        logger.info(f"Sending {len(audio)} bytes to ElevenLabs speech-to-text")

        async def _api_call() -> dict[str, Any]:
            return await self._post(audio, filename, content_type)

        try:
            data = await retry_with_exponential_backoff(
                _api_call,
                max_retries=3,
                initial_delay=1.0,
                max_delay=10.0,
                exceptions=(RetryableError,),
            )
        except RetryableError as e:
            raise SpeechToTextError(
                "STT_FAILED",
                f"ElevenLabs API error: {e}",
                model=self.model,
            ) from e

        return TranscriptionResult(
            text=data.get("text") or "",
            model_used=self.model,
            language_code=data.get("language_code"),
        )

    async def _post(self, audio: bytes, filename: str, content_type: str) -> dict[str, Any]:
        url = f"{self.base_url}/v1/speech-to-text"
        files = {"file": (filename, audio, content_type)}
        data = {"model_id": self.model}
        headers = {"xi-api-key": self.api_key}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, files=files, data=data)
        except httpx.TransportError as e:
            raise RetryableError(f"connection failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableError(f"{response.status_code} - {response.text}")

        if response.status_code >= 400:
            logger.error(f"ElevenLabs API error response: {response.text}")
            raise SpeechToTextError(
                "STT_REJECTED",
                f"ElevenLabs API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            payload: dict[str, Any] = response.json()
        except ValueError as e:
            raise SpeechToTextError(
                "STT_BAD_RESPONSE",
                "ElevenLabs API returned a non-JSON response",
            ) from e
        return payload
