"""
Transcription Service: recorded answer audio → text.
"""

import logging

import httpx

from src.app.providers import create_stt_provider
from src.app.providers.base import SpeechToTextError, SpeechToTextProvider
from src.domain.errors import ErrorCodes, ServiceError

logger = logging.getLogger(__name__)

AUDIO_FETCH_TIMEOUT = 30.0


class TranscriptionService:
    """
    Speech-to-text service.

    Usage:
        service = TranscriptionService(config)
        text = await service.transcribe_url(audio_url)
    """

    def __init__(
        self,
        config: dict,
        provider: SpeechToTextProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            config: settings (ai.stt)
            provider: STT Provider (None: built from config on first use)
            transport: httpx transport for audio downloads (tests)
        """
        self.config = config
        self._provider = provider
        self._transport = transport

    def _get_provider(self) -> SpeechToTextProvider:
        if self._provider is None:
            try:
                self._provider = create_stt_provider(self.config)
            except SpeechToTextError as e:
                raise ServiceError(ErrorCodes.STT_NOT_CONFIGURED, e.message) from e
        return self._provider

    async def fetch_audio(self, audio_url: str) -> bytes:
        """
        Download recorded audio.

        Raises:
            ServiceError: AUDIO_FETCH_FAILED
        """
        try:
            async with httpx.AsyncClient(
                timeout=AUDIO_FETCH_TIMEOUT,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(audio_url)
        except httpx.HTTPError as e:
            raise ServiceError(
                ErrorCodes.AUDIO_FETCH_FAILED,
                f"Failed to fetch audio: {e}",
            ) from e

        if response.status_code >= 400:
            logger.error(f"Failed to fetch audio: {response.status_code} {response.reason_phrase}")
            raise ServiceError(
                ErrorCodes.AUDIO_FETCH_FAILED,
                f"Failed to fetch audio: {response.status_code} {response.reason_phrase}",
            )

        logger.info(f"Audio downloaded: {len(response.content)} bytes")
        return response.content

    async def transcribe_url(self, audio_url: str | None) -> str:
        """
        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, STT_NOT_CONFIGURED,
                AUDIO_FETCH_FAILED, UPSTREAM_FAILED
        """
        if not audio_url:
            raise ServiceError(ErrorCodes.MISSING_REQUIRED_FIELD, "Audio URL is required")

        provider = self._get_provider()
        audio = await self.fetch_audio(audio_url)
        return await self._transcribe(provider, audio, "recording.webm", "audio/webm")

    async def transcribe_bytes(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> str:
        """
        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, STT_NOT_CONFIGURED, UPSTREAM_FAILED
        """
        if not audio:
            raise ServiceError(ErrorCodes.MISSING_REQUIRED_FIELD, "Audio file is empty")
        return await self._transcribe(self._get_provider(), audio, filename, content_type)

    async def _transcribe(
        self,
        provider: SpeechToTextProvider,
        audio: bytes,
        filename: str,
        content_type: str,
    ) -> str:
        try:
            result = await provider.transcribe(audio, filename=filename, content_type=content_type)
        except SpeechToTextError as e:
            raise ServiceError(
                ErrorCodes.UPSTREAM_FAILED,
                e.message,
                provider_code=e.code,
            ) from e

        logger.info(f"Transcribed {len(audio)} bytes into {len(result.text)} chars")
        return result.text
