"""
test_transcription_service.py - audio download + speech-to-text
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from src.app.providers.base import SpeechToTextError
from src.app.services.transcribe import TranscriptionService
from src.domain.errors import ServiceError

AUDIO_URL = "https://storage.example.com/answers/q1.webm"


def audio_transport(status: int = 200, content: bytes = b"WEBM-AUDIO") -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(status, content=content))


class TestTranscribeUrl:
    async def test_downloads_and_transcribes(self, config, stt_provider):
        service = TranscriptionService(config, stt_provider, transport=audio_transport())

        text = await service.transcribe_url(AUDIO_URL)

        assert text == "hello world"
        call = stt_provider.transcribe.call_args
        assert call.args[0] == b"WEBM-AUDIO"
        assert call.kwargs == {"filename": "recording.webm", "content_type": "audio/webm"}

    async def test_url_required(self, config, stt_provider):
        service = TranscriptionService(config, stt_provider)

        with pytest.raises(ServiceError) as exc_info:
            await service.transcribe_url("")

        assert exc_info.value.code == "MISSING_REQUIRED_FIELD"
        assert exc_info.value.message == "Audio URL is required"

    async def test_download_error_status(self, config, stt_provider):
        service = TranscriptionService(config, stt_provider, transport=audio_transport(404))

        with pytest.raises(ServiceError) as exc_info:
            await service.transcribe_url(AUDIO_URL)

        assert exc_info.value.code == "AUDIO_FETCH_FAILED"
        assert exc_info.value.message == "Failed to fetch audio: 404 Not Found"
        stt_provider.transcribe.assert_not_called()

    async def test_download_connection_error(self, config, stt_provider):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        service = TranscriptionService(config, stt_provider, transport=httpx.MockTransport(handler))

        with pytest.raises(ServiceError) as exc_info:
            await service.transcribe_url(AUDIO_URL)

        assert exc_info.value.code == "AUDIO_FETCH_FAILED"

    async def test_provider_error_wrapped(self, config, stt_provider):
        stt_provider.transcribe = AsyncMock(
            side_effect=SpeechToTextError("STT_REJECTED", "ElevenLabs API error: 401 - bad key")
        )
        service = TranscriptionService(config, stt_provider, transport=audio_transport())

        with pytest.raises(ServiceError) as exc_info:
            await service.transcribe_url(AUDIO_URL)

        assert exc_info.value.code == "UPSTREAM_FAILED"
        assert exc_info.value.context["provider_code"] == "STT_REJECTED"

    async def test_missing_key(self, config, monkeypatch):
        monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)
        service = TranscriptionService(config, transport=audio_transport())

        with pytest.raises(ServiceError) as exc_info:
            await service.transcribe_url(AUDIO_URL)

        assert exc_info.value.code == "STT_NOT_CONFIGURED"


class TestTranscribeBytes:
    async def test_upload(self, config, stt_provider):
        service = TranscriptionService(config, stt_provider)

        text = await service.transcribe_bytes(b"OGG", "answer.ogg", "audio/ogg")

        assert text == "hello world"
        assert stt_provider.transcribe.call_args.kwargs["content_type"] == "audio/ogg"

    async def test_empty_audio(self, config, stt_provider):
        service = TranscriptionService(config, stt_provider)

        with pytest.raises(ServiceError) as exc_info:
            await service.transcribe_bytes(b"")

        assert exc_info.value.code == "MISSING_REQUIRED_FIELD"
