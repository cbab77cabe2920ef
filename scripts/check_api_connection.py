#!/usr/bin/env python
"""
Provider connection check (real API calls, uses .env keys).

Run:
    python scripts/check_api_connection.py
"""

import asyncio
import io
import os
import sys
import wave
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from src.app.providers.base import LLMCallParams, ProviderError  # noqa: E402

PROMPT = "Reply with exactly: connection ok"


def silent_wav(seconds: float = 0.5, rate: int = 16000) -> bytes:
    """Minimal mono 16-bit WAV of silence."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * int(rate * seconds))
    return buffer.getvalue()


async def check_gemini() -> bool:
    print("\n" + "=" * 60)
    print("Google Gemini")
    print("=" * 60)

    if not (os.environ.get("GOOGLE_API_KEY") or os.environ.get("GEMINI_API_KEY")):
        print("GOOGLE_API_KEY is not set. Add it to .env.")
        return False

    try:
        from src.app.providers.gemini import GeminiProvider

        provider = GeminiProvider()
        result = await provider.generate(PROMPT, LLMCallParams(max_output_tokens=32))
    except ProviderError as e:
        print(f"Gemini error: {e.code}: {e.message}")
        return False

    print(f"Response: {result.text.strip()!r} (model: {result.model_used})")
    if result.fallback_triggered:
        print(f"Fallback used instead of {result.model_requested}")
    return True


async def check_anthropic() -> bool:
    print("\n" + "=" * 60)
    print("Anthropic Claude")
    print("=" * 60)

    if not os.environ.get("ANTHROPIC_API_KEY"):
        print("ANTHROPIC_API_KEY is not set (only needed with ai.llm.provider: anthropic).")
        return True

    try:
        from src.app.providers.anthropic import ClaudeProvider

        provider = ClaudeProvider()
        result = await provider.generate(PROMPT, LLMCallParams(max_output_tokens=32))
    except ProviderError as e:
        print(f"Anthropic error: {e.code}: {e.message}")
        return False

    print(f"Response: {result.text.strip()!r} (model: {result.model_used})")
    return True


async def check_elevenlabs() -> bool:
    print("\n" + "=" * 60)
    print("ElevenLabs speech-to-text")
    print("=" * 60)

    if not os.environ.get("ELEVENLABS_API_KEY"):
        print("ELEVENLABS_API_KEY is not set. Add it to .env.")
        return False

    try:
        from src.app.providers.elevenlabs import ElevenLabsProvider

        provider = ElevenLabsProvider()
        result = await provider.transcribe(silent_wav(), "silence.wav", "audio/wav")
    except ProviderError as e:
        print(f"ElevenLabs error: {e.code}: {e.message}")
        return False

    print(f"Transcript of silence: {result.text!r} (model: {result.model_used})")
    return True


async def main() -> int:
    results = {
        "gemini": await check_gemini(),
        "anthropic": await check_anthropic(),
        "elevenlabs": await check_elevenlabs(),
    }

    print("\n" + "=" * 60)
    for name, passed in results.items():
        print(f"  {name}: {'PASS' if passed else 'FAIL'}")
    print("=" * 60)

    return 0 if all(results.values()) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
