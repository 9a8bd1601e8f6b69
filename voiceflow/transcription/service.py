"""Speech-to-text adapter using OpenAI Whisper.

Converts recorded audio into text for the extraction stage. Filipino has no
native Whisper language code, so it is transcribed with the English hint.

Without OPENAI_API_KEY the service runs in a degraded demo mode and returns a
fixed sample transcript per language instead of failing.
"""

import logging
import os

from openai import AsyncOpenAI

from voiceflow.extraction.schema import normalize_language
from voiceflow.shared.config import Settings
from voiceflow.shared.errors import TranscriptionError

logger = logging.getLogger(__name__)

# Supported languages the speech provider cannot take as a hint.
PROVIDER_LANGUAGE_OVERRIDES: dict[str, str] = {"tl": "en"}

SAMPLE_TRANSCRIPTS: dict[str, str] = {
    "id": "Pak Budi servis motor, ganti oli sama kampas rem, total 350 ribu, bayar minggu depan",
    "th": "ลูกค้าซื้อผัดไทย 3 จาน ส้มตำ 2 จาน รวม 250 บาท",
    "vi": "Chị Lan may áo dài, đặt cọc 500 nghìn, còn lại 1 triệu khi xong",
    "tl": "Si Maria bumili ng 3 de lata, 2 pack ng kape, 150 pesos, hulugan",
    "en": "Customer bought 3 shirts and 2 pants, total 150 dollars, payment due next week",
}


def provider_language(language: str) -> str:
    """Map a supported language onto a code the speech provider accepts."""
    language = normalize_language(language)
    return PROVIDER_LANGUAGE_OVERRIDES.get(language, language)


class TranscriptionService:
    """Transcribes audio buffers with OpenAI Whisper.

    Requires OPENAI_API_KEY environment variable; falls back to sample
    transcripts when it is missing.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: AsyncOpenAI | None = None

    def is_available(self) -> bool:
        return os.getenv("OPENAI_API_KEY") is not None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def transcribe(
        self,
        audio: bytes,
        language: str,
        filename: str = "audio.webm",
        content_type: str = "audio/webm",
    ) -> str:
        """Transcribe an audio buffer.

        Args:
            audio: Raw audio bytes as recorded by the browser
            language: Language spoken in the recording
            filename: File name hint, its extension tells the provider the container
            content_type: MIME type of the recording

        Returns:
            Transcribed text

        Raises:
            TranscriptionError: If the audio is empty or the provider fails (retryable)
        """
        language = normalize_language(language)

        if not self.is_available():
            logger.info(f"OPENAI_API_KEY not set, using sample transcript for '{language}'")
            return SAMPLE_TRANSCRIPTS[language]

        if not audio:
            raise TranscriptionError("Empty audio buffer provided", retryable=False)

        api_key = os.getenv("OPENAI_API_KEY")
        if self._client is None or self._client.api_key != api_key:
            self._client = AsyncOpenAI(api_key=api_key)

        logger.info(f"Transcribing {len(audio)} bytes of {content_type} ({language})")
        try:
            response = await self._client.audio.transcriptions.create(
                file=(filename, audio, content_type),
                model=self.settings.openai_transcription_model,
                language=provider_language(language),
                response_format="text",
            )
        except Exception as e:
            logger.error(f"Transcription error: {e}")
            raise TranscriptionError(f"Failed to transcribe audio: {e}") from e

        text = response if isinstance(response, str) else getattr(response, "text", "")
        return text.strip()
