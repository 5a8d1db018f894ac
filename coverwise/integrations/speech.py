"""Text-to-speech providers used for voice readouts."""
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from coverwise.config.logging_config import get_logger
from coverwise.config.settings import Settings, get_settings

logger = get_logger(__name__)


class SpeechProvider(ABC):
    """Turns a short summary into spoken audio."""

    media_type: str = "audio/mpeg"

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Name used in log lines."""
        pass

    @abstractmethod
    async def speak(self, text: str) -> bytes:
        """
        Synthesize ``text``.

        Returns:
            Encoded audio (empty when the provider produces none)
        """
        pass


class NullSpeechProvider(SpeechProvider):
    """Silent provider used when no speech credential is configured."""

    @property
    def provider_name(self) -> str:
        return "null"

    async def speak(self, text: str) -> bytes:
        logger.debug("Readout skipped, no speech provider configured", length=len(text))
        return b""


class ElevenLabsSpeechProvider(SpeechProvider):
    """ElevenLabs text-to-speech over HTTP."""

    MODEL_ID = "eleven_monolingual_v1"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        voice_id: str,
        api_base: str = "https://api.elevenlabs.io/v1",
    ):
        self._http_client = http_client
        self._api_key = api_key
        self._voice_id = voice_id
        self._api_base = api_base.rstrip("/")

    @property
    def provider_name(self) -> str:
        return "elevenlabs"

    async def speak(self, text: str) -> bytes:
        """Raises httpx.HTTPError on transport or HTTP failure."""
        response = await self._http_client.post(
            f"{self._api_base}/text-to-speech/{self._voice_id}",
            headers={
                "xi-api-key": self._api_key,
                "Accept": "audio/mpeg",
            },
            json={
                "text": text,
                "model_id": self.MODEL_ID,
                "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
            },
        )
        response.raise_for_status()
        logger.debug("Speech synthesized", provider=self.provider_name, bytes=len(response.content))
        return response.content


def create_speech_provider(
    http_client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
) -> SpeechProvider:
    """ElevenLabs when a key is configured, otherwise the silent provider."""
    settings = settings or get_settings()
    if not settings.elevenlabs_api_key:
        return NullSpeechProvider()
    return ElevenLabsSpeechProvider(
        http_client,
        api_key=settings.elevenlabs_api_key,
        voice_id=settings.elevenlabs_voice_id,
        api_base=settings.elevenlabs_api_base,
    )
