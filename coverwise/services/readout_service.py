"""Voice readout of analysis summaries."""
import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Set

import httpx

from coverwise.config.logging_config import get_logger
from coverwise.config.request_context import get_correlation_id
from coverwise.integrations.speech import NullSpeechProvider, SpeechProvider, create_speech_provider

logger = get_logger(__name__)

MAX_STORED_READOUTS = 100


class ReadoutUnavailableError(Exception):
    """No audio could be produced for an on-demand readout."""
    pass


@dataclass
class Readout:
    """Synthesized audio for one piece of text."""
    text: str
    audio: bytes
    media_type: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def headers(self) -> Dict[str, str]:
        return {"X-Readout-Created-At": self.created_at.isoformat()}


class ReadoutService:
    """
    Speaks summaries in the background once a result has been returned.

    The latest audio per request correlation id is kept (bounded) so the
    client can fetch and play it. Background failures are logged and dropped.
    """

    def __init__(
        self,
        provider: Optional[SpeechProvider] = None,
        max_stored: int = MAX_STORED_READOUTS,
    ):
        self.provider = provider or NullSpeechProvider()
        self._pending: Set["asyncio.Task[None]"] = set()
        self._latest: "OrderedDict[str, Readout]" = OrderedDict()
        self._max_stored = max_stored
        logger.info("Readout service initialized", provider=self.provider.provider_name)

    def announce(self, text: str, key: Optional[str] = None) -> Optional["asyncio.Task[None]"]:
        """
        Schedule ``text`` for speech and return immediately.

        The audio is stored under ``key``, defaulting to the current
        correlation id. Must be called from a running event loop. Blank
        text is ignored.
        """
        text = (text or "").strip()
        if not text:
            return None
        key = key or get_correlation_id()
        task = asyncio.get_running_loop().create_task(self._speak(text, key))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _speak(self, text: str, key: Optional[str]) -> None:
        try:
            audio = await self.provider.speak(text)
        except Exception as e:
            logger.warning(
                "Voice readout failed",
                provider=self.provider.provider_name,
                error=str(e),
            )
            return
        if not audio:
            return
        if key is None:
            logger.debug("Readout produced outside a request, not stored", bytes=len(audio))
            return
        self._store(key, Readout(text=text, audio=audio, media_type=self.provider.media_type))
        logger.debug("Voice readout stored", provider=self.provider.provider_name, key=key, bytes=len(audio))

    def _store(self, key: str, readout: Readout) -> None:
        self._latest[key] = readout
        self._latest.move_to_end(key)
        while len(self._latest) > self._max_stored:
            self._latest.popitem(last=False)

    def latest(self, key: str) -> Optional[Readout]:
        """Most recent readout stored under ``key``."""
        return self._latest.get(key)

    async def speak_now(self, text: str) -> Readout:
        """
        Synthesize ``text`` and return the audio directly.

        Raises:
            ReadoutUnavailableError: If the text is blank, speech is not
                configured, or the provider failed
        """
        text = (text or "").strip()
        if not text:
            raise ReadoutUnavailableError("Nothing to read.")
        try:
            audio = await self.provider.speak(text)
        except Exception as e:
            logger.warning("On-demand readout failed", provider=self.provider.provider_name, error=str(e))
            raise ReadoutUnavailableError("Voice readout is temporarily unavailable.") from e
        if not audio:
            raise ReadoutUnavailableError("Voice readout is not configured.")
        return Readout(text=text, audio=audio, media_type=self.provider.media_type)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled readout to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


# Global instance
_readout_service: Optional[ReadoutService] = None
_speech_http_client: Optional[httpx.AsyncClient] = None


def get_readout_service() -> ReadoutService:
    """Get or create the global readout service."""
    global _readout_service, _speech_http_client
    if _readout_service is None:
        _speech_http_client = httpx.AsyncClient(timeout=30.0)
        _readout_service = ReadoutService(create_speech_provider(_speech_http_client))
    return _readout_service


async def shutdown_readout_service() -> None:
    """Finish outstanding readouts and release the speech client."""
    global _readout_service, _speech_http_client
    if _readout_service is not None:
        await _readout_service.drain()
        _readout_service = None
    if _speech_http_client is not None:
        await _speech_http_client.aclose()
        _speech_http_client = None
