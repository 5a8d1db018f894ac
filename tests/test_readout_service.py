"""
Tests for voice readouts and speech providers.

Verifies:
- announce returns before speech completes
- provider failures are logged and swallowed
- synthesized audio is kept per correlation id and served on demand
- ElevenLabs request shape
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from coverwise.integrations.speech import (
    ElevenLabsSpeechProvider,
    NullSpeechProvider,
    SpeechProvider,
    create_speech_provider,
)
from coverwise.config.request_context import correlation_scope, get_correlation_id
from coverwise.services.readout_service import ReadoutService, ReadoutUnavailableError
from tests.conftest import RecordingTransport


def mock_provider(side_effect=None):
    provider = MagicMock(spec=SpeechProvider)
    provider.provider_name = "mock"
    provider.media_type = "audio/mpeg"
    provider.speak = AsyncMock(return_value=b"audio", side_effect=side_effect)
    return provider


class TestReadoutService:
    @pytest.mark.asyncio
    async def test_announce_schedules_in_background(self):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_speak(text):
            started.set()
            await release.wait()
            return b"audio"

        provider = mock_provider(side_effect=slow_speak)
        readout = ReadoutService(provider)

        task = readout.announce("Plan analyzed.")
        assert task is not None
        assert not task.done()
        await started.wait()
        assert readout.pending_count == 1

        release.set()
        await readout.drain()
        provider.speak.assert_awaited_once_with("Plan analyzed.")
        assert readout.pending_count == 0

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self):
        provider = mock_provider(side_effect=httpx.ConnectError("offline"))
        readout = ReadoutService(provider)

        task = readout.announce("This claim appears to be fully covered or paid.")
        await readout.drain()

        assert task.done()
        assert task.exception() is None

    @pytest.mark.asyncio
    async def test_blank_text_is_ignored(self):
        provider = mock_provider()
        readout = ReadoutService(provider)

        assert readout.announce("   ") is None
        await readout.drain()
        provider.speak.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_defaults_to_silent_provider(self):
        readout = ReadoutService()
        assert isinstance(readout.provider, NullSpeechProvider)
        readout.announce("hello")
        await readout.drain()

    @pytest.mark.asyncio
    async def test_audio_is_stored_under_correlation_id(self):
        provider = mock_provider()
        readout = ReadoutService(provider)

        with correlation_scope("req-1"):
            readout.announce("Your insurance plan has been analyzed.")
        assert get_correlation_id() is None
        await readout.drain()

        stored = readout.latest("req-1")
        assert stored is not None
        assert stored.audio == b"audio"
        assert stored.media_type == "audio/mpeg"
        assert stored.text == "Your insurance plan has been analyzed."
        assert readout.latest("other") is None

    @pytest.mark.asyncio
    async def test_later_readout_replaces_earlier_and_store_is_bounded(self):
        provider = mock_provider()
        provider.speak = AsyncMock(side_effect=[b"first", b"second", b"third"])
        readout = ReadoutService(provider, max_stored=1)

        readout.announce("one", key="a")
        await readout.drain()
        readout.announce("two", key="a")
        await readout.drain()
        assert readout.latest("a").audio == b"second"

        readout.announce("three", key="b")
        await readout.drain()
        assert readout.latest("a") is None
        assert readout.latest("b").audio == b"third"

    @pytest.mark.asyncio
    async def test_silent_or_failed_readouts_are_not_stored(self):
        readout = ReadoutService()
        readout.announce("hello", key="a")
        await readout.drain()
        assert readout.latest("a") is None

        failing = ReadoutService(mock_provider(side_effect=httpx.ConnectError("offline")))
        failing.announce("hello", key="a")
        await failing.drain()
        assert failing.latest("a") is None

    @pytest.mark.asyncio
    async def test_speak_now_returns_audio(self):
        provider = mock_provider()
        readout = ReadoutService(provider)

        spoken = await readout.speak_now("  Deductible: $500  ")

        assert spoken.audio == b"audio"
        provider.speak.assert_awaited_once_with("Deductible: $500")

    @pytest.mark.asyncio
    async def test_speak_now_unavailable(self):
        with pytest.raises(ReadoutUnavailableError, match="not configured"):
            await ReadoutService().speak_now("hello")
        with pytest.raises(ReadoutUnavailableError, match="temporarily unavailable"):
            await ReadoutService(mock_provider(side_effect=httpx.ConnectError("offline"))).speak_now("hello")
        with pytest.raises(ReadoutUnavailableError, match="Nothing to read"):
            await ReadoutService(mock_provider()).speak_now("  ")


class TestElevenLabsSpeechProvider:
    @pytest.mark.asyncio
    async def test_posts_text_to_voice(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, content=b"mp3-bytes"))
        async with transport.client() as client:
            provider = ElevenLabsSpeechProvider(client, api_key="xi-key", voice_id="voice-1")
            audio = await provider.speak("Hello")

        assert audio == b"mp3-bytes"
        request = transport.requests[0]
        assert request.url.path == "/v1/text-to-speech/voice-1"
        assert request.headers["xi-api-key"] == "xi-key"
        assert transport.json_bodies()[0]["text"] == "Hello"

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = RecordingTransport(lambda request: httpx.Response(401))
        async with transport.client() as client:
            provider = ElevenLabsSpeechProvider(client, api_key="bad", voice_id="voice-1")
            with pytest.raises(httpx.HTTPStatusError):
                await provider.speak("Hello")

    @pytest.mark.asyncio
    async def test_factory_picks_provider_from_settings(self, settings):
        async with httpx.AsyncClient() as client:
            assert isinstance(create_speech_provider(client, settings), NullSpeechProvider)
            settings.elevenlabs_api_key = "xi-key"
            assert isinstance(create_speech_provider(client, settings), ElevenLabsSpeechProvider)
