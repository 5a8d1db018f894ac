"""
Tests for GeminiClient outcome classification.

Verifies:
- 2xx with text -> GenerationSuccess
- status mapping 401/429/403/404/other
- 2xx without text -> EMPTY_OUTPUT
- transport failures -> OTHER without a status
- request shape: document part first, key as query parameter
"""
import httpx
import pytest

from coverwise.models.enums import ErrorClass
from coverwise.models.generation import (
    GenerationFailure,
    GenerationRequest,
    GenerationSuccess,
    InlineDocument,
)
from coverwise.reasoning.gemini_client import (
    GeminiClient,
    classify_status,
    extract_candidate_text,
)
from tests.conftest import API_BASE, RecordingTransport, gemini_body

REQUEST = GenerationRequest(instructions="Return JSON")


class TestClassification:
    @pytest.mark.parametrize("status,expected", [
        (401, ErrorClass.UNAUTHORIZED),
        (429, ErrorClass.RATE_LIMITED),
        (403, ErrorClass.NOT_FOUND),
        (404, ErrorClass.NOT_FOUND),
        (400, ErrorClass.OTHER),
        (500, ErrorClass.OTHER),
        (503, ErrorClass.OTHER),
    ])
    def test_classify_status(self, status, expected):
        assert classify_status(status) == expected


class TestExtractCandidateText:
    def test_joins_text_parts(self):
        data = {"candidates": [{"content": {"parts": [{"text": " {\"a\""}, {"text": ": 1} "}]}}]}
        assert extract_candidate_text(data) == '{"a": 1}'

    @pytest.mark.parametrize("data", [
        None,
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": [{"inline_data": {}}]}}]},
    ])
    def test_missing_text_is_empty(self, data):
        assert extract_candidate_text(data) == ""


class TestInvoke:
    @pytest.mark.asyncio
    async def test_success(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, json=gemini_body('{"ok": true}')))
        async with transport.client() as client:
            outcome = await GeminiClient(client, API_BASE).invoke("gemini-2.5-flash", REQUEST, "test-key")

        assert outcome == GenerationSuccess(model="gemini-2.5-flash", raw_text='{"ok": true}')
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
        assert request.url.params["key"] == "test-key"

    @pytest.mark.asyncio
    async def test_document_part_precedes_text(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, json=gemini_body("{}")))
        document = InlineDocument.from_bytes(b"card", "image/png")
        async with transport.client() as client:
            await GeminiClient(client, API_BASE).invoke(
                "gemini-2.0-flash",
                GenerationRequest(instructions="Extract", document=document),
                "test-key",
            )

        parts = transport.json_bodies()[0]["contents"][0]["parts"]
        assert parts[0] == {"inline_data": {"mime_type": "image/png", "data": "Y2FyZA=="}}
        assert parts[1] == {"text": "Extract"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,expected", [
        (401, ErrorClass.UNAUTHORIZED),
        (429, ErrorClass.RATE_LIMITED),
        (404, ErrorClass.NOT_FOUND),
        (500, ErrorClass.OTHER),
    ])
    async def test_http_errors_are_classified(self, status, expected):
        transport = RecordingTransport(
            lambda request: httpx.Response(status, json={"error": {"message": "details here"}})
        )
        async with transport.client() as client:
            outcome = await GeminiClient(client, API_BASE).invoke("m", REQUEST, "test-key")

        assert isinstance(outcome, GenerationFailure)
        assert outcome.error_class == expected
        assert outcome.http_status == status
        assert outcome.message == "details here"
        assert outcome.model == "m"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(200, json={"candidates": []}),
        httpx.Response(200, json=gemini_body("   ")),
        httpx.Response(200, text="<html>"),
    ])
    async def test_empty_output(self, response):
        transport = RecordingTransport(lambda request: response)
        async with transport.client() as client:
            outcome = await GeminiClient(client, API_BASE).invoke("m", REQUEST, "test-key")

        assert isinstance(outcome, GenerationFailure)
        assert outcome.error_class == ErrorClass.EMPTY_OUTPUT
        assert outcome.message == "No model output found from m."

    @pytest.mark.asyncio
    async def test_transport_error_is_other(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        transport = RecordingTransport(handler)
        async with transport.client() as client:
            outcome = await GeminiClient(client, API_BASE).invoke("m", REQUEST, "test-key")

        assert isinstance(outcome, GenerationFailure)
        assert outcome.error_class == ErrorClass.OTHER
        assert outcome.http_status is None
