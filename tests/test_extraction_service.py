"""
End-to-end tests for ExtractionService over a mocked Gemini endpoint.

Verifies:
- fenced plan JSON is recovered and defaulted
- single-shot tasks use the configured model and do not fall back
- EOB denial enrichment and readout wording
- pre-visit refusal and fallback
- input validation messages
"""
import json
from typing import List

import httpx
import pytest

from coverwise.integrations.speech import SpeechProvider
from coverwise.models.enums import ErrorClass
from coverwise.models.generation import GeoPoint, InlineDocument
from coverwise.models.results import EOBAnalysis
from coverwise.reasoning.denial_enrichment import DenialKnowledgeBase
from coverwise.reasoning.exceptions import GenerationError
from coverwise.reasoning.gemini_client import GeminiClient
from coverwise.reasoning.llm_gateway import LLMGateway
from coverwise.reasoning.model_catalog import ModelCatalogResolver
from coverwise.reasoning.prompt_builder import PromptBuilder
from coverwise.services.extraction_service import (
    AnalysisRefusedError,
    ExtractionService,
    InvalidInputError,
    eob_readout,
)
from coverwise.services.readout_service import ReadoutService
from tests.conftest import API_BASE, RecordingTransport, gemini_body

CARD = InlineDocument(mime_type="image/jpeg", data_base64="/9j/4AAQ")
EOB = InlineDocument(mime_type="application/pdf", data_base64="JVBERi0x")


class RecordingSpeech(SpeechProvider):
    def __init__(self):
        self.spoken: List[str] = []

    @property
    def provider_name(self) -> str:
        return "recording"

    async def speak(self, text: str) -> bytes:
        self.spoken.append(text)
        return b"audio"


def build_service(transport, settings, speech=None):
    client = transport.client()
    gateway = LLMGateway(
        GeminiClient(client, API_BASE),
        ModelCatalogResolver(client, API_BASE),
        credential=settings.gemini_api_key,
        http_client=client,
    )
    speech = speech or RecordingSpeech()
    service = ExtractionService(
        gateway=gateway,
        prompt_builder=PromptBuilder(),
        knowledge_base=DenialKnowledgeBase.from_file(),
        readout=ReadoutService(speech),
        settings=settings,
    )
    return service, speech


def reply(text, status=200):
    return lambda request: httpx.Response(status, json=gemini_body(text))


class TestParseInsurance:
    @pytest.mark.asyncio
    async def test_fenced_json_is_defaulted(self, settings):
        transport = RecordingTransport(reply('```json\n{"planName":"X","covered":[]}\n```'))
        service, speech = build_service(transport, settings)

        plan = await service.parse_insurance(document=CARD)
        await service.readout.drain()
        await service.gateway.aclose()

        assert plan.plan_name == "X"
        assert plan.covered == []
        assert plan.not_covered == []
        assert plan.summary == "Plan analyzed. Please verify coverage details with your insurer."
        assert transport.paths() == ["/v1beta/models/gemini-1.5-flash:generateContent"]
        assert speech.spoken == [
            "Your insurance plan has been analyzed. "
            "Plan analyzed. Please verify coverage details with your insurer."
        ]

    @pytest.mark.asyncio
    async def test_configured_model_overrides_default(self, settings):
        settings.gemini_model = "gemini-custom"
        transport = RecordingTransport(reply("{}"))
        service, _ = build_service(transport, settings)

        await service.parse_insurance(text="Aetna PPO")
        await service.gateway.aclose()

        assert transport.paths() == ["/v1beta/models/gemini-custom:generateContent"]

    @pytest.mark.asyncio
    async def test_not_found_does_not_fall_back(self, settings):
        transport = RecordingTransport(
            lambda request: httpx.Response(404, json={"error": {"message": "not found"}})
        )
        service, speech = build_service(transport, settings)

        with pytest.raises(GenerationError) as exc_info:
            await service.parse_insurance(text="Aetna PPO")
        await service.gateway.aclose()

        assert exc_info.value.error_class == ErrorClass.NOT_FOUND
        assert len(transport.requests) == 1
        assert speech.spoken == []

    @pytest.mark.asyncio
    async def test_requires_text_or_document(self, settings):
        transport = RecordingTransport(reply("{}"))
        service, _ = build_service(transport, settings)
        with pytest.raises(InvalidInputError, match="Please upload a file or enter insurance details."):
            await service.parse_insurance(text="   ")
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_rejects_unsupported_file(self, settings):
        transport = RecordingTransport(reply("{}"))
        service, _ = build_service(transport, settings)
        with pytest.raises(InvalidInputError, match="Please upload a JPG, PNG, WEBP, or PDF file."):
            await service.parse_insurance(document=InlineDocument("image/gif", "R0lG"))


class TestSearchTreatment:
    @pytest.mark.asyncio
    async def test_readout_and_model(self, settings):
        body = json.dumps({"procedureName": "Knee MRI", "summary": "About $1,200 before insurance."})
        transport = RecordingTransport(reply(body))
        service, speech = build_service(transport, settings)

        estimate = await service.search_treatment("knee MRI", {"planName": "Gold PPO"})
        await service.readout.drain()
        await service.gateway.aclose()

        assert estimate.procedure_name == "Knee MRI"
        assert transport.paths() == ["/v1beta/models/gemini-2.0-flash:generateContent"]
        assert '"planName": "Gold PPO"' in transport.json_bodies()[0]["contents"][0]["parts"][0]["text"]
        assert speech.spoken == ["I found some information for knee MRI. About $1,200 before insurance."]

    @pytest.mark.asyncio
    async def test_empty_query(self, settings):
        service, _ = build_service(RecordingTransport(reply("{}")), settings)
        with pytest.raises(InvalidInputError):
            await service.search_treatment("  ")


class TestAnalyzeEOB:
    @pytest.mark.asyncio
    async def test_denied_claim_is_enriched(self, settings):
        body = json.dumps({"denialCode": "co-16", "billedAmount": 500, "provider": "City Clinic"})
        transport = RecordingTransport(reply(body))
        service, speech = build_service(transport, settings)

        analysis = await service.analyze_eob(EOB)
        await service.readout.drain()
        await service.gateway.aclose()

        assert analysis.denial_code == "CO-16"
        assert analysis.intelligence.reason == "Requires Information"
        assert speech.spoken == [
            "This claim was denied for Requires Information. "
            "You have a 85 percent chance of winning an appeal."
        ]

    @pytest.mark.asyncio
    async def test_unknown_code_uses_default(self, settings):
        transport = RecordingTransport(reply('{"denialCode": "ZZ-1"}'))
        service, _ = build_service(transport, settings)

        analysis = await service.analyze_eob(EOB)
        await service.gateway.aclose()

        assert analysis.denial_code == "CO-50"
        assert analysis.intelligence.code == "CO-50"

    @pytest.mark.asyncio
    async def test_paid_claim(self, settings):
        transport = RecordingTransport(reply('{"denialCode": null, "patientResponsibility": "$40"}'))
        service, speech = build_service(transport, settings)

        analysis = await service.analyze_eob(EOB)
        await service.readout.drain()
        await service.gateway.aclose()

        assert analysis.intelligence is None
        assert speech.spoken == ["This claim was processed. Your patient responsibility is $40."]

    @pytest.mark.asyncio
    async def test_requires_document(self, settings):
        service, _ = build_service(RecordingTransport(reply("{}")), settings)
        with pytest.raises(InvalidInputError, match="Please upload an EOB or medical bill first."):
            await service.analyze_eob(None)

    def test_fully_covered_readout(self):
        assert eob_readout(EOBAnalysis()) == "This claim appears to be fully covered or paid."

    def test_fractional_amount_readout(self):
        assert eob_readout(EOBAnalysis(patient_responsibility=12.5)) == (
            "This claim was processed. Your patient responsibility is $12.50."
        )


class TestAnalyzePreVisit:
    @pytest.mark.asyncio
    async def test_falls_back_after_not_found(self, settings):
        def handler(request):
            if "gemini-2.5-flash" in request.url.path:
                return httpx.Response(404, json={"error": {"message": "not found"}})
            return httpx.Response(200, json=gemini_body('{"treatment": "ACL repair", "summary": "Pre-auth needed."}'))

        transport = RecordingTransport(handler)
        service, speech = build_service(transport, settings)

        analysis = await service.analyze_pre_visit("ACL surgery", location=GeoPoint(34.07, -118.44))
        await service.readout.drain()
        await service.gateway.aclose()

        assert analysis.treatment == "ACL repair"
        assert len(transport.requests) == 2
        assert speech.spoken == ["Pre-auth needed."]

    @pytest.mark.asyncio
    async def test_previsit_override_tried_first(self, settings):
        settings.gemini_model = "general-model"
        settings.gemini_model_previsit = "previsit-model"
        transport = RecordingTransport(reply("{}"))
        service, _ = build_service(transport, settings)

        await service.analyze_pre_visit("hip replacement")
        await service.gateway.aclose()

        assert transport.paths() == ["/v1beta/models/previsit-model:generateContent"]

    @pytest.mark.asyncio
    async def test_refusal(self, settings):
        transport = RecordingTransport(
            reply('{"type": "denial", "denialMessage": "I can only help with hospital visits."}')
        )
        service, speech = build_service(transport, settings)

        with pytest.raises(AnalysisRefusedError) as exc_info:
            await service.analyze_pre_visit("what's the weather?")
        await service.readout.drain()
        await service.gateway.aclose()

        assert exc_info.value.message == "I can only help with hospital visits."
        assert speech.spoken == []

    @pytest.mark.asyncio
    async def test_requires_query_or_document(self, settings):
        service, _ = build_service(RecordingTransport(reply("{}")), settings)
        with pytest.raises(InvalidInputError, match="Please upload an insurance card or type a message."):
            await service.analyze_pre_visit("")

    @pytest.mark.asyncio
    async def test_missing_key(self, settings):
        settings.gemini_api_key = ""
        transport = RecordingTransport(reply("{}"))
        service, _ = build_service(transport, settings)

        with pytest.raises(GenerationError) as exc_info:
            await service.analyze_pre_visit("knee surgery")

        assert exc_info.value.user_message == (
            "Missing or invalid Gemini API key. Set GEMINI_API_KEY and restart."
        )
        assert transport.requests == []
