"""Extraction service - the four AI-assisted analyses behind the app pages."""
from typing import Any, Dict, Optional

from coverwise.config.logging_config import get_logger
from coverwise.config.settings import Settings, get_settings
from coverwise.models.enums import ExtractionTask
from coverwise.models.generation import (
    ALLOWED_DOCUMENT_TYPES,
    GeoPoint,
    InlineDocument,
    TaskInputs,
)
from coverwise.models.results import (
    DEFAULT_REFUSAL_MESSAGE,
    EOBAnalysis,
    PlanSummary,
    PreVisitAnalysis,
    TreatmentEstimate,
)
from coverwise.reasoning.denial_enrichment import (
    DenialKnowledgeBase,
    apply_denial_enrichment,
    get_denial_knowledge_base,
)
from coverwise.reasoning.llm_gateway import TASK_DEFAULT_MODELS, LLMGateway, get_llm_gateway
from coverwise.reasoning.prompt_builder import PromptBuilder
from coverwise.services.readout_service import ReadoutService, get_readout_service

logger = get_logger(__name__)

UNSUPPORTED_FILE_MESSAGE = "Please upload a JPG, PNG, WEBP, or PDF file."


class InvalidInputError(Exception):
    """The caller's input cannot start an analysis."""
    pass


class AnalysisRefusedError(Exception):
    """The model declined a query outside the pre-visit domain."""

    def __init__(self, message: str = DEFAULT_REFUSAL_MESSAGE):
        super().__init__(message)
        self.message = message


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else f"{amount:.2f}"


def eob_readout(analysis: EOBAnalysis) -> str:
    """Spoken summary of an EOB result."""
    if analysis.intelligence is not None:
        return (
            f"This claim was denied for {analysis.intelligence.reason}. "
            f"You have a {analysis.intelligence.success_probability} percent chance "
            f"of winning an appeal."
        )
    if analysis.patient_responsibility > 0:
        return (
            "This claim was processed. Your patient responsibility is "
            f"${_format_amount(analysis.patient_responsibility)}."
        )
    return "This claim appears to be fully covered or paid."


class ExtractionService:
    """
    Service for insurance, treatment, EOB and pre-visit analyses.

    Plan, treatment and EOB calls go to one configured model; the pre-visit
    analysis walks the fallback chain. A readout is scheduled only after a
    result is ready.
    """

    def __init__(
        self,
        gateway: Optional[LLMGateway] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        knowledge_base: Optional[DenialKnowledgeBase] = None,
        readout: Optional[ReadoutService] = None,
        settings: Optional[Settings] = None,
    ):
        self.gateway = gateway or get_llm_gateway()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.knowledge_base = knowledge_base or get_denial_knowledge_base()
        self.readout = readout or get_readout_service()
        self._settings = settings or get_settings()

    def _model_for(self, task: ExtractionTask) -> str:
        return self._settings.gemini_model or TASK_DEFAULT_MODELS[task]

    @staticmethod
    def _check_document(document: Optional[InlineDocument]) -> None:
        if document is not None and document.mime_type not in ALLOWED_DOCUMENT_TYPES:
            raise InvalidInputError(UNSUPPORTED_FILE_MESSAGE)

    async def parse_insurance(
        self,
        text: str = "",
        document: Optional[InlineDocument] = None,
    ) -> PlanSummary:
        """Extract plan details from a card image and/or a description."""
        text = (text or "").strip()
        if not text and document is None:
            raise InvalidInputError("Please upload a file or enter insurance details.")
        self._check_document(document)

        task = ExtractionTask.PLAN_EXTRACTION
        request = self.prompt_builder.build_request(task, TaskInputs(text=text, document=document))
        logger.info("Parsing insurance", has_document=document is not None)
        plan = await self.gateway.resolve_single(task, request, self._model_for(task))

        self.readout.announce(f"Your insurance plan has been analyzed. {plan.summary}")
        return plan

    async def search_treatment(
        self,
        query: str,
        insurance_context: Optional[Dict[str, Any]] = None,
    ) -> TreatmentEstimate:
        """Estimate typical cost of a treatment, optionally under a known plan."""
        query = (query or "").strip()
        if not query:
            raise InvalidInputError("Please enter a treatment or procedure to search.")

        task = ExtractionTask.TREATMENT_COST_LOOKUP
        request = self.prompt_builder.build_request(
            task, TaskInputs(text=query, insurance_context=insurance_context)
        )
        logger.info("Searching treatment", query=query, has_insurance=insurance_context is not None)
        estimate = await self.gateway.resolve_single(task, request, self._model_for(task))

        self.readout.announce(f"I found some information for {query}. {estimate.summary}")
        return estimate

    async def analyze_eob(self, document: Optional[InlineDocument]) -> EOBAnalysis:
        """Extract an EOB and attach denial intelligence when a code is present."""
        if document is None:
            raise InvalidInputError("Please upload an EOB or medical bill first.")
        self._check_document(document)

        task = ExtractionTask.EOB_DENIAL_EXTRACTION
        request = self.prompt_builder.build_request(task, TaskInputs(document=document))
        logger.info("Analyzing EOB", mime_type=document.mime_type)
        extracted = await self.gateway.resolve_single(task, request, self._model_for(task))
        analysis = apply_denial_enrichment(extracted, self.knowledge_base)

        logger.info(
            "EOB analyzed",
            denied=analysis.is_denied,
            denial_code=analysis.denial_code,
            line_items=len(analysis.line_items),
        )
        self.readout.announce(eob_readout(analysis))
        return analysis

    async def analyze_pre_visit(
        self,
        query: str = "",
        document: Optional[InlineDocument] = None,
        location: Optional[GeoPoint] = None,
    ) -> PreVisitAnalysis:
        """
        Coverage, cost and preparation guidance before a hospital visit.

        Raises:
            InvalidInputError: If neither a query nor a document is given
            AnalysisRefusedError: If the query is outside the assistant's scope
            GenerationError: If every candidate model failed
        """
        query = (query or "").strip()
        if not query and document is None:
            raise InvalidInputError("Please upload an insurance card or type a message.")
        self._check_document(document)

        task = ExtractionTask.PRE_VISIT_ANALYSIS
        request = self.prompt_builder.build_request(
            task, TaskInputs(text=query, document=document, location=location)
        )
        preferred = self._settings.gemini_model_previsit or self._settings.gemini_model
        logger.info(
            "Analyzing pre-visit",
            has_document=document is not None,
            has_location=location is not None,
            preferred_model=preferred,
        )
        analysis = await self.gateway.resolve_with_fallback(task, request, preferred)

        if analysis.is_refusal:
            logger.info("Pre-visit query refused by model")
            raise AnalysisRefusedError(analysis.denial_message or DEFAULT_REFUSAL_MESSAGE)

        self.readout.announce(analysis.summary)
        return analysis
