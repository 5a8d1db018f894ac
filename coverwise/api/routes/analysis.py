"""Analysis API routes for insurance, treatment, EOB and pre-visit."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from coverwise.api.dependencies import get_extraction_service, get_gateway
from coverwise.api.requests import (
    AnalyzeEOBRequest,
    ParseInsuranceRequest,
    PreVisitRequest,
    TreatmentSearchRequest,
)
from coverwise.api.responses import ErrorResponse, ModelListResponse
from coverwise.config.logging_config import get_logger
from coverwise.reasoning.llm_gateway import LLMGateway
from coverwise.services.extraction_service import ExtractionService

logger = get_logger(__name__)

router = APIRouter(tags=["Analysis"])

_ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.get("/models", response_model=ModelListResponse)
async def list_models(gateway: LLMGateway = Depends(get_gateway)):
    """Ranked Gemini models that support generateContent for the configured key."""
    models = await gateway.list_models()
    return ModelListResponse(models=models, count=len(models))


@router.post("/insurance/parse", responses=_ERROR_RESPONSES)
async def parse_insurance(
    request: ParseInsuranceRequest,
    service: ExtractionService = Depends(get_extraction_service),
):
    """
    Extract plan details from an insurance card and/or description.

    Returns:
        Plan summary with every field populated
    """
    logger.info("API: Parsing insurance", has_document=request.document is not None)
    document = request.document.to_inline() if request.document else None
    plan = await service.parse_insurance(text=request.text, document=document)
    return plan.to_dict()


@router.post("/treatments/search", responses=_ERROR_RESPONSES)
async def search_treatment(
    request: TreatmentSearchRequest,
    service: ExtractionService = Depends(get_extraction_service),
):
    """Typical cost of a treatment, personalized when a plan is supplied."""
    logger.info("API: Searching treatment", query=request.query)
    estimate = await service.search_treatment(request.query, request.insurance)
    return estimate.to_dict()


@router.post("/eob/analyze", responses=_ERROR_RESPONSES)
async def analyze_eob(
    request: AnalyzeEOBRequest,
    service: ExtractionService = Depends(get_extraction_service),
):
    """
    Extract an Explanation of Benefits.

    Denied claims carry ``intelligence`` with appeal guidance for the code.
    """
    document = request.document.to_inline() if request.document else None
    analysis = await service.analyze_eob(document)
    return analysis.to_dict()


@router.post("/previsit/analyze", responses={**_ERROR_RESPONSES, 422: {"model": ErrorResponse}})
async def analyze_pre_visit(
    request: PreVisitRequest,
    service: ExtractionService = Depends(get_extraction_service),
):
    """Coverage, cost and preparation guidance ahead of a hospital visit."""
    logger.info(
        "API: Pre-visit analysis",
        has_document=request.document is not None,
        has_location=request.location is not None,
    )
    analysis = await service.analyze_pre_visit(
        query=request.query,
        document=request.document.to_inline() if request.document else None,
        location=request.location.to_geo_point() if request.location else None,
    )
    return analysis.to_dict()
