"""FastAPI dependencies for dependency injection."""
from typing import Optional

from coverwise.reasoning.llm_gateway import LLMGateway, get_llm_gateway
from coverwise.services.extraction_service import ExtractionService
from coverwise.services.readout_service import ReadoutService, get_readout_service

_extraction_service: Optional[ExtractionService] = None


def get_gateway() -> LLMGateway:
    """Get LLM gateway dependency."""
    return get_llm_gateway()


def get_readout() -> ReadoutService:
    """Get readout service dependency."""
    return get_readout_service()


def get_extraction_service() -> ExtractionService:
    """Get extraction service dependency."""
    global _extraction_service
    if _extraction_service is None:
        _extraction_service = ExtractionService()
    return _extraction_service


def reset_extraction_service() -> None:
    global _extraction_service
    _extraction_service = None
