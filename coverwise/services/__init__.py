"""Service layer for business logic."""
from .extraction_service import ExtractionService, InvalidInputError, AnalysisRefusedError
from .readout_service import ReadoutService
from .donation_service import DonationService, DonationError

__all__ = [
    "ExtractionService",
    "InvalidInputError",
    "AnalysisRefusedError",
    "ReadoutService",
    "DonationService",
    "DonationError",
]
