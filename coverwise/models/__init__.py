"""Data models for the CoverWise resolution pipeline."""
from .enums import (
    ExtractionTask,
    ErrorClass,
    AnalysisType,
    CONTINUABLE_ERROR_CLASSES,
)
from .generation import (
    ALLOWED_DOCUMENT_TYPES,
    InlineDocument,
    GeoPoint,
    TaskInputs,
    GenerationRequest,
    GenerationSuccess,
    GenerationFailure,
    GenerationOutcome,
)
from .denial import DenialKnowledgeEntry
from .results import (
    NOT_AVAILABLE,
    DEFAULT_REFUSAL_MESSAGE,
    PlanSummary,
    CostBreakdownItem,
    TreatmentEstimate,
    EOBLineItem,
    EOBAnalysis,
    MitigationStep,
    NearbyDoctor,
    ProcedureStep,
    PreVisitAnalysis,
    NormalizedResult,
)

__all__ = [
    # Enums
    "ExtractionTask",
    "ErrorClass",
    "AnalysisType",
    "CONTINUABLE_ERROR_CLASSES",
    # Generation
    "ALLOWED_DOCUMENT_TYPES",
    "InlineDocument",
    "GeoPoint",
    "TaskInputs",
    "GenerationRequest",
    "GenerationSuccess",
    "GenerationFailure",
    "GenerationOutcome",
    # Denial knowledge
    "DenialKnowledgeEntry",
    # Results
    "NOT_AVAILABLE",
    "DEFAULT_REFUSAL_MESSAGE",
    "PlanSummary",
    "CostBreakdownItem",
    "TreatmentEstimate",
    "EOBLineItem",
    "EOBAnalysis",
    "MitigationStep",
    "NearbyDoctor",
    "ProcedureStep",
    "PreVisitAnalysis",
    "NormalizedResult",
]
