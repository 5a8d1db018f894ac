"""Enumeration types for the CoverWise resolution pipeline."""
from enum import Enum


class ExtractionTask(str, Enum):
    """Structured extraction tasks sent to the generative model."""
    PLAN_EXTRACTION = "plan_extraction"
    TREATMENT_COST_LOOKUP = "treatment_cost_lookup"
    EOB_DENIAL_EXTRACTION = "eob_denial_extraction"
    PRE_VISIT_ANALYSIS = "pre_visit_analysis"


class ErrorClass(str, Enum):
    """Classified outcome of a failed generation attempt."""
    UNAUTHORIZED = "unauthorized"  # Bad or missing credential - fatal
    RATE_LIMITED = "rate_limited"  # HTTP 429
    NOT_FOUND = "not_found"  # HTTP 403/404 - model unusable for this credential
    EMPTY_OUTPUT = "empty_output"  # 2xx without generated text
    MALFORMED_JSON = "malformed_json"  # Text present but not a JSON object
    OTHER = "other"  # Any other non-2xx or transport failure


# Error classes after which the fallback loop moves on to the next model.
CONTINUABLE_ERROR_CLASSES = frozenset({
    ErrorClass.NOT_FOUND,
    ErrorClass.RATE_LIMITED,
    ErrorClass.EMPTY_OUTPUT,
    ErrorClass.MALFORMED_JSON,
})


class AnalysisType(str, Enum):
    """Pre-visit answer kind reported by the model."""
    ANALYSIS = "analysis"
    DENIAL = "denial"  # Query unrelated to hospital visits; model refused
