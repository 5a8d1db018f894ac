"""Response Normalizer - turns loosely-typed model JSON into complete results.

All defaulting for model output lives here. For any JSON object the
per-task normalizers are total; only the parse step can fail.
"""
import math
from typing import Any, Callable, Dict, List, Optional, Union

from coverwise.config.logging_config import get_logger
from coverwise.models.enums import AnalysisType, ExtractionTask
from coverwise.models.results import (
    NOT_AVAILABLE,
    CostBreakdownItem,
    EOBAnalysis,
    EOBLineItem,
    MitigationStep,
    NearbyDoctor,
    NormalizedResult,
    PlanSummary,
    PreVisitAnalysis,
    ProcedureStep,
    TreatmentEstimate,
)
from coverwise.reasoning.json_utils import extract_json_from_text

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------

def _finite(value: Union[int, float, str]) -> Optional[float]:
    """``value`` as a finite float, or None (NaN, infinity, too large)."""
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _text(value: Any, default: str) -> str:
    """Non-empty string form of ``value``, else ``default``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return str(value) if _finite(value) is not None else default
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _first_text(item: Dict[str, Any], keys: List[str], default: str) -> str:
    for key in keys:
        text = _text(item.get(key), "")
        if text:
            return text
    return default


def _number(value: Any) -> float:
    """Finite number parsed from ``value``, else 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = _finite(value)
    elif isinstance(value, str):
        cleaned = value.replace("$", "").replace(",", "").replace("%", "").strip()
        number = _finite(cleaned) if cleaned else None
    else:
        number = None
    return 0.0 if number is None else number


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_text(v, "") for v in value) if text]


def _records(value: Any, build: Callable[[Dict[str, Any], int], Any]) -> List[Any]:
    """Normalize an array of objects element-by-element (1-based positions)."""
    if not isinstance(value, list):
        return []
    return [
        build(item if isinstance(item, dict) else {}, index)
        for index, item in enumerate(value, start=1)
    ]


def _rating(value: Any) -> Union[float, str]:
    if isinstance(value, bool) or value is None:
        return NOT_AVAILABLE
    if isinstance(value, (int, float)):
        number = _finite(value)
        return NOT_AVAILABLE if number is None else number
    return _text(value, NOT_AVAILABLE)


# ---------------------------------------------------------------------------
# Per-task normalizers
# ---------------------------------------------------------------------------

def normalize_plan(payload: Dict[str, Any]) -> PlanSummary:
    d = PlanSummary()
    return PlanSummary(
        plan_name=_text(payload.get("planName"), d.plan_name),
        provider=_text(payload.get("provider"), d.provider),
        plan_type=_text(payload.get("planType"), d.plan_type),
        deductible=_text(payload.get("deductible"), d.deductible),
        out_of_pocket_max=_text(payload.get("outOfPocketMax"), d.out_of_pocket_max),
        copay=_text(payload.get("copay"), d.copay),
        member_id=_text(payload.get("memberId"), d.member_id),
        group_number=_text(payload.get("groupNumber"), d.group_number),
        payer_id=_text(payload.get("payerId"), d.payer_id),
        rx_bin=_text(payload.get("rxBin"), d.rx_bin),
        pcp_name=_text(payload.get("pcpName"), d.pcp_name),
        pcp_phone=_text(payload.get("pcpPhone"), d.pcp_phone),
        drug_coverage=_text(payload.get("drugCoverage"), d.drug_coverage),
        covered=_string_list(payload.get("covered")),
        not_covered=_string_list(payload.get("notCovered")),
        summary=_text(payload.get("summary"), d.summary),
    )


def normalize_treatment(payload: Dict[str, Any]) -> TreatmentEstimate:
    d = TreatmentEstimate()
    breakdown = _records(
        payload.get("breakdown"),
        lambda item, i: CostBreakdownItem(
            label=_text(item.get("label"), f"Item {i}"),
            value=_text(item.get("value"), NOT_AVAILABLE),
        ),
    )
    return TreatmentEstimate(
        procedure_name=_text(payload.get("procedureName"), d.procedure_name),
        description=_text(payload.get("description"), d.description),
        estimated_cost=_text(payload.get("estimatedCost"), d.estimated_cost),
        your_estimated_cost=_text(payload.get("yourEstimatedCost"), d.your_estimated_cost),
        breakdown=breakdown,
        advice=_text(payload.get("advice"), d.advice),
        summary=_text(payload.get("summary"), d.summary),
    )


def _line_item(item: Dict[str, Any], index: int) -> EOBLineItem:
    d = EOBLineItem(cpt_code="")
    return EOBLineItem(
        cpt_code=_text(item.get("cptCode"), f"Line {index}"),
        jargon_description=_text(item.get("jargonDescription"), d.jargon_description),
        plain_english_translation=_text(
            item.get("plainEnglishTranslation"), d.plain_english_translation
        ),
        billed_charge=_number(item.get("billedCharge")),
        network_discount=_number(item.get("networkDiscount")),
        allowed_amount=_number(item.get("allowedAmount")),
        patient_responsibility=_number(item.get("patientResponsibility")),
    )


def _denial_code(value: Any) -> Optional[str]:
    # "null" strings show up when the model echoes the template literally
    text = _text(value, "")
    if not text or text.lower() in ("null", "none", "n/a"):
        return None
    return text


def normalize_eob(payload: Dict[str, Any]) -> EOBAnalysis:
    d = EOBAnalysis()
    return EOBAnalysis(
        denial_code=_denial_code(payload.get("denialCode")),
        billed_amount=_number(payload.get("billedAmount")),
        insurance_paid=_number(payload.get("insurancePaid")),
        patient_responsibility=_number(payload.get("patientResponsibility")),
        provider=_text(payload.get("provider"), d.provider),
        date_of_service=_text(payload.get("date"), d.date_of_service),
        line_items=_records(payload.get("lineItems"), _line_item),
    )


def normalize_pre_visit(payload: Dict[str, Any]) -> PreVisitAnalysis:
    d = PreVisitAnalysis()
    kind = AnalysisType.DENIAL if payload.get("type") == AnalysisType.DENIAL.value else AnalysisType.ANALYSIS
    return PreVisitAnalysis(
        type=kind,
        denial_message=_text(payload.get("denialMessage"), d.denial_message),
        treatment=_text(payload.get("treatment"), d.treatment),
        coverage_status=_text(payload.get("coverageStatus"), d.coverage_status),
        hospital=_text(payload.get("hospital"), d.hospital),
        est_total_cost=_text(payload.get("estTotalCost"), d.est_total_cost),
        your_cost=_text(payload.get("yourCost"), d.your_cost),
        insurance_pays=_text(payload.get("insurancePays"), d.insurance_pays),
        denial_risk_value=_number(payload.get("denialRiskValue")),
        mitigation_steps=_records(
            payload.get("mitigationSteps"),
            lambda item, i: MitigationStep(
                step=_first_text(item, ["step", "title"], f"Step {i}"),
                tip=_first_text(item, ["tip", "desc"], "Review this action with your insurer."),
            ),
        ),
        nearby_doctors=_records(
            payload.get("nearbyDoctors"),
            lambda item, i: NearbyDoctor(
                name=_text(item.get("name"), f"Specialist {i}"),
                specialty=_text(item.get("specialty"), "Specialty not specified"),
                dist=_text(item.get("dist"), "Distance unavailable"),
                rating=_rating(item.get("rating")),
            ),
        ),
        procedure_steps=_records(
            payload.get("procedureSteps"),
            lambda item, i: ProcedureStep(
                title=_text(item.get("title"), f"Phase {i}"),
                desc=_text(item.get("desc"), "Details were not provided by the model."),
            ),
        ),
        summary=_text(payload.get("summary"), d.summary),
    )


_NORMALIZERS: Dict[ExtractionTask, Callable[[Dict[str, Any]], NormalizedResult]] = {
    ExtractionTask.PLAN_EXTRACTION: normalize_plan,
    ExtractionTask.TREATMENT_COST_LOOKUP: normalize_treatment,
    ExtractionTask.EOB_DENIAL_EXTRACTION: normalize_eob,
    ExtractionTask.PRE_VISIT_ANALYSIS: normalize_pre_visit,
}


def normalize_payload(task: ExtractionTask, payload: Dict[str, Any]) -> NormalizedResult:
    """Default every field of an already-parsed payload."""
    return _NORMALIZERS[task](payload)


def normalize(task: ExtractionTask, raw_text: str) -> NormalizedResult:
    """
    Clean, parse, and default the model's raw text for ``task``.

    Raises:
        MalformedJsonError: If the cleaned text is not a JSON object
    """
    payload = extract_json_from_text(raw_text)
    logger.debug("Model JSON parsed", task=task.value, fields=sorted(payload.keys()))
    return normalize_payload(task, payload)
