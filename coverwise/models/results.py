"""Fully-defaulted results for each extraction task.

Every field carries its display default so consumers never branch on
absence. ``to_dict()`` emits the camelCase shape the model was asked for.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

from .denial import DenialKnowledgeEntry
from .enums import AnalysisType

NOT_AVAILABLE = "N/A"
DEFAULT_REFUSAL_MESSAGE = (
    "I'm sorry, I can only assist with hospital pre-visit and insurance related queries."
)


# ---------------------------------------------------------------------------
# Plan extraction
# ---------------------------------------------------------------------------

@dataclass
class PlanSummary:
    """Insurance plan details extracted from a card or description."""
    plan_name: str = "Plan name unavailable"
    provider: str = "Provider unavailable"
    plan_type: str = "Plan type unavailable"
    deductible: str = NOT_AVAILABLE
    out_of_pocket_max: str = NOT_AVAILABLE
    copay: str = NOT_AVAILABLE
    member_id: str = NOT_AVAILABLE
    group_number: str = NOT_AVAILABLE
    payer_id: str = NOT_AVAILABLE
    rx_bin: str = NOT_AVAILABLE
    pcp_name: str = NOT_AVAILABLE
    pcp_phone: str = NOT_AVAILABLE
    drug_coverage: str = "Drug coverage details unavailable"
    covered: List[str] = field(default_factory=list)
    not_covered: List[str] = field(default_factory=list)
    summary: str = "Plan analyzed. Please verify coverage details with your insurer."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "planName": self.plan_name,
            "provider": self.provider,
            "planType": self.plan_type,
            "deductible": self.deductible,
            "outOfPocketMax": self.out_of_pocket_max,
            "copay": self.copay,
            "memberId": self.member_id,
            "groupNumber": self.group_number,
            "payerId": self.payer_id,
            "rxBin": self.rx_bin,
            "pcpName": self.pcp_name,
            "pcpPhone": self.pcp_phone,
            "drugCoverage": self.drug_coverage,
            "covered": list(self.covered),
            "notCovered": list(self.not_covered),
            "summary": self.summary,
        }


# ---------------------------------------------------------------------------
# Treatment cost lookup
# ---------------------------------------------------------------------------

@dataclass
class CostBreakdownItem:
    label: str
    value: str = NOT_AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass
class TreatmentEstimate:
    """Typical cost of a procedure under the user's plan."""
    procedure_name: str = "Treatment lookup"
    description: str = "Description unavailable"
    estimated_cost: str = NOT_AVAILABLE
    your_estimated_cost: str = NOT_AVAILABLE
    breakdown: List[CostBreakdownItem] = field(default_factory=list)
    advice: str = "No cost-saving advice was provided."
    summary: str = "Cost estimate completed. Please confirm pricing with your provider."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "procedureName": self.procedure_name,
            "description": self.description,
            "estimatedCost": self.estimated_cost,
            "yourEstimatedCost": self.your_estimated_cost,
            "breakdown": [item.to_dict() for item in self.breakdown],
            "advice": self.advice,
            "summary": self.summary,
        }


# ---------------------------------------------------------------------------
# EOB / denial extraction
# ---------------------------------------------------------------------------

@dataclass
class EOBLineItem:
    cpt_code: str
    jargon_description: str = "Description unavailable"
    plain_english_translation: str = "Translation unavailable"
    billed_charge: float = 0.0
    network_discount: float = 0.0
    allowed_amount: float = 0.0
    patient_responsibility: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cptCode": self.cpt_code,
            "jargonDescription": self.jargon_description,
            "plainEnglishTranslation": self.plain_english_translation,
            "billedCharge": self.billed_charge,
            "networkDiscount": self.network_discount,
            "allowedAmount": self.allowed_amount,
            "patientResponsibility": self.patient_responsibility,
        }


@dataclass
class EOBAnalysis:
    """
    Explanation of Benefits extraction.

    ``denial_code`` stays None when the claim was processed normally;
    ``intelligence`` is filled in by denial enrichment.
    """
    denial_code: Optional[str] = None
    billed_amount: float = 0.0
    insurance_paid: float = 0.0
    patient_responsibility: float = 0.0
    provider: str = "Provider unavailable"
    date_of_service: str = "Date unavailable"
    line_items: List[EOBLineItem] = field(default_factory=list)
    intelligence: Optional[DenialKnowledgeEntry] = None

    @property
    def is_denied(self) -> bool:
        return self.intelligence is not None

    def with_intelligence(self, entry: Optional[DenialKnowledgeEntry]) -> "EOBAnalysis":
        """Return a copy carrying ``entry``, with the code aligned to it."""
        if entry is None:
            return replace(self, intelligence=None)
        return replace(self, denial_code=entry.code, intelligence=entry)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "denialCode": self.denial_code,
            "billedAmount": self.billed_amount,
            "insurancePaid": self.insurance_paid,
            "patientResponsibility": self.patient_responsibility,
            "provider": self.provider,
            "date": self.date_of_service,
            "lineItems": [item.to_dict() for item in self.line_items],
            "intelligence": self.intelligence.to_dict() if self.intelligence else None,
        }


# ---------------------------------------------------------------------------
# Pre-visit analysis
# ---------------------------------------------------------------------------

@dataclass
class MitigationStep:
    step: str
    tip: str = "Review this action with your insurer."

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "tip": self.tip}


@dataclass
class NearbyDoctor:
    name: str
    specialty: str = "Specialty not specified"
    dist: str = "Distance unavailable"
    rating: Union[float, str] = NOT_AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "specialty": self.specialty,
            "dist": self.dist,
            "rating": self.rating,
        }


@dataclass
class ProcedureStep:
    title: str
    desc: str = "Details were not provided by the model."

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "desc": self.desc}


@dataclass
class PreVisitAnalysis:
    """Coverage, cost, and preparation guidance ahead of a hospital visit."""
    type: AnalysisType = AnalysisType.ANALYSIS
    denial_message: str = DEFAULT_REFUSAL_MESSAGE
    treatment: str = "Treatment analysis"
    coverage_status: str = "Coverage details unavailable"
    hospital: str = "Hospital recommendation unavailable"
    est_total_cost: str = NOT_AVAILABLE
    your_cost: str = NOT_AVAILABLE
    insurance_pays: str = NOT_AVAILABLE
    denial_risk_value: float = 0.0
    mitigation_steps: List[MitigationStep] = field(default_factory=list)
    nearby_doctors: List[NearbyDoctor] = field(default_factory=list)
    procedure_steps: List[ProcedureStep] = field(default_factory=list)
    summary: str = "Analysis completed. Please verify details with your provider and insurer."

    @property
    def is_refusal(self) -> bool:
        return self.type == AnalysisType.DENIAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "denialMessage": self.denial_message,
            "treatment": self.treatment,
            "coverageStatus": self.coverage_status,
            "hospital": self.hospital,
            "estTotalCost": self.est_total_cost,
            "yourCost": self.your_cost,
            "insurancePays": self.insurance_pays,
            "denialRiskValue": self.denial_risk_value,
            "mitigationSteps": [s.to_dict() for s in self.mitigation_steps],
            "nearbyDoctors": [d.to_dict() for d in self.nearby_doctors],
            "procedureSteps": [s.to_dict() for s in self.procedure_steps],
            "summary": self.summary,
        }


NormalizedResult = Union[PlanSummary, TreatmentEstimate, EOBAnalysis, PreVisitAnalysis]
