"""Denial knowledge base entry."""
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class DenialKnowledgeEntry:
    """Canned appeal guidance for one claim adjustment reason code."""
    code: str
    reason: str
    explanation: str
    success_probability: int  # 0-100
    deadline_days: int
    required_documents: List[str] = field(default_factory=list)
    appeal_template: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DenialKnowledgeEntry":
        return cls(
            code=data["code"],
            reason=data["reason"],
            explanation=data["explanation"],
            success_probability=int(data["successProbability"]),
            deadline_days=int(data["deadlineDays"]),
            required_documents=list(data.get("requiredDocuments", [])),
            appeal_template=data.get("appealTemplate", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "reason": self.reason,
            "explanation": self.explanation,
            "successProbability": self.success_probability,
            "deadlineDays": self.deadline_days,
            "requiredDocuments": list(self.required_documents),
            "appealTemplate": self.appeal_template,
        }
