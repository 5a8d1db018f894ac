"""Request and outcome types exchanged with the generation endpoint."""
import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .enums import ErrorClass

ALLOWED_DOCUMENT_TYPES = ("image/jpeg", "image/png", "image/webp", "application/pdf")


@dataclass(frozen=True)
class InlineDocument:
    """Uploaded document embedded in a request as base64 data."""
    mime_type: str
    data_base64: str

    @classmethod
    def from_bytes(cls, content: bytes, mime_type: str) -> "InlineDocument":
        """Encode raw file bytes."""
        return cls(mime_type=mime_type, data_base64=base64.b64encode(content).decode("ascii"))

    def to_part(self) -> Dict[str, Any]:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data_base64}}


@dataclass(frozen=True)
class GeoPoint:
    """User location shared with the pre-visit assistant."""
    lat: float
    lng: float


@dataclass
class TaskInputs:
    """Caller-supplied inputs for one extraction task."""
    text: str = ""
    document: Optional[InlineDocument] = None
    insurance_context: Optional[Dict[str, Any]] = None
    location: Optional[GeoPoint] = None


@dataclass(frozen=True)
class GenerationRequest:
    """
    Immutable payload for a generateContent call.

    The document part, when present, precedes the instruction text.
    """
    instructions: str
    document: Optional[InlineDocument] = None

    def to_payload(self) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        if self.document is not None:
            parts.append(self.document.to_part())
        parts.append({"text": self.instructions})
        return {"contents": [{"parts": parts}]}


@dataclass(frozen=True)
class GenerationSuccess:
    """The model produced text."""
    model: str
    raw_text: str


@dataclass(frozen=True)
class GenerationFailure:
    """The attempt failed; ``error_class`` drives the fallback policy."""
    error_class: ErrorClass
    model: Optional[str] = None
    http_status: Optional[int] = None
    message: Optional[str] = None

    def describe(self) -> str:
        parts = [f"Gemini {self.error_class.value}"]
        if self.http_status is not None:
            parts.append(f"({self.http_status})")
        if self.model:
            parts.append(f"from {self.model}")
        text = " ".join(parts)
        return f"{text}: {self.message}" if self.message else text


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]

