"""Request models for API endpoints."""
import base64
import binascii
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coverwise.models.generation import GeoPoint, InlineDocument


class DocumentPayload(BaseModel):
    """Uploaded file as base64 JSON."""
    model_config = ConfigDict(populate_by_name=True)

    mime_type: str = Field(..., alias="mimeType", description="Media type, e.g. image/png")
    data: str = Field(..., min_length=1, description="Base64-encoded file content")

    @field_validator("data")
    @classmethod
    def _valid_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("data must be base64-encoded")
        return value

    def to_inline(self) -> InlineDocument:
        return InlineDocument(mime_type=self.mime_type, data_base64=self.data)


class LocationPayload(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_geo_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


class ParseInsuranceRequest(BaseModel):
    """Insurance card and/or free-text plan description."""
    text: str = Field(default="", max_length=5000)
    document: Optional[DocumentPayload] = None


class TreatmentSearchRequest(BaseModel):
    """Treatment cost lookup, optionally under a previously parsed plan."""
    query: str = Field(..., max_length=500)
    insurance: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Plan summary returned by /insurance/parse",
    )


class AnalyzeEOBRequest(BaseModel):
    """Explanation of Benefits or medical bill upload."""
    document: Optional[DocumentPayload] = None


class PreVisitRequest(BaseModel):
    """Pre-visit question with optional card upload and location."""
    query: str = Field(default="", max_length=2000)
    document: Optional[DocumentPayload] = None
    location: Optional[LocationPayload] = None


class ReadoutRequest(BaseModel):
    """Text to read aloud on demand, e.g. one section of a result."""
    text: str = Field(..., min_length=1, max_length=2500)
