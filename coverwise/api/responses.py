"""Response models for API endpoints."""
from typing import List, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error payload returned for failed analyses."""
    error: str
    error_class: Optional[str] = None


class ModelListResponse(BaseModel):
    """Ranked generateContent-capable models."""
    models: List[str]
    count: int
