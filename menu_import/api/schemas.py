# menu_import/api/schemas.py
"""API request/response schemas."""

from typing import Dict, List

from pydantic import BaseModel, Field

from menu_import.models.domain import ApplySelection, CamelModel


class ApplyChangesRequest(CamelModel):
    store_id: str
    selections: List[ApplySelection] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    checks: Dict[str, bool]
