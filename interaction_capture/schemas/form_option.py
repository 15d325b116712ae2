"""Form option schemas (dropdown configuration)."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

OptionKind = Literal["staff", "channel", "category", "branch"]

MoveDirection = Literal["up", "down"]

OptionSource = Literal["live", "cache", "stale", "default"]


def _clean_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Name must not be empty")
    return value


class FormOptionResponse(BaseModel):
    id: int
    kind: str
    name: str
    active: bool
    display_order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FormOptionCreateRequest(BaseModel):
    name: str = Field(..., max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _clean_name(value)


class FormOptionUpdateRequest(BaseModel):
    """Rename and/or toggle an option. Omitted fields are left unchanged."""

    name: Optional[str] = Field(None, max_length=100)
    active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        return _clean_name(value)


class FormOptionMoveRequest(BaseModel):
    direction: MoveDirection


class FormOptionMoveResponse(BaseModel):
    moved: bool
    options: List[FormOptionResponse]


class PublicFormOptionsResponse(BaseModel):
    """What the form needs to render its dropdowns."""

    staff: List[str]
    channel: List[str]
    category: List[str]
    branch: List[str]
    source: OptionSource = Field(..., description="live, cache, stale or default")
    submissions_enabled: bool = Field(..., description="False when the data store is not configured")

    @classmethod
    def from_sets(cls, sets: Dict[str, List[str]], *, source: str, submissions_enabled: bool):
        return cls(**sets, source=source, submissions_enabled=submissions_enabled)
