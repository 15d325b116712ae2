"""Interaction schemas for API validation."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from interaction_capture.services.form_rules import display_label


class InteractionResponse(BaseModel):
    """Schema for a stored interaction."""

    id: int
    timestamp: datetime = Field(..., description="When the interaction was accepted")
    staff_name: str
    channel: str
    other_channel: Optional[str] = Field(None, description="Free-text channel when channel is Other")
    branch: Optional[str] = Field(None, description="Store branch for in-store interactions")
    category: str
    other_category: Optional[str] = Field(None, description="Free-text category when category is Other")
    wanted_item: str
    purchased: Optional[bool] = Field(None, description="Recorded for In-store and WhatsApp only")
    out_of_stock: Optional[bool] = Field(None, description="Recorded when no purchase was made")
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def channel_label(self) -> str:
        return display_label(self.channel, self.other_channel)

    @computed_field
    @property
    def category_label(self) -> str:
        return display_label(self.category, self.other_category)

    class Config:
        from_attributes = True


class InteractionListResponse(BaseModel):
    """Schema for interactions list response."""

    interactions: List[InteractionResponse]
    total: int
    page: int = Field(1, description="Current page number")
    page_size: int = Field(50, description="Items per page")


class SubmitSuccessResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class SubmitErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[Dict[str, str]] = None
    retryable: bool = False


class ResolveResponse(BaseModel):
    """Visible and required fields for a partial answer set."""

    visible: List[str]
    required: List[str]
    answers: Dict[str, Any] = Field(..., description="Answers with hidden fields removed")
