"""Form option model - admin-managed dropdown values for the interaction form."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index, UniqueConstraint
from sqlalchemy.sql import func

from interaction_capture.database import Base


class FormOption(Base):
    """One selectable value in a dropdown (staff, channel, category or branch)."""

    __tablename__ = "form_options"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False)  # staff | channel | category | branch
    name = Column(String(100), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("kind", "name", name="uq_form_options_kind_name"),
        Index("idx_form_options_active", "kind", "active", "display_order"),
    )

    def __repr__(self):
        return f"<FormOption(id={self.id}, kind='{self.kind}', name='{self.name}', active={self.active})>"
