"""Interaction model - one logged customer interaction."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index
from sqlalchemy.sql import func

from interaction_capture.database import Base


class Interaction(Base):
    """Customer interaction captured by staff on the shop floor or a remote channel."""

    __tablename__ = "interactions"

    id = Column(Integer, primary_key=True, index=True)

    # Stamped by the server when the record is accepted
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    staff_name = Column(String(100), nullable=False)
    channel = Column(String(100), nullable=False)
    other_channel = Column(String(60), nullable=True)  # only when channel = Other
    branch = Column(String(100), nullable=True)  # only when channel = In-store
    category = Column(String(100), nullable=False)
    other_category = Column(String(60), nullable=True)  # only when category = Other
    wanted_item = Column(String(120), nullable=False)

    # Purchase outcome (In-store / WhatsApp only)
    purchased = Column(Boolean, nullable=True)
    out_of_stock = Column(Boolean, nullable=True)  # only when purchased = false

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_interactions_staff", "staff_name", "timestamp"),
        Index("idx_interactions_channel", "channel", "timestamp"),
        Index("idx_interactions_category", "category", "timestamp"),
    )

    def __repr__(self):
        return (
            f"<Interaction(id={self.id}, staff_name='{self.staff_name}', "
            f"channel='{self.channel}', category='{self.category}')>"
        )
