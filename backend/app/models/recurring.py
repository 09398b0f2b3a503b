"""
Recurring expense database model.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Text, Enum, Index
import enum
from app.clock import utcnow
from app.database import Base


class Frequency(str, enum.Enum):
    """Recurring frequency enumeration."""
    minutely = "minutely"
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class RecurringExpense(Base):
    """Template that materializes an expense every time its schedule comes due."""

    __tablename__ = "recurring_expenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    frequency = Column(Enum(Frequency), nullable=False)
    start_date = Column(DateTime, default=utcnow, nullable=False)
    end_date = Column(DateTime, nullable=True)  # None = continues indefinitely
    last_generated = Column(DateTime, nullable=True)  # Instant of the last materialized expense
    notes = Column(Text, default="", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)  # Pause without deleting
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_recurring_active_window", "is_active", "start_date", "end_date"),
    )
