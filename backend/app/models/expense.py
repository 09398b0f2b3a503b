"""
Expense database model.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Numeric, Text, Index
from app.clock import utcnow
from app.database import Base


class Expense(Base):
    """Expense model. Generated expenses are ordinary rows; provenance lives in notes."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    notes = Column(Text, default="", nullable=False)
    date = Column(DateTime, default=utcnow, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_expense_user_date", "user_id", "date"),
        Index("idx_expense_user_category", "user_id", "category"),
    )
