"""
Expense schemas.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.clock import to_naive_utc


class ExpenseBase(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    notes: str = ""


class ExpenseCreate(ExpenseBase):
    date: Optional[datetime] = None  # Defaults to now

    @field_validator("name", "category", "notes", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value):
        return to_naive_utc(value) if value is not None else None


class ExpenseUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    notes: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("name", "category", "notes", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value):
        return to_naive_utc(value) if value is not None else None


class ExpenseResponse(ExpenseBase):
    id: str
    user_id: str
    date: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    items: list[ExpenseResponse]
    total: int
    total_amount: Decimal
    page: int
    pages: int
