"""Pydantic schemas for recurring expenses."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from app.clock import to_naive_utc
from app.models.recurring import Frequency


def _normalize_instant(value: Optional[datetime]) -> Optional[datetime]:
    return to_naive_utc(value) if value is not None else None


class RecurringExpenseBase(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    frequency: Frequency
    notes: str = ""


class RecurringExpenseCreate(RecurringExpenseBase):
    start_date: Optional[datetime] = None  # Defaults to now
    end_date: Optional[datetime] = None
    generate_immediately: bool = False

    @field_validator("name", "category", "notes", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value):
        return _normalize_instant(value)


class RecurringExpenseUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[Frequency] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None  # Explicit null clears the end date
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "category", "notes", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value):
        return _normalize_instant(value)


class RecurringExpenseResponse(RecurringExpenseBase):
    id: str
    user_id: str
    start_date: datetime
    end_date: Optional[datetime] = None
    last_generated: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    # Computed field added by API
    next_due_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RecurringExpenseCreateResponse(BaseModel):
    message: str
    recurring_expense: RecurringExpenseResponse
    expense_generated: bool


class RecurringExpenseMessage(BaseModel):
    message: str
    recurring_expense: RecurringExpenseResponse


class RecurringExpenseList(BaseModel):
    items: List[RecurringExpenseResponse]
    total: int


class GenerationFailureResponse(BaseModel):
    template_id: str
    template_name: str
    error: str

    class Config:
        from_attributes = True


class GenerationReportResponse(BaseModel):
    """Outcome of one generation pass."""
    ran_at: datetime
    checked: int
    generated: int
    failures: List[GenerationFailureResponse] = []
    error: Optional[str] = None
    success: bool

    class Config:
        from_attributes = True


class SchedulerStatusResponse(BaseModel):
    running: bool
    pass_in_progress: bool
    interval_seconds: float
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None
    last_report: Optional[GenerationReportResponse] = None
