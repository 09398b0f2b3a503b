"""
Pydantic schemas package.
"""

from app.schemas.expense import (
    ExpenseBase,
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    ExpenseListResponse,
)
from app.schemas.recurring import (
    RecurringExpenseBase,
    RecurringExpenseCreate,
    RecurringExpenseUpdate,
    RecurringExpenseResponse,
    RecurringExpenseCreateResponse,
    RecurringExpenseMessage,
    RecurringExpenseList,
    GenerationReportResponse,
    SchedulerStatusResponse,
)

__all__ = [
    "ExpenseBase",
    "ExpenseCreate",
    "ExpenseUpdate",
    "ExpenseResponse",
    "ExpenseListResponse",
    "RecurringExpenseBase",
    "RecurringExpenseCreate",
    "RecurringExpenseUpdate",
    "RecurringExpenseResponse",
    "RecurringExpenseCreateResponse",
    "RecurringExpenseMessage",
    "RecurringExpenseList",
    "GenerationReportResponse",
    "SchedulerStatusResponse",
]
