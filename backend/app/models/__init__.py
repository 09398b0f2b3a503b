"""
Database models package.
"""

from app.models.expense import Expense
from app.models.recurring import RecurringExpense, Frequency

__all__ = [
    "Expense",
    "RecurringExpense",
    "Frequency",
]
