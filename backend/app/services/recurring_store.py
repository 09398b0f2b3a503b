"""Persistence operations used by the recurring expense generation engine."""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Protocol

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.expense import Expense
from app.models.recurring import RecurringExpense


class RecurringExpenseStore(Protocol):
    """Operations the generation engine needs from persistence."""

    def find_due_candidate_templates(self, now: datetime) -> List[RecurringExpense]:
        ...

    def update_template(
        self, template_id: str, fields: Dict[str, Any]
    ) -> Optional[RecurringExpense]:
        ...

    def create_expense(self, fields: Dict[str, Any]) -> Expense:
        ...

    def atomic(self) -> Any:
        ...


class SqlRecurringExpenseStore:
    """SQLAlchemy-backed store. Writes are committed by ``atomic()``."""

    def __init__(self, db: Session):
        self.db = db

    def find_due_candidate_templates(self, now: datetime) -> List[RecurringExpense]:
        """Active templates whose start/end window contains ``now``."""
        return self.db.query(RecurringExpense).filter(
            RecurringExpense.is_active == True,
            RecurringExpense.start_date <= now,
            or_(
                RecurringExpense.end_date.is_(None),
                RecurringExpense.end_date >= now,
            ),
        ).all()

    def update_template(
        self, template_id: str, fields: Dict[str, Any]
    ) -> Optional[RecurringExpense]:
        template = self.db.query(RecurringExpense).filter(
            RecurringExpense.id == template_id
        ).first()
        if template is None:
            return None

        for field, value in fields.items():
            setattr(template, field, value)
        self.db.flush()
        return template

    def create_expense(self, fields: Dict[str, Any]) -> Expense:
        expense = Expense(**fields)
        self.db.add(expense)
        self.db.flush()
        return expense

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Commit everything written inside the block, or roll it all back."""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
