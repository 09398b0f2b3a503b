"""Service for recurring expense template management."""

import logging
from typing import List, Optional, Dict, Any, Tuple
from datetime import datetime
from sqlalchemy.orm import Session

from app.clock import utcnow
from app.models.recurring import RecurringExpense
from app.schemas.recurring import RecurringExpenseCreate
from app.services.generation_service import write_occurrence
from app.services.recurring_store import SqlRecurringExpenseStore

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"end_date"}


def create_recurring_expense(
    db: Session,
    user_id: str,
    data: RecurringExpenseCreate,
    now: Optional[datetime] = None
) -> Tuple[RecurringExpense, bool]:
    """
    Create a recurring expense, optionally materializing its first occurrence now.
    Returns the template and whether an expense was generated.
    """
    now = now or utcnow()
    start = data.start_date or now
    if data.end_date is not None and data.end_date <= start:
        raise ValueError("End date must be after start date")
    if data.generate_immediately and start > now:
        raise ValueError("Cannot generate an expense before the start date")

    template = RecurringExpense(
        user_id=user_id,
        amount=data.amount,
        name=data.name,
        category=data.category,
        frequency=data.frequency,
        start_date=start,
        end_date=data.end_date,
        notes=data.notes or "",
        is_active=True,
    )
    # The template only becomes visible to the scheduler together with its
    # first occurrence, so the two can never both generate it
    store = SqlRecurringExpenseStore(db)
    with store.atomic():
        db.add(template)
        db.flush()
        if data.generate_immediately:
            write_occurrence(store, template, now)
    db.refresh(template)

    expense_generated = bool(data.generate_immediately)

    logger.info(f"Created recurring expense '{template.name}' ({template.id}) for user {user_id}")
    return template, expense_generated


def get_recurring_expenses(
    db: Session,
    user_id: str,
    include_inactive: bool = False
) -> List[RecurringExpense]:
    """Get a user's recurring expenses, newest first."""
    query = db.query(RecurringExpense).filter(RecurringExpense.user_id == user_id)

    if not include_inactive:
        query = query.filter(RecurringExpense.is_active == True)

    return query.order_by(RecurringExpense.created_at.desc()).all()


def get_recurring_expense(db: Session, recurring_id: str) -> Optional[RecurringExpense]:
    return db.query(RecurringExpense).filter(RecurringExpense.id == recurring_id).first()


def update_recurring_expense(
    db: Session,
    template: RecurringExpense,
    update_data: Dict[str, Any]
) -> RecurringExpense:
    """
    Apply a partial update after re-validating the merged template.
    Raises ValueError when the result would be invalid.
    """
    if not update_data:
        raise ValueError("No fields to update")

    for field, value in update_data.items():
        if value is None and field not in NULLABLE_FIELDS:
            raise ValueError(f"{field} cannot be null")

    start = update_data.get("start_date", template.start_date)
    end = update_data.get("end_date", template.end_date)
    if end is not None and end <= start:
        raise ValueError("End date must be after start date")

    # An earlier occurrence would now precede the window; restart from the new start
    if (
        "start_date" in update_data
        and template.last_generated is not None
        and template.last_generated < start
    ):
        update_data = {**update_data, "last_generated": None}

    for field, value in update_data.items():
        setattr(template, field, value)

    db.commit()
    db.refresh(template)
    return template


def toggle_recurring_expense(db: Session, template: RecurringExpense) -> RecurringExpense:
    """Pause an active template or resume a paused one."""
    template.is_active = not template.is_active
    db.commit()
    db.refresh(template)
    logger.info(
        f"Recurring expense {template.id} {'activated' if template.is_active else 'paused'}"
    )
    return template


def delete_recurring_expense(db: Session, template: RecurringExpense) -> None:
    """Delete a template. Expenses it already generated are left untouched."""
    db.delete(template)
    db.commit()
