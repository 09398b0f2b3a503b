"""
Expense API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.clock import to_naive_utc
from app.dependencies import get_db, get_current_user_id
from app.models.expense import Expense
from app.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    ExpenseListResponse,
)

router = APIRouter(prefix="/expenses", tags=["expenses"])

NON_NULLABLE_FIELDS = {"amount", "name", "category", "notes", "date"}


def get_owned_expense(expense_id: str, db: Session, user_id: str) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    if expense.user_id != user_id:
        raise HTTPException(status_code=403, detail="Access denied: You can only access your own expenses")
    return expense


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    category: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """List the caller's expenses with filtering and pagination"""
    query = db.query(Expense).filter(Expense.user_id == user_id)

    if category:
        query = query.filter(Expense.category == category)
    if start_date:
        query = query.filter(Expense.date >= to_naive_utc(start_date))
    if end_date:
        query = query.filter(Expense.date <= to_naive_utc(end_date))

    total = query.count()
    total_amount = query.with_entities(func.sum(Expense.amount)).scalar() or Decimal("0")

    query = query.order_by(Expense.date.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    expenses = query.all()
    pages = (total + per_page - 1) // per_page

    return ExpenseListResponse(
        items=[ExpenseResponse.model_validate(e) for e in expenses],
        total=total,
        total_amount=total_amount,
        page=page,
        pages=pages
    )


@router.post("", response_model=ExpenseResponse, status_code=201)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Create an expense."""
    expense = Expense(
        user_id=user_id,
        amount=data.amount,
        name=data.name,
        category=data.category,
        notes=data.notes or "",
    )
    if data.date is not None:
        expense.date = data.date

    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get a single expense."""
    return get_owned_expense(expense_id, db, user_id)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: str,
    update: ExpenseUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Update an expense. Generated expenses are edited like any other."""
    expense = get_owned_expense(expense_id, db, user_id)

    update_data = update.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    for field, value in update_data.items():
        if value is None and field in NON_NULLABLE_FIELDS:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
        setattr(expense, field, value)

    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Delete an expense. Has no effect on the recurring expense that produced it."""
    expense = get_owned_expense(expense_id, db, user_id)
    db.delete(expense)
    db.commit()
    return {"message": "Expense deleted successfully", "expense_id": expense_id}
