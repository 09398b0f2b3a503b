"""API endpoints for recurring expense management."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_current_user_id
from app.models.recurring import RecurringExpense
from app.schemas.recurring import (
    RecurringExpenseCreate,
    RecurringExpenseUpdate,
    RecurringExpenseResponse,
    RecurringExpenseCreateResponse,
    RecurringExpenseMessage,
    RecurringExpenseList,
)
from app.services import recurring_service
from app.services.schedule import next_due_at

router = APIRouter(prefix="/recurring-expenses", tags=["recurring-expenses"])


def to_response(template: RecurringExpense) -> RecurringExpenseResponse:
    response = RecurringExpenseResponse.model_validate(template)
    response.next_due_at = next_due_at(template)
    return response


def get_owned_template(
    recurring_id: str,
    db: Session,
    user_id: str,
    action: str
) -> RecurringExpense:
    template = recurring_service.get_recurring_expense(db, recurring_id)
    if not template:
        raise HTTPException(status_code=404, detail="Recurring expense not found")
    if template.user_id != user_id:
        raise HTTPException(
            status_code=403,
            detail=f"Access denied: You can only {action} your own recurring expenses"
        )
    return template


@router.post("", response_model=RecurringExpenseCreateResponse, status_code=201)
def create_recurring_expense(
    data: RecurringExpenseCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Create a recurring expense, optionally generating the first expense right away."""
    try:
        template, generated = recurring_service.create_recurring_expense(db, user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if generated:
        message = "Recurring expense created and first expense generated successfully"
    else:
        message = "Recurring expense created successfully"

    return RecurringExpenseCreateResponse(
        message=message,
        recurring_expense=to_response(template),
        expense_generated=generated,
    )


@router.get("", response_model=RecurringExpenseList)
def list_recurring_expenses(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """List the caller's recurring expenses."""
    templates = recurring_service.get_recurring_expenses(db, user_id, include_inactive)
    return RecurringExpenseList(
        items=[to_response(t) for t in templates],
        total=len(templates)
    )


@router.get("/{recurring_id}", response_model=RecurringExpenseResponse)
def get_recurring_expense(
    recurring_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get a single recurring expense."""
    template = get_owned_template(recurring_id, db, user_id, "view")
    return to_response(template)


@router.patch("/{recurring_id}", response_model=RecurringExpenseMessage)
def update_recurring_expense(
    recurring_id: str,
    update: RecurringExpenseUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Update any field of a recurring expense."""
    template = get_owned_template(recurring_id, db, user_id, "update")

    try:
        template = recurring_service.update_recurring_expense(
            db, template, update.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return RecurringExpenseMessage(
        message="Recurring expense updated successfully",
        recurring_expense=to_response(template),
    )


@router.delete("/{recurring_id}")
def delete_recurring_expense(
    recurring_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Delete a recurring expense (expenses it generated are kept)."""
    template = get_owned_template(recurring_id, db, user_id, "delete")
    recurring_service.delete_recurring_expense(db, template)
    return {"message": "Recurring expense deleted successfully", "recurring_id": recurring_id}


@router.post("/{recurring_id}/toggle", response_model=RecurringExpenseMessage)
def toggle_recurring_expense(
    recurring_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Pause or resume a recurring expense."""
    template = get_owned_template(recurring_id, db, user_id, "modify")
    template = recurring_service.toggle_recurring_expense(db, template)

    return RecurringExpenseMessage(
        message=f"Recurring expense {'activated' if template.is_active else 'paused'}",
        recurring_expense=to_response(template),
    )
