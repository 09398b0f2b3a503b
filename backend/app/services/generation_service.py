"""Materializes expenses from recurring expense templates that have come due."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from app.clock import to_naive_utc
from app.models.expense import Expense
from app.models.recurring import Frequency, RecurringExpense
from app.services.recurring_store import RecurringExpenseStore
from app.services.schedule import is_due

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Base error for a single template that could not be materialized."""


class InvalidTemplateError(GenerationError):
    """Stored template fails validation and is skipped."""


class TemplateNotFoundError(GenerationError):
    """Template disappeared between the candidate query and the update."""


@dataclass
class GenerationFailure:
    """A template that was due but could not be materialized."""

    template_id: str
    template_name: str
    error: str


@dataclass
class GenerationReport:
    """Outcome of one generation pass."""

    ran_at: datetime
    checked: int = 0
    generated: int = 0
    failures: List[GenerationFailure] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and not self.failures


def default_notes(frequency: Frequency) -> str:
    """Fallback note marking an expense as produced by a recurring template."""
    return f"Auto-generated from recurring expense ({Frequency(frequency).value})"


def validate_template(template: RecurringExpense) -> None:
    """Raise InvalidTemplateError if the stored template cannot produce an expense."""
    if template.amount is None or Decimal(template.amount) <= 0:
        raise InvalidTemplateError("Amount must be a positive number")
    if not (template.name or "").strip():
        raise InvalidTemplateError("Name is required")
    if not (template.category or "").strip():
        raise InvalidTemplateError("Category is required")
    try:
        Frequency(template.frequency)
    except ValueError:
        raise InvalidTemplateError(f"Unknown frequency: {template.frequency!r}")


def write_occurrence(
    store: RecurringExpenseStore,
    template: RecurringExpense,
    now: datetime
) -> Expense:
    """Write the expense and the advanced marker without committing."""
    template_id = template.id
    expense = store.create_expense({
        "user_id": template.user_id,
        "amount": template.amount,
        "name": template.name,
        "category": template.category,
        "notes": template.notes or default_notes(template.frequency),
        "date": now,
    })
    updated = store.update_template(template_id, {"last_generated": now})
    if updated is None:
        raise TemplateNotFoundError(f"Recurring expense {template_id} not found")
    return expense


def generate_occurrence(
    store: RecurringExpenseStore,
    template: RecurringExpense,
    now: datetime
) -> Expense:
    """
    Create one expense dated ``now`` from the template and advance its
    ``last_generated`` marker to ``now``, in a single unit of work.
    """
    with store.atomic():
        return write_occurrence(store, template, now)


def run_once(store: RecurringExpenseStore, now: datetime) -> GenerationReport:
    """
    Run a single generation pass.

    Produces at most one occurrence per template, even if several cycles
    elapsed since its last occurrence; later passes catch up one at a time.
    Never raises: per-template failures and pass-level errors are logged and
    returned on the report.
    """
    now = to_naive_utc(now)
    report = GenerationReport(ran_at=now)

    try:
        templates = store.find_due_candidate_templates(now)
    except Exception as e:
        logger.exception("Could not load recurring expense candidates")
        report.error = str(e)
        return report

    report.checked = len(templates)
    logger.debug(f"Found {len(templates)} active recurring expense(s)")

    # Snapshot identities; a rollback below expires the loaded rows
    candidates = [(t, t.id, t.name) for t in templates]

    for template, template_id, template_name in candidates:
        try:
            validate_template(template)
            # Paused by a user since the candidate query
            if not template.is_active:
                continue
            if not is_due(template, now):
                continue

            generate_occurrence(store, template, now)
            report.generated += 1
            logger.info(f"Generated expense from recurring '{template_name}' ({template_id})")
        except Exception as e:
            logger.exception(f"Failed to generate expense for recurring '{template_name}' ({template_id})")
            report.failures.append(GenerationFailure(
                template_id=template_id,
                template_name=template_name,
                error=str(e),
            ))

    if report.generated:
        logger.info(f"Generated {report.generated} recurring expense(s)")
    return report
