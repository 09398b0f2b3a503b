"""Due-date calculations for recurring expenses."""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from app.models.recurring import Frequency


def next_occurrence(anchor: datetime, frequency: Frequency) -> datetime:
    """Return the instant exactly one frequency unit after ``anchor``.

    Months are calendar months; a day past the end of the target month is
    clamped to its last day (Jan 31 -> Feb 28/29).
    """
    if frequency == Frequency.minutely:
        return anchor + timedelta(minutes=1)
    elif frequency == Frequency.daily:
        return anchor + timedelta(days=1)
    elif frequency == Frequency.weekly:
        return anchor + timedelta(days=7)
    elif frequency == Frequency.monthly:
        return anchor + relativedelta(months=1)
    raise ValueError(f"Unsupported frequency: {frequency!r}")


def next_due_at(template) -> datetime:
    """Instant at which the template becomes due for its next occurrence."""
    if template.last_generated is None:
        return template.start_date
    return next_occurrence(template.last_generated, Frequency(template.frequency))


def is_due(template, now: datetime) -> bool:
    """
    Check whether a template should produce an occurrence at ``now``.

    Anchored on ``last_generated`` (or ``start_date`` before the first
    occurrence), so repeated checks before the next due instant are no-ops
    and a single late check after downtime fires once.
    """
    return now >= next_due_at(template)
