"""Tests for the recurring expense generation engine."""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.models.expense import Expense
from app.models.recurring import Frequency, RecurringExpense
from app.services.generation_service import (
    default_notes,
    generate_occurrence,
    run_once,
)
from app.services.recurring_store import SqlRecurringExpenseStore


class FailingStore(SqlRecurringExpenseStore):
    """Store whose writes fail for selected template names."""

    def __init__(self, db, fail_create_for=(), fail_update_for=()):
        super().__init__(db)
        self.fail_create_for = set(fail_create_for)
        self.fail_update_for = set(fail_update_for)

    def create_expense(self, fields):
        if fields["name"] in self.fail_create_for:
            raise RuntimeError("expense write failed")
        return super().create_expense(fields)

    def update_template(self, template_id, fields):
        template = super().update_template(template_id, {})
        if template is not None and template.name in self.fail_update_for:
            raise RuntimeError("template write failed")
        return super().update_template(template_id, fields)


class UnreachableStore(SqlRecurringExpenseStore):
    def find_due_candidate_templates(self, now):
        raise ConnectionError("database unreachable")


def expense_count(db_session):
    return db_session.query(Expense).count()


class TestRunOnce:
    """Test single generation passes."""

    def test_first_occurrence_at_start(self, db_session, sample_recurring_expense):
        """A template that never generated is due once start_date is reached."""
        now = datetime(2025, 1, 1)
        report = run_once(SqlRecurringExpenseStore(db_session), now)

        assert report.generated == 1
        assert report.checked == 1
        assert report.success
        db_session.refresh(sample_recurring_expense)
        assert sample_recurring_expense.last_generated == now

    def test_generated_expense_fields(self, db_session, make_template):
        """Expense copies amount, name and category and is dated at generation time."""
        make_template(amount=Decimal("450.00"), name="Rent", category="Housing",
                      frequency=Frequency.daily)
        now = datetime(2025, 1, 3, 7, 42, 10)
        run_once(SqlRecurringExpenseStore(db_session), now)

        expense = db_session.query(Expense).one()
        assert expense.user_id == "user-1"
        assert expense.amount == Decimal("450.00")
        assert expense.name == "Rent"
        assert expense.category == "Housing"
        assert expense.date == now
        assert expense.notes == "Auto-generated from recurring expense (daily)"

    def test_template_notes_are_kept(self, db_session, make_template):
        make_template(notes="Shared flat, split later")
        run_once(SqlRecurringExpenseStore(db_session), datetime(2025, 1, 1))

        assert db_session.query(Expense).one().notes == "Shared flat, split later"

    def test_catch_up_generates_one_and_anchors_on_now(self, db_session, make_template):
        """After 25h on a daily template, exactly one expense and last_generated = now."""
        t0 = datetime(2025, 3, 1, 8, 0)
        template = make_template(frequency=Frequency.daily, last_generated=t0)
        store = SqlRecurringExpenseStore(db_session)

        report = run_once(store, t0 + timedelta(hours=25))

        assert report.generated == 1
        assert expense_count(db_session) == 1
        db_session.refresh(template)
        assert template.last_generated == t0 + timedelta(hours=25)

        # The next occurrence is anchored on the catch-up instant
        assert run_once(store, t0 + timedelta(hours=48)).generated == 0
        assert run_once(store, t0 + timedelta(hours=49)).generated == 1

    def test_long_downtime_generates_one_per_pass(self, db_session, make_template):
        t0 = datetime(2025, 3, 1)
        make_template(frequency=Frequency.daily, last_generated=t0)

        report = run_once(SqlRecurringExpenseStore(db_session), t0 + timedelta(days=10))

        assert report.generated == 1
        assert expense_count(db_session) == 1

    def test_repeated_pass_is_noop(self, db_session, sample_recurring_expense):
        store = SqlRecurringExpenseStore(db_session)
        now = datetime(2025, 1, 1, 0, 0, 5)

        assert run_once(store, now).generated == 1
        assert run_once(store, now).generated == 0
        assert run_once(store, now + timedelta(minutes=1)).generated == 0
        assert expense_count(db_session) == 1

    def test_monthly_scenario(self, db_session, sample_recurring_expense):
        store = SqlRecurringExpenseStore(db_session)

        assert run_once(store, datetime(2025, 1, 1, 0, 0, 0)).generated == 1
        db_session.refresh(sample_recurring_expense)
        assert sample_recurring_expense.last_generated == datetime(2025, 1, 1)

        assert run_once(store, datetime(2025, 1, 15)).generated == 0

        assert run_once(store, datetime(2025, 2, 2)).generated == 1
        db_session.refresh(sample_recurring_expense)
        assert sample_recurring_expense.last_generated == datetime(2025, 2, 2)
        assert expense_count(db_session) == 2

    def test_minutely_scenario(self, db_session, make_template):
        t = datetime(2025, 5, 1, 12, 0, 0)
        template = make_template(frequency=Frequency.minutely, last_generated=t)

        report = run_once(SqlRecurringExpenseStore(db_session), t + timedelta(seconds=90))

        assert report.generated == 1
        db_session.refresh(template)
        assert template.last_generated == t + timedelta(seconds=90)

    def test_not_due_writes_nothing(self, db_session, make_template):
        last = datetime(2025, 1, 10)
        template = make_template(frequency=Frequency.weekly, last_generated=last)

        report = run_once(SqlRecurringExpenseStore(db_session), datetime(2025, 1, 16))

        assert report.checked == 1
        assert report.generated == 0
        assert expense_count(db_session) == 0
        db_session.refresh(template)
        assert template.last_generated == last

    def test_paused_template_never_generates(self, db_session, make_template):
        make_template(is_active=False, frequency=Frequency.minutely)
        store = SqlRecurringExpenseStore(db_session)

        start = datetime(2025, 1, 1)
        for minute in range(5):
            report = run_once(store, start + timedelta(minutes=minute))
            assert report.checked == 0
        assert expense_count(db_session) == 0

    def test_reactivated_template_resumes(self, db_session, make_template):
        template = make_template(is_active=False)
        store = SqlRecurringExpenseStore(db_session)
        assert run_once(store, datetime(2025, 1, 2)).generated == 0

        template.is_active = True
        db_session.commit()
        assert run_once(store, datetime(2025, 1, 3)).generated == 1

    def test_ended_template_excluded(self, db_session, make_template):
        """A template whose end_date passed is skipped even though it is overdue."""
        make_template(frequency=Frequency.daily, end_date=datetime(2025, 1, 10),
                      last_generated=datetime(2025, 1, 5))

        report = run_once(SqlRecurringExpenseStore(db_session), datetime(2025, 1, 11))

        assert report.checked == 0
        assert report.generated == 0

    def test_end_date_inclusive(self, db_session, make_template):
        make_template(frequency=Frequency.daily, end_date=datetime(2025, 1, 10))

        report = run_once(SqlRecurringExpenseStore(db_session), datetime(2025, 1, 10))

        assert report.generated == 1

    def test_future_start_excluded(self, db_session, make_template):
        make_template(start_date=datetime(2025, 6, 1))

        report = run_once(SqlRecurringExpenseStore(db_session), datetime(2025, 5, 31))

        assert report.checked == 0
        assert expense_count(db_session) == 0

    def test_aware_now_is_normalized(self, db_session, sample_recurring_expense):
        now = datetime(2025, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))

        report = run_once(SqlRecurringExpenseStore(db_session), now)

        assert report.ran_at == datetime(2025, 1, 1, 0, 0)
        assert report.generated == 1


class PausingStore(SqlRecurringExpenseStore):
    """Store that pauses every other template while writing an expense."""

    def create_expense(self, fields):
        self.db.query(RecurringExpense).filter(
            RecurringExpense.name != fields["name"]
        ).update({"is_active": False}, synchronize_session=False)
        return super().create_expense(fields)


class TestFaultIsolation:
    """One template's failure never aborts the pass."""

    def test_failed_expense_write_does_not_block_others(self, db_session, make_template):
        broken = make_template(name="Gym")
        healthy = make_template(name="Spotify")
        store = FailingStore(db_session, fail_create_for={"Gym"})

        report = run_once(store, datetime(2025, 1, 1))

        assert report.generated == 1
        assert len(report.failures) == 1
        assert report.failures[0].template_id == broken.id
        assert report.failures[0].template_name == "Gym"
        assert "expense write failed" in report.failures[0].error
        assert not report.success

        db_session.refresh(broken)
        db_session.refresh(healthy)
        assert broken.last_generated is None
        assert healthy.last_generated == datetime(2025, 1, 1)
        assert db_session.query(Expense).one().name == "Spotify"

    def test_failed_marker_update_rolls_back_expense(self, db_session, make_template):
        """The expense and the marker are written together or not at all."""
        template = make_template(name="Gym")
        store = FailingStore(db_session, fail_update_for={"Gym"})

        report = run_once(store, datetime(2025, 1, 1))

        assert report.generated == 0
        assert len(report.failures) == 1
        assert expense_count(db_session) == 0
        db_session.refresh(template)
        assert template.last_generated is None

    def test_failed_template_retried_next_pass(self, db_session, make_template):
        template = make_template(name="Gym")
        run_once(FailingStore(db_session, fail_create_for={"Gym"}), datetime(2025, 1, 1))

        report = run_once(SqlRecurringExpenseStore(db_session), datetime(2025, 1, 1, 0, 1))

        assert report.generated == 1
        db_session.refresh(template)
        assert template.last_generated == datetime(2025, 1, 1, 0, 1)

    def test_invalid_template_skipped(self, db_session, make_template):
        make_template(name="Broken", amount=Decimal("0"))
        make_template(name="Valid")

        report = run_once(SqlRecurringExpenseStore(db_session), datetime(2025, 1, 1))

        assert report.generated == 1
        assert [f.template_name for f in report.failures] == ["Broken"]
        assert "positive" in report.failures[0].error

    def test_unreachable_store_returns_error_report(self, db_session, sample_recurring_expense):
        report = run_once(UnreachableStore(db_session), datetime(2025, 1, 1))

        assert report.generated == 0
        assert report.checked == 0
        assert report.error == "database unreachable"
        assert not report.success


class TestGenerateOccurrence:
    def test_missing_template_rolls_back(self, db_session, sample_recurring_expense):
        from app.services.generation_service import TemplateNotFoundError

        class VanishingStore(SqlRecurringExpenseStore):
            def update_template(self, template_id, fields):
                return None

        with pytest.raises(TemplateNotFoundError):
            generate_occurrence(VanishingStore(db_session), sample_recurring_expense, datetime(2025, 1, 1))
        assert expense_count(db_session) == 0

    def test_default_notes(self):
        assert default_notes(Frequency.weekly) == "Auto-generated from recurring expense (weekly)"
        assert default_notes("minutely") == "Auto-generated from recurring expense (minutely)"


class TestPausedMidPass:
    def test_template_paused_during_pass_is_skipped(self, db_session, make_template):
        make_template(name="Gym")
        make_template(name="Spotify")

        report = run_once(PausingStore(db_session), datetime(2025, 1, 1))

        assert report.checked == 2
        assert report.generated == 1
        assert expense_count(db_session) == 1
