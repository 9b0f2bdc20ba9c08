"""
Tests for the HabitTracker command flows.

Flows run against the in-memory store; table contents are checked
directly to make sure each command writes what it should and nothing
when it is rejected.
"""

from datetime import date
from decimal import Decimal

import pytest

from habit_tracker.errors import (
    DuplicateUser,
    InvalidHabit,
    InvalidStatus,
    NotFoundError,
    StateError,
)
from habit_tracker.models.habit import HabitStatus
from habit_tracker.orchestrator import HabitTracker, create_app
from habit_tracker.services.storage import InMemoryTabularStore, StorageError

from conftest import ALICE_HABITS, BOB_HABITS


def audit_types(store):
    return [row[2] for row in store.read_rows("Audit Log")[1:]]


class TestRegistration:

    def test_register_user_persists(self, tracker, store):
        tracker.register_user("Alice", ALICE_HABITS)
        assert [u.name for u in tracker.list_users()] == ["Alice"]
        assert "user_registered" in audit_types(store)

    def test_duplicate_user_writes_nothing(self, tracker, store):
        tracker.register_user("Alice", ALICE_HABITS)
        with pytest.raises(DuplicateUser):
            tracker.register_user("Alice", BOB_HABITS)
        assert len(store.read_rows("User Habits")) == 2
        assert "validation_failed" in audit_types(store)

    def test_wrong_habit_count(self, tracker):
        with pytest.raises(InvalidHabit):
            tracker.register_user("Alice", ALICE_HABITS[:4])
        assert tracker.list_users() == []


class TestInteractiveRegistration:

    def test_full_dialog(self, tracker, make_prompt):
        prompt = make_prompt(answers=["Alice", *ALICE_HABITS])
        user = tracker.register_user_interactive(prompt)
        assert user.habits == tuple(ALICE_HABITS)
        assert prompt.questions[1] == "Enter Habit 1 for Alice:"
        assert "5 habits" in prompt.messages[-1]

    def test_cancel_on_third_habit(self, tracker, store, make_prompt):
        prompt = make_prompt(answers=["Alice", "a", "b", None])
        assert tracker.register_user_interactive(prompt) is None
        assert tracker.list_users() == []
        assert "registration_cancelled" in audit_types(store)

    def test_cancel_on_name(self, tracker, make_prompt):
        assert tracker.register_user_interactive(make_prompt(answers=[None])) is None

    def test_blank_habit(self, tracker, make_prompt):
        prompt = make_prompt(answers=["Alice", "a", "  "])
        assert tracker.register_user_interactive(prompt) is None
        assert prompt.messages == ["Please enter a valid habit 2."]

    def test_existing_name_stops_before_habits(self, tracker, make_prompt):
        tracker.register_user("Alice", ALICE_HABITS)
        prompt = make_prompt(answers=["Alice"])
        assert tracker.register_user_interactive(prompt) is None
        assert len(prompt.questions) == 1

    def test_long_name(self, tracker, make_prompt):
        name = "A" * 150
        prompt = make_prompt(answers=[name, *ALICE_HABITS])
        user = tracker.register_user_interactive(prompt)
        assert user.name == name
        assert [u.name for u in tracker.list_users()] == [name]

    def test_repeated_habit_reported(self, tracker, make_prompt):
        prompt = make_prompt(answers=["Alice", "a", "b", "c", "d", "a"])
        assert tracker.register_user_interactive(prompt) is None
        assert "unique" in prompt.messages[-1]


class TestPeriods:

    @pytest.fixture
    def tracker(self, tracker):
        tracker.register_user("Alice", ALICE_HABITS)
        tracker.register_user("Bob", BOB_HABITS)
        return tracker

    def test_create_period(self, tracker, store):
        grid = tracker.create_period(2024, 2)
        assert len(grid.dates) == 29
        assert store.table_exists("Tracking Feb2024")
        assert len(store.read_rows("Tracking Feb2024")) == 11

    def test_create_without_users(self, store, repository, engine):
        empty = HabitTracker(repository, engine)
        empty.setup()
        with pytest.raises(StateError):
            empty.create_period(2024, 2)
        assert not store.table_exists("Tracking Feb2024")

    def test_existing_period_without_prompt(self, tracker):
        tracker.create_period(2024, 2)
        with pytest.raises(StateError):
            tracker.create_period(2024, 2)

    def test_reset_declined(self, tracker, make_prompt):
        tracker.create_period(2024, 2)
        tracker.set_cell_status(2024, 2, "Alice", "Read", date(2024, 2, 1), "complete")
        with pytest.raises(StateError):
            tracker.create_period(2024, 2, prompt=make_prompt(confirmations=[False]))
        grid = tracker.load_period(2024, 2)
        assert grid.get_cell("Alice", "Read", date(2024, 2, 1)) is HabitStatus.COMPLETE

    def test_reset_confirmed(self, tracker, store, make_prompt):
        tracker.create_period(2024, 2)
        tracker.set_cell_status(2024, 2, "Alice", "Read", date(2024, 2, 1), "complete")
        tracker.register_user("Carol", ["a", "b", "c", "d", "e"])

        grid = tracker.create_period(2024, 2, prompt=make_prompt(confirmations=[True]))
        assert grid.users == ["Alice", "Bob", "Carol"]
        loaded = tracker.load_period(2024, 2)
        assert loaded.get_cell("Alice", "Read", date(2024, 2, 1)) is HabitStatus.EMPTY
        assert "period_reset" in audit_types(store)

    def test_set_cell_status_persists(self, tracker):
        tracker.create_period(2024, 2)
        status = tracker.set_cell_status(2024, 2, "Bob", "Run", date(2024, 2, 3), "✗")
        assert status is HabitStatus.INCOMPLETE
        grid = tracker.load_period(2024, 2)
        assert grid.get_cell("Bob", "Run", date(2024, 2, 3)) is HabitStatus.INCOMPLETE

    def test_invalid_status_not_saved(self, tracker, store):
        tracker.create_period(2024, 2)
        before = store.read_rows("Tracking Feb2024")
        with pytest.raises(InvalidStatus):
            tracker.set_cell_status(2024, 2, "Alice", "Exercise", date(2024, 2, 1), "Q")
        assert store.read_rows("Tracking Feb2024") == before

    def test_missing_period(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.set_cell_status(2024, 5, "Alice", "Read", date(2024, 5, 1), "complete")

    def test_far_future_period_survives_reload(self, tracker, store):
        tracker.create_period(2070, 1)
        tracker.set_cell_status(2070, 1, "Bob", "Run", date(2070, 1, 2), "incomplete")
        assert store.table_exists("Tracking Jan2070")

        result = tracker.run_summary_aggregation()
        assert result.updated_totals["Bob"] == Decimal("3")
        assert tracker.load_period(2070, 1).get_cell(
            "Bob", "Run", date(2070, 1, 2)
        ) is HabitStatus.INCOMPLETE

    def test_periods_a_century_apart_are_separate(self, tracker, store):
        tracker.create_period(2024, 1)
        tracker.create_period(1924, 1)
        assert store.table_exists("Tracking Jan2024")
        assert store.table_exists("Tracking Jan1924")
        keys = tracker.repository.list_period_keys()
        assert [key.year for key in keys] == [1924, 2024]

    def test_run_billing(self, tracker, store):
        tracker.create_period(2024, 2)
        tracker.set_cell_status(2024, 2, "Bob", "Run", date(2024, 2, 1), "incomplete")
        results = tracker.run_billing(2024, 2)
        assert results["Bob"].charge == Decimal("3")
        assert results["Alice"].completion_rate is None
        assert store.read_rows("Tracking Feb2024")[6][-1] == "3"


class TestSummaryAggregation:

    @pytest.fixture
    def tracker(self, tracker):
        tracker.register_user("Alice", ALICE_HABITS)
        tracker.register_user("Bob", BOB_HABITS)
        tracker.create_period(2024, 1)
        tracker.create_period(2024, 2)
        tracker.set_cell_status(2024, 1, "Alice", "Read", date(2024, 1, 1), "incomplete")
        tracker.set_cell_status(2024, 2, "Alice", "Read", date(2024, 2, 1), "incomplete")
        tracker.set_cell_status(2024, 2, "Bob", "Run", date(2024, 2, 1), "complete")
        return tracker

    def test_writes_summary_and_totals(self, tracker, store):
        result = tracker.run_summary_aggregation()
        assert result.updated_totals == {"Alice": Decimal("6"), "Bob": Decimal("0")}
        assert store.read_rows("Summary View")[1:] == [
            ["Alice", "Jan24", "0.0%", "3"],
            ["Bob", "Jan24", "N/A", "0"],
            ["Alice", "Feb24", "0.0%", "3"],
            ["Bob", "Feb24", "100.0%", "0"],
        ]
        users = {row[0]: row[-1] for row in store.read_rows("User Habits")[1:]}
        assert users == {"Alice": "6", "Bob": "0"}

    def test_rerun_leaves_tables_identical(self, tracker, store):
        first = tracker.run_summary_aggregation()
        summary = store.read_rows("Summary View")
        users = store.read_rows("User Habits")

        second = tracker.run_summary_aggregation()
        assert second == first
        assert store.read_rows("Summary View") == summary
        assert store.read_rows("User Habits") == users


class TestRemoveUser:

    @pytest.fixture
    def tracker(self, tracker):
        tracker.register_user("Alice", ALICE_HABITS)
        tracker.register_user("Bob", BOB_HABITS)
        return tracker

    def test_remove_user(self, tracker, store):
        removed = tracker.remove_user("Bob")
        assert removed.name == "Bob"
        assert [u.name for u in tracker.list_users()] == ["Alice"]
        assert "user_removed" in audit_types(store)

    def test_remove_unknown_user(self, tracker, store):
        with pytest.raises(NotFoundError):
            tracker.remove_user("Zed")
        assert len(store.read_rows("User Habits")) == 3

    def test_removed_user_rows_stay_in_summary(self, tracker, store):
        tracker.create_period(2024, 1)
        tracker.set_cell_status(2024, 1, "Bob", "Run", date(2024, 1, 1), "incomplete")
        tracker.remove_user("Bob")

        result = tracker.run_summary_aggregation()
        assert "Bob" not in result.updated_totals
        assert ["Bob", "Jan24", "0.0%", "3"] in store.read_rows("Summary View")


class SummaryWriteFailure(InMemoryTabularStore):
    """Refuses every rewrite of the summary table."""

    def write_rows(self, range_id, rows):
        if range_id == "Summary View":
            raise StorageError("quota exceeded")
        super().write_rows(range_id, rows)


class TestStorageFailures:

    @pytest.fixture
    def store(self):
        return SummaryWriteFailure()

    def test_failed_write_is_audited_and_raised(self, tracker, store):
        tracker.register_user("Alice", ALICE_HABITS)
        tracker.create_period(2024, 1)

        with pytest.raises(StorageError, match="quota exceeded"):
            tracker.run_summary_aggregation()

        errors = [row for row in store.read_rows("Audit Log")[1:] if row[2] == "system_error"]
        assert len(errors) == 1
        assert errors[0][9] == "quota exceeded"
        assert "summary_rebuilt" not in audit_types(store)


class TestCreateApp:

    def test_in_memory_app(self):
        tracker = create_app(use_storage=False)
        tracker.setup()
        tracker.register_user("Alice", ALICE_HABITS)
        assert tracker.create_period(2023, 2).dates[-1] == date(2023, 2, 28)
