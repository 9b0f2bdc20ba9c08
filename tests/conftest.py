"""
Shared fixtures.

Everything runs against the in-memory table store; no test touches
Google Sheets.
"""

from decimal import Decimal
from typing import Optional

import pytest

from habit_tracker.audit import AuditLogger
from habit_tracker.engine import BillingEngine, HabitRegistry
from habit_tracker.orchestrator import HabitTracker
from habit_tracker.services.prompt import UserPrompt
from habit_tracker.services.storage import (
    HabitRepository,
    InMemoryTabularStore,
    TabularAuditStorage,
)


ALICE_HABITS = ["Exercise", "Read", "Meditate", "Journal", "Sleep early"]
BOB_HABITS = ["Run", "Stretch", "Cook", "Study", "No sugar"]


class ScriptedPrompt(UserPrompt):
    """Answers questions from a script and records what it was told."""

    def __init__(self, answers=(), confirmations=()):
        self.answers = list(answers)
        self.confirmations = list(confirmations)
        self.questions: list[str] = []
        self.messages: list[str] = []

    def ask_text(self, prompt: str) -> Optional[str]:
        self.questions.append(prompt)
        return self.answers.pop(0)

    def confirm(self, prompt: str) -> bool:
        self.questions.append(prompt)
        return self.confirmations.pop(0)

    def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def registry() -> HabitRegistry:
    registry = HabitRegistry()
    registry.register_user("Alice", ALICE_HABITS)
    registry.register_user("Bob", BOB_HABITS)
    return registry


@pytest.fixture
def engine() -> BillingEngine:
    return BillingEngine(charge_amount=Decimal("3"), threshold=0.80)


@pytest.fixture
def store() -> InMemoryTabularStore:
    return InMemoryTabularStore()


@pytest.fixture
def repository(store) -> HabitRepository:
    return HabitRepository(store)


@pytest.fixture
def tracker(store, repository, engine) -> HabitTracker:
    tracker = HabitTracker(
        repository=repository,
        engine=engine,
        audit_logger=AuditLogger(TabularAuditStorage(store)),
    )
    tracker.setup()
    return tracker


@pytest.fixture
def make_prompt():
    return ScriptedPrompt
