"""
Habit Registry

Owns the registered users. Registration validates everything up front,
so a rejected registration leaves the registry untouched.
"""

from decimal import Decimal
from typing import Iterable, Optional

from pydantic import ValidationError as ModelValidationError

from habit_tracker.errors import DuplicateUser, InvalidHabit, NotFoundError, ValidationError
from habit_tracker.models.habit import HABITS_PER_USER, User


class HabitRegistry:
    """Users in registration order, keyed by name."""

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: dict[str, User] = {}
        for user in users or ():
            if user.name in self._users:
                raise DuplicateUser(f"User already exists: {user.name}")
            self._users[user.name] = user

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, name: object) -> bool:
        return name in self._users

    def register_user(self, name: str, habits: Iterable[str]) -> User:
        """
        Register a new user with exactly five habits.

        Raises:
            ValidationError: If the name is blank
            DuplicateUser: If the name is already registered
            InvalidHabit: Unless there are exactly five distinct,
                non-blank habits after trimming
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("User name cannot be blank")
        if name in self._users:
            raise DuplicateUser(f"User already exists: {name}")

        cleaned = [(habit or "").strip() for habit in habits]
        if len(cleaned) != HABITS_PER_USER:
            raise InvalidHabit(
                f"Expected {HABITS_PER_USER} habits, got {len(cleaned)}"
            )
        blank = [i for i, habit in enumerate(cleaned, start=1) if not habit]
        if blank:
            raise InvalidHabit(f"Habit {blank[0]} is blank")
        if len(set(cleaned)) != len(cleaned):
            raise InvalidHabit(f"Habit names must be unique for {name}")

        try:
            user = User(name=name, habits=tuple(cleaned))
        except ModelValidationError as e:
            raise ValidationError(f"Invalid user {name!r}: {e}") from e
        self._users[name] = user
        return user

    def list_users(self) -> list[User]:
        return list(self._users.values())

    def get_user(self, name: str) -> User:
        try:
            return self._users[name]
        except KeyError:
            raise NotFoundError(f"User not found: {name}") from None

    def remove_user(self, name: str) -> User:
        """Remove a user. Their historical period rows are not touched."""
        user = self.get_user(name)
        del self._users[name]
        return user

    def set_lifetime_charge(self, name: str, amount: Decimal) -> None:
        """Replace (never add to) the user's lifetime charge."""
        self.get_user(name).lifetime_charge = Decimal(amount)
