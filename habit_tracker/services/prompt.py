"""
User Prompt Interface

The surface the tracker uses to ask a person something: a dialog box,
a chat bot, a terminal. The engine itself never prompts; only the
interactive flows in the orchestrator do.
"""

from abc import ABC, abstractmethod
from typing import Optional


class UserPrompt(ABC):

    @abstractmethod
    def ask_text(self, prompt: str) -> Optional[str]:
        """
        Ask for free text.

        Returns:
            The entered text, or None if the user cancelled
        """
        pass

    @abstractmethod
    def confirm(self, prompt: str) -> bool:
        """Ask a yes/no question."""
        pass

    @abstractmethod
    def notify(self, message: str) -> None:
        pass
