"""Operator interaction abstraction for testing."""

from abc import ABC, abstractmethod


class Console(ABC):
    """Abstract operator prompts for dependency injection."""

    @abstractmethod
    def confirm(self, prompt: str, *, default: bool) -> bool:
        """Ask the operator a yes/no question.

        Args:
            prompt: Question to display
            default: Answer used when the operator just presses enter

        Returns:
            True if the operator agreed
        """
        ...
