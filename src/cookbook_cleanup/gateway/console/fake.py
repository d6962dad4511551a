"""Fake Console implementation for testing."""

from cookbook_cleanup.gateway.console.abc import Console


class FakeConsole(Console):
    """In-memory fake that answers every prompt with a configured response.

    This class has NO public setup methods. All state is provided via constructor.
    """

    def __init__(self, *, confirm_response: bool) -> None:
        self._confirm_response = confirm_response
        self._prompts: list[str] = []

    def confirm(self, prompt: str, *, default: bool) -> bool:
        self._prompts.append(prompt)
        return self._confirm_response

    @property
    def prompts(self) -> list[str]:
        """Prompts shown during the test, in order."""
        return list(self._prompts)
