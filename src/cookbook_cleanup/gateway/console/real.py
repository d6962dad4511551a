"""Real console implementation using click prompts."""

import click

from cookbook_cleanup.gateway.console.abc import Console


class RealConsole(Console):
    """Production implementation prompting on the controlling terminal."""

    def confirm(self, prompt: str, *, default: bool) -> bool:
        return click.confirm(prompt, default=default, err=True)
