import logging
from pathlib import Path

import click

from cookbook_cleanup.cli.commands.versions_cmd import versions_cmd
from cookbook_cleanup.cli.config import DEFAULT_CREDENTIALS_PATH, DEFAULT_PROFILE, load_credentials
from cookbook_cleanup.core.context import (
    CONTEXT_FACTORY_KEY,
    DEFAULT_TIMEOUT_SECONDS,
    CleanupContext,
    create_context,
)

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="cookbook-cleanup")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CREDENTIALS_PATH,
    show_default=True,
    help="Chef credentials file.",
)
@click.option(
    "--profile",
    envvar="CHEF_PROFILE",
    default=DEFAULT_PROFILE,
    show_default=True,
    help="Credentials profile to use.",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT_SECONDS,
    show_default=True,
    help="Seconds to wait for each Chef server request.",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, config_file: Path, profile: str, timeout: float) -> None:
    """Clean up unused objects on a Chef server."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only build the production context if none was provided (e.g., by tests).
    # Creation is deferred so --help works without credentials.
    if not isinstance(ctx.obj, CleanupContext):
        ctx.meta[CONTEXT_FACTORY_KEY] = lambda: create_context(
            load_credentials(config_file, profile), timeout=timeout
        )


cli.add_command(versions_cmd)


def main() -> None:
    """CLI entry point used by the `cookbook-cleanup` console script."""
    cli()
