"""Command that finds and removes unused cookbook versions."""

from pathlib import Path
from typing import NoReturn

import click

from cookbook_cleanup.cli.config import ConfigError
from cookbook_cleanup.core.context import CleanupContext, get_context
from cookbook_cleanup.core.execution import ExecutionEngine
from cookbook_cleanup.core.inventory import fetch_inventory
from cookbook_cleanup.core.reporting import (
    format_plan_lines,
    format_protection_lines,
    format_resolution_failure_lines,
    format_result_line,
    render_results_table,
)
from cookbook_cleanup.core.retention import RetentionResolver
from cookbook_cleanup.core.types import (
    DEFAULT_KEEP_COUNT,
    ActionOutcome,
    CleanupOptions,
    ExecutionPolicy,
)
from cookbook_cleanup.gateway.chef_server.types import ChefServerError

DEFAULT_BACKUP_DIR = Path(".cleanup")


def _fail(message: str) -> NoReturn:
    click.echo(click.style("Error: ", fg="red") + message, err=True)
    raise SystemExit(1) from None


def _confirm_deletion(ctx: CleanupContext, options: CleanupOptions) -> bool:
    """Prompt once before any mutation unless --yes was given.

    Returns True if deletion should proceed, False if aborted.
    """
    if options.assume_yes:
        return True

    click.echo(err=True)
    if not ctx.console.confirm(
        "Do you really want to delete unused cookbook versions from the server?", default=False
    ):
        click.echo(click.style("Aborted.", fg="red", bold=True), err=True)
        return False
    return True


def _versions_impl(ctx: CleanupContext, options: CleanupOptions) -> None:
    """Implementation of the versions command.

    Raises:
        ChefServerError: If the inventory or an environment cannot be fetched
    """
    click.echo("Searching for unused cookbook versions...")
    all_versions, latest = fetch_inventory(
        ctx.chef_server, cookbook=options.cookbook, keep_count=options.keep_count
    )
    environments = ctx.chef_server.list_environments()

    resolver = RetentionResolver(chef_server=ctx.chef_server, options=options)
    plan = resolver.resolve(all_versions=all_versions, latest=latest, environments=environments)

    if options.verbose:
        for line in format_resolution_failure_lines(plan):
            click.echo(line)
        for line in format_protection_lines(plan):
            click.echo(line)

    click.echo("Cookbook Versions:")
    for line in format_plan_lines(plan, verbose=options.verbose):
        click.echo(line)

    if not options.policy.deletes:
        click.echo(
            "Not deleting unused cookbook versions; use --delete if you want to remove them"
        )
        return

    if plan.is_empty:
        click.echo("No unused cookbook versions to delete.")
        return

    if not _confirm_deletion(ctx, options):
        return

    engine = ExecutionEngine(
        chef_server=ctx.chef_server, downloader=ctx.downloader, options=options
    )
    results = engine.apply(
        plan,
        confirmed=True,
        on_result=lambda result: click.echo(format_result_line(result), err=True),
    )
    render_results_table(plan, results)

    failed = [r for r in results if r.outcome is ActionOutcome.DELETE_FAILED]
    if failed:
        _fail(f"{len(failed)} cookbook version(s) could not be deleted")


@click.command("versions")
@click.option("-D", "--delete", is_flag=True, help="Delete the unused versions of the cookbooks.")
@click.option(
    "-B", "--backup", is_flag=True, help="Back up the cookbook versions that are being deleted."
)
@click.option(
    "-K",
    "--keep",
    type=int,
    default=DEFAULT_KEEP_COUNT,
    show_default=True,
    help="Keep the last N versions.",
)
@click.option("-C", "--cookbook", default=None, help="Only clean up the named cookbook.")
@click.option(
    "-R",
    "--runlist",
    "run_list",
    default=None,
    help="Run-list to evaluate in every environment, e.g. 'cookbook::default'.",
)
@click.option(
    "--backup-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_BACKUP_DIR,
    show_default=True,
    help="Directory backups are written to.",
)
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Do not ask for confirmation.")
@click.option("-V", "--verbose", is_flag=True, help="Explain why each version is kept.")
@click.pass_context
def versions_cmd(
    click_ctx: click.Context,
    delete: bool,
    backup: bool,
    keep: int,
    cookbook: str | None,
    run_list: str | None,
    backup_dir: Path,
    assume_yes: bool,
    verbose: bool,
) -> None:
    """Find cookbook versions no environment uses and optionally delete them.

    The newest N versions of every cookbook are always kept, as is every
    version pinned by an environment or resolved from --runlist in any
    environment.
    """
    try:
        ctx = get_context(click_ctx)
    except ConfigError as e:
        _fail(str(e))

    options = CleanupOptions(
        keep_count=keep,
        cookbook=cookbook,
        run_list=run_list,
        policy=ExecutionPolicy.from_flags(delete=delete, backup=backup),
        backup_dir=backup_dir if backup_dir.is_absolute() else ctx.cwd / backup_dir,
        assume_yes=assume_yes,
        verbose=verbose,
    )
    try:
        _versions_impl(ctx, options)
    except ChefServerError as e:
        _fail(str(e))
