"""Rendering of cleanup plans and outcomes for the operator."""

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from cookbook_cleanup.core.retention import DeletionPlan
from cookbook_cleanup.core.types import ActionOutcome, ActionResult

_OUTCOME_STYLES = {
    ActionOutcome.SKIPPED: "dim",
    ActionOutcome.BACKED_UP: "cyan",
    ActionOutcome.BACKUP_FAILED: "yellow",
    ActionOutcome.DELETED: "green",
    ActionOutcome.DELETE_FAILED: "bold red",
}


def format_plan_lines(plan: DeletionPlan, *, verbose: bool) -> list[str]:
    """One line per cookbook with something to delete.

    Format: "  <name> [keeping <kept...>] <candidates...>", with the number of
    candidates in front when verbose.
    """
    names = sorted(name for name, versions in plan.candidates.items() if versions)
    key_length = max((len(name) for name in plan.candidates), default=0) + 2

    lines: list[str] = []
    for name in names:
        candidates = plan.candidates[name]
        count = f"  {len(candidates):2d} " if verbose else ""
        kept = "".join(f" {v}" for v in plan.keep.get(name, []))
        lines.append(f"  {count}{name.ljust(key_length)}[keeping{kept}] {' '.join(candidates)}")
    return lines


def format_protection_lines(plan: DeletionPlan) -> list[str]:
    return [
        f" keeping {p.cookbook}:{p.version} for {p.source.value} env [{p.environment}]"
        for p in plan.protections
    ]


def format_resolution_failure_lines(plan: DeletionPlan) -> list[str]:
    return [
        f" run_list invalid for env [{failure.environment}]: {failure.message}"
        for failure in plan.resolution_failures
    ]


def format_result_line(result: ActionResult) -> str:
    """Progress line for a single action."""
    ref = f"{result.cookbook}@{result.version}"
    if result.outcome is ActionOutcome.BACKED_UP:
        return f"Backed up cookbook {ref}"
    if result.outcome is ActionOutcome.BACKUP_FAILED:
        return click.style(f"Failed to back up cookbook {ref}: {result.message}", fg="yellow")
    if result.outcome is ActionOutcome.DELETED:
        return f"Deleted cookbook {ref}"
    if result.outcome is ActionOutcome.DELETE_FAILED:
        return click.style(f"Failed to delete cookbook {ref}: {result.message}", fg="red")
    return f"Skipped cookbook {ref}"


def summarize_results(results: list[ActionResult]) -> dict[str, dict[ActionOutcome, list[str]]]:
    """Group versions by cookbook then outcome, keeping cookbook name order."""
    summary: dict[str, dict[ActionOutcome, list[str]]] = {}
    for result in sorted(results, key=lambda r: r.cookbook):
        by_outcome = summary.setdefault(result.cookbook, {})
        by_outcome.setdefault(result.outcome, []).append(result.version)
    return summary


def render_results_table(plan: DeletionPlan, results: list[ActionResult]) -> None:
    """Render kept versions and action outcomes per cookbook to stderr."""
    summary = summarize_results(results)
    if not summary:
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Cookbook", no_wrap=True)
    table.add_column("Kept", no_wrap=False)
    table.add_column("Outcome", no_wrap=True)
    table.add_column("Versions", no_wrap=False)

    for cookbook, by_outcome in summary.items():
        kept = " ".join(plan.keep.get(cookbook, []))
        first = True
        for outcome in ActionOutcome:
            if outcome not in by_outcome:
                continue
            table.add_row(
                cookbook if first else "",
                kept if first else "",
                Text(outcome.value, style=_OUTCOME_STYLES[outcome]),
                " ".join(by_outcome[outcome]),
            )
            first = False

    console = Console(stderr=True)
    console.print(table)
