"""Type definitions for cookbook version cleanup."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# Cookbook name -> version strings. Versions are opaque and compared for equality only.
VersionSet = dict[str, list[str]]

DEFAULT_KEEP_COUNT = 3


class ProtectionSource(Enum):
    RUN_LIST = "runlist"
    PIN = "pinned"


@dataclass(frozen=True)
class Protection:
    """A cookbook version kept because an environment can still resolve to it."""

    source: ProtectionSource
    environment: str
    cookbook: str
    version: str


class ExecutionPolicy(Enum):
    REPORT_ONLY = "report-only"
    DELETE = "delete"
    DELETE_WITH_BACKUP = "delete-with-backup"

    @staticmethod
    def from_flags(*, delete: bool, backup: bool) -> "ExecutionPolicy":
        """Backups only happen as part of a deletion."""
        if not delete:
            return ExecutionPolicy.REPORT_ONLY
        if backup:
            return ExecutionPolicy.DELETE_WITH_BACKUP
        return ExecutionPolicy.DELETE

    @property
    def deletes(self) -> bool:
        return self is not ExecutionPolicy.REPORT_ONLY


class ActionOutcome(Enum):
    SKIPPED = "skipped"
    BACKED_UP = "backed up"
    BACKUP_FAILED = "backup failed"
    DELETED = "deleted"
    DELETE_FAILED = "delete failed"

    @property
    def is_failure(self) -> bool:
        return self in (ActionOutcome.BACKUP_FAILED, ActionOutcome.DELETE_FAILED)


@dataclass(frozen=True)
class ActionResult:
    cookbook: str
    version: str
    outcome: ActionOutcome
    message: str | None


@dataclass(frozen=True)
class CleanupOptions:
    """Run configuration, built once from CLI flags and passed explicitly.

    Attributes:
        keep_count: Newest versions per cookbook kept unconditionally
        cookbook: Restrict the run to one cookbook, or None for all
        run_list: Run-list expression resolved in every environment, or None
        policy: What to do with the versions selected for deletion
        backup_dir: Staging root for backups; each cookbook gets a subdirectory
        assume_yes: Skip the confirmation prompt
        verbose: Report counts, protections and run-list failures
    """

    keep_count: int
    cookbook: str | None
    run_list: str | None
    policy: ExecutionPolicy
    backup_dir: Path
    assume_yes: bool
    verbose: bool
