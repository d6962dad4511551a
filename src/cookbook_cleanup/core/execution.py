"""Apply a deletion plan to the Chef server.

Every (cookbook, version) pair moves through:
    Planned -> Skipped
    Planned -> [BackedUp | BackupFailed] -> Deleted | DeleteFailed

A failure on one pair is recorded and never stops the batch.
"""

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from cookbook_cleanup.core.retention import DeletionPlan
from cookbook_cleanup.core.types import (
    ActionOutcome,
    ActionResult,
    CleanupOptions,
    ExecutionPolicy,
)
from cookbook_cleanup.gateway.chef_server.abc import ChefServer
from cookbook_cleanup.gateway.chef_server.types import ChefRequestFailed
from cookbook_cleanup.gateway.cookbook_backup.abc import BackupFailed, CookbookDownloader

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ActionResult], None]


def backup_staging_dir(backup_dir: Path, cookbook: str) -> Path:
    """Directory a cookbook's backups are downloaded into."""
    return backup_dir / cookbook


def _remove_partial_backup(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning("Could not remove partial backup %s: %s", path, e)


class ExecutionEngine:
    """Runs the configured action policy over every pair in a plan."""

    def __init__(
        self,
        *,
        chef_server: ChefServer,
        downloader: CookbookDownloader,
        options: CleanupOptions,
    ) -> None:
        self._chef_server = chef_server
        self._downloader = downloader
        self._options = options

    def apply(
        self,
        plan: DeletionPlan,
        *,
        confirmed: bool,
        on_result: ResultCallback | None = None,
    ) -> list[ActionResult]:
        """Apply the policy to the plan and return one result per action taken.

        Args:
            plan: Versions selected for deletion
            confirmed: Whether the operator approved mutating actions
            on_result: Called with each result as soon as it is produced

        Returns:
            Results in plan order. A version that was backed up (or failed to
            be) has its backup result followed by its delete result.
        """
        results: list[ActionResult] = []

        def record(result: ActionResult) -> None:
            results.append(result)
            if on_result is not None:
                on_result(result)

        mutate = self._options.policy.deletes and confirmed
        for cookbook, version in plan.pairs():
            if not mutate:
                record(ActionResult(cookbook, version, ActionOutcome.SKIPPED, None))
                continue
            if self._options.policy is ExecutionPolicy.DELETE_WITH_BACKUP:
                record(self._backup(cookbook, version))
            record(self._delete(cookbook, version))

        return results

    def _backup(self, cookbook: str, version: str) -> ActionResult:
        staging = backup_staging_dir(self._options.backup_dir, cookbook)
        try:
            staging.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.debug("Cannot create backup directory %s: %s", staging, e)
            return ActionResult(cookbook, version, ActionOutcome.BACKUP_FAILED, str(e))

        downloaded = self._downloader.download(
            cookbook=cookbook, version=version, destination=staging
        )
        if isinstance(downloaded, BackupFailed):
            logger.debug("Failed to back up %s@%s: %s", cookbook, version, downloaded.message)
            _remove_partial_backup(staging / f"{cookbook}-{version}")
            return ActionResult(cookbook, version, ActionOutcome.BACKUP_FAILED, downloaded.message)

        return ActionResult(cookbook, version, ActionOutcome.BACKED_UP, str(downloaded))

    def _delete(self, cookbook: str, version: str) -> ActionResult:
        logger.debug("Deleting cookbook %s@%s", cookbook, version)
        deleted = self._chef_server.delete_cookbook_version(cookbook, version)
        if isinstance(deleted, ChefRequestFailed):
            logger.debug("Failed to delete %s@%s: %s", cookbook, version, deleted.message)
            return ActionResult(cookbook, version, ActionOutcome.DELETE_FAILED, deleted.message)
        return ActionResult(cookbook, version, ActionOutcome.DELETED, None)
