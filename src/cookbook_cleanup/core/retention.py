"""Retention resolution: which cookbook versions are safe to delete.

Starting from the full inventory, versions are protected by:
- the keep-N baseline (newest N versions of every cookbook)
- run-list resolution in every environment (when a run-list is given)
- environment cookbook version pins

Each protection step: (RetentionState, ...) -> RetentionState
Steps never mutate their input, so protection is monotonic: once a version
leaves the candidate set it cannot come back within a run.
"""

import logging
from dataclasses import dataclass

from cookbook_cleanup.core.types import CleanupOptions, Protection, ProtectionSource, VersionSet
from cookbook_cleanup.gateway.chef_server.abc import ChefServer
from cookbook_cleanup.gateway.chef_server.types import RunListResolutionFailed

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetentionState:
    """Immutable accumulator threaded through the protection steps."""

    candidates: VersionSet
    keep: VersionSet
    protections: tuple[Protection, ...]
    resolution_failures: tuple[RunListResolutionFailed, ...]


@dataclass(frozen=True)
class DeletionPlan:
    """Versions eligible for removal once every protection is applied.

    Attributes:
        candidates: Cookbook -> versions to delete
        keep: Cookbook -> kept versions (latest N, then protections in discovery order)
        protections: Every protection that removed a candidate
        resolution_failures: Environments whose run-list could not be resolved
    """

    candidates: VersionSet
    keep: VersionSet
    protections: tuple[Protection, ...]
    resolution_failures: tuple[RunListResolutionFailed, ...]

    def pairs(self) -> list[tuple[str, str]]:
        """(cookbook, version) pairs to act on, in cookbook name order."""
        return [
            (cookbook, version)
            for cookbook in sorted(self.candidates)
            for version in self.candidates[cookbook]
        ]

    @property
    def is_empty(self) -> bool:
        return not any(self.candidates.values())


# ---------------------------------------------------------------------------
# Protection Steps
# ---------------------------------------------------------------------------


def pinned_version(constraint: str) -> str | None:
    """Take the last whitespace-delimited token of a constraint as the pinned version.

    "= 1.2.0" and "1.2.0" both pin "1.2.0". Richer operators are truncated the
    same way, so "~> 1.2" pins "1.2" exactly.
    """
    tokens = constraint.split()
    if not tokens:
        return None
    return tokens[-1]


def initial_state(all_versions: VersionSet) -> RetentionState:
    return RetentionState(
        candidates={name: list(versions) for name, versions in all_versions.items()},
        keep={},
        protections=(),
        resolution_failures=(),
    )


def keep_latest(state: RetentionState, latest: VersionSet) -> RetentionState:
    """Remove the newest N versions of every cookbook from the candidates."""
    candidates = {name: list(versions) for name, versions in state.candidates.items()}
    keep = {name: list(versions) for name, versions in state.keep.items()}
    for name in candidates:
        keep.setdefault(name, [])
    for name, versions in latest.items():
        keep.setdefault(name, [])
        for version in versions:
            if version in candidates.get(name, []):
                candidates[name].remove(version)
            if version not in keep[name]:
                keep[name].append(version)
    return RetentionState(
        candidates=candidates,
        keep=keep,
        protections=state.protections,
        resolution_failures=state.resolution_failures,
    )


def protect_version(state: RetentionState, protection: Protection) -> RetentionState:
    """Move one version from the candidates into the keep set.

    A cookbook or version that is not a candidate is a no-op.
    """
    if protection.version not in state.candidates.get(protection.cookbook, []):
        return state

    candidates = dict(state.candidates)
    candidates[protection.cookbook] = [
        v for v in state.candidates[protection.cookbook] if v != protection.version
    ]
    keep = dict(state.keep)
    keep[protection.cookbook] = [*state.keep.get(protection.cookbook, []), protection.version]

    logger.debug(
        "Keeping %s:%s for %s env [%s]",
        protection.cookbook,
        protection.version,
        protection.source.value,
        protection.environment,
    )
    return RetentionState(
        candidates=candidates,
        keep=keep,
        protections=(*state.protections, protection),
        resolution_failures=state.resolution_failures,
    )


def keep_for_run_list(
    state: RetentionState, chef_server: ChefServer, *, environment: str, run_list: str
) -> RetentionState:
    """Protect every version the run-list resolves to in the environment.

    A rejected run-list is recorded and leaves the state otherwise unchanged.
    """
    resolved = chef_server.resolve_run_list(environment, run_list)
    if isinstance(resolved, RunListResolutionFailed):
        logger.debug("Run-list invalid for env [%s]: %s", environment, resolved.message)
        return RetentionState(
            candidates=state.candidates,
            keep=state.keep,
            protections=state.protections,
            resolution_failures=(*state.resolution_failures, resolved),
        )

    for cookbook, version in resolved.items():
        if cookbook not in state.candidates:
            logger.debug(
                "Skipping %s from run-list in env [%s]: not in inventory", cookbook, environment
            )
            continue
        state = protect_version(
            state,
            Protection(
                source=ProtectionSource.RUN_LIST,
                environment=environment,
                cookbook=cookbook,
                version=version,
            ),
        )
    return state


def keep_for_pins(
    state: RetentionState, chef_server: ChefServer, *, environment: str
) -> RetentionState:
    """Protect every version pinned by the environment.

    Raises:
        ChefServerError: If the environment cannot be loaded
    """
    for cookbook, constraint in chef_server.get_environment_pins(environment).items():
        version = pinned_version(constraint)
        if version is None:
            continue
        state = protect_version(
            state,
            Protection(
                source=ProtectionSource.PIN,
                environment=environment,
                cookbook=cookbook,
                version=version,
            ),
        )
    return state


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class RetentionResolver:
    """Computes the deletion plan for one cleanup run."""

    def __init__(self, *, chef_server: ChefServer, options: CleanupOptions) -> None:
        self._chef_server = chef_server
        self._options = options

    def resolve(
        self,
        *,
        all_versions: VersionSet,
        latest: VersionSet,
        environments: list[str],
    ) -> DeletionPlan:
        """Subtract keep-N, run-list and pin protections from the inventory.

        Environments are visited in the order given; the order only affects
        logging. Run-list failures never stop the run.

        Raises:
            ChefServerError: If an environment cannot be loaded
        """
        state = keep_latest(initial_state(all_versions), latest)

        for environment in environments:
            if self._options.run_list is not None:
                state = keep_for_run_list(
                    state,
                    self._chef_server,
                    environment=environment,
                    run_list=self._options.run_list,
                )
            state = keep_for_pins(state, self._chef_server, environment=environment)

        return DeletionPlan(
            candidates=state.candidates,
            keep=state.keep,
            protections=state.protections,
            resolution_failures=state.resolution_failures,
        )
