"""Abstract interface for the Chef server REST API.

Covers the cookbook inventory, environment directory, run-list resolution,
and cookbook version deletion endpoints used by cleanup.
"""

from abc import ABC, abstractmethod
from typing import Any

from cookbook_cleanup.gateway.chef_server.types import ChefRequestFailed, RunListResolutionFailed


class ChefServer(ABC):
    """Abstract Chef server operations for dependency injection.

    Query operations raise ChefServerError when the server cannot answer.
    Per-environment and per-version operations return failure values instead.
    """

    # ============================================================================
    # Query Operations
    # ============================================================================

    @abstractmethod
    def list_cookbook_versions(self, *, cookbook: str | None, num_versions: str) -> dict[str, Any]:
        """Fetch the cookbook index.

        Args:
            cookbook: Restrict the query to a single cookbook, or None for all
            num_versions: "all" or the number of most recent versions to return

        Returns:
            Mapping of cookbook name to {"versions": [{"version": ...}, ...]}

        Raises:
            ChefServerError: If the request fails
        """
        ...

    @abstractmethod
    def list_environments(self) -> list[str]:
        """List environment names in server enumeration order.

        Raises:
            ChefServerError: If the request fails
        """
        ...

    @abstractmethod
    def get_environment_pins(self, environment: str) -> dict[str, str]:
        """Load an environment's cookbook version constraints.

        Returns:
            Mapping of cookbook name to constraint expression (e.g. "= 1.2.0")

        Raises:
            ChefServerError: If the request fails
        """
        ...

    @abstractmethod
    def resolve_run_list(
        self, environment: str, run_list: str
    ) -> dict[str, str] | RunListResolutionFailed:
        """Resolve a run-list against an environment.

        Returns:
            Mapping of cookbook name to the resolved version, or
            RunListResolutionFailed if the server rejects the run-list
        """
        ...

    @abstractmethod
    def get_cookbook_manifest(self, cookbook: str, version: str) -> dict[str, Any]:
        """Fetch the manifest of one cookbook version.

        Raises:
            ChefServerError: If the request fails
        """
        ...

    @abstractmethod
    def fetch_file(self, url: str) -> bytes:
        """Download the content of a cookbook file by its manifest URL.

        Raises:
            ChefServerError: If the download fails
        """
        ...

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    @abstractmethod
    def delete_cookbook_version(self, cookbook: str, version: str) -> None | ChefRequestFailed:
        """Delete one cookbook version from the server.

        Returns:
            None on success, ChefRequestFailed otherwise
        """
        ...
