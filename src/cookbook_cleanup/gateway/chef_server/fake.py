"""Fake Chef server implementation for testing."""

from typing import Any

from cookbook_cleanup.gateway.chef_server.abc import ChefServer
from cookbook_cleanup.gateway.chef_server.types import (
    ChefRequestFailed,
    ChefServerError,
    RunListResolutionFailed,
)


class FakeChefServer(ChefServer):
    """In-memory fake implementation of the Chef server API.

    This fake accepts pre-configured state in its constructor and tracks
    mutations for test assertions.

    Constructor Injection:
    ---------------------
    - cookbooks: cookbook name -> versions, oldest first
    - latest: cookbook name -> versions returned for any numeric num_versions.
      If None, the last N entries of each cookbooks list are returned.
    - environments: environment name -> pins (cookbook -> constraint), in
      enumeration order
    - run_list_resolutions: environment name -> resolved cookbook versions
    - failing_run_list_environments: environments that reject run-lists
    - failing_deletes: (cookbook, version) pairs whose deletion fails
    - manifests: (cookbook, version) -> manifest document
    - files: URL -> file content
    - unreachable: if True, every query raises ChefServerError

    Mutation Tracking:
    -----------------
    - deleted_versions: (cookbook, version) pairs successfully deleted
    - delete_attempts: every (cookbook, version) passed to delete
    - resolve_calls: (environment, run_list) pairs passed to resolve_run_list
    - list_calls: (cookbook, num_versions) pairs passed to list_cookbook_versions
    """

    def __init__(
        self,
        *,
        cookbooks: dict[str, list[str]] | None = None,
        latest: dict[str, list[str]] | None = None,
        environments: dict[str, dict[str, str]] | None = None,
        run_list_resolutions: dict[str, dict[str, str]] | None = None,
        failing_run_list_environments: set[str] | None = None,
        failing_deletes: set[tuple[str, str]] | None = None,
        manifests: dict[tuple[str, str], dict[str, Any]] | None = None,
        files: dict[str, bytes] | None = None,
        unreachable: bool = False,
    ) -> None:
        self._cookbooks = {
            name: list(versions) for name, versions in (cookbooks or {}).items()
        }
        self._latest = latest
        self._environments = environments if environments is not None else {}
        self._run_list_resolutions = (
            run_list_resolutions if run_list_resolutions is not None else {}
        )
        self._failing_run_list_environments = (
            failing_run_list_environments if failing_run_list_environments is not None else set()
        )
        self._failing_deletes = failing_deletes if failing_deletes is not None else set()
        self._manifests = manifests if manifests is not None else {}
        self._files = files if files is not None else {}
        self._unreachable = unreachable

        self._deleted_versions: list[tuple[str, str]] = []
        self._delete_attempts: list[tuple[str, str]] = []
        self._resolve_calls: list[tuple[str, str]] = []
        self._list_calls: list[tuple[str | None, str]] = []

    def _check_reachable(self, method: str, path: str) -> None:
        if self._unreachable:
            raise ChefServerError(
                method=method, path=path, status_code=None, message="connection refused"
            )

    # ============================================================================
    # Query Operations
    # ============================================================================

    def list_cookbook_versions(self, *, cookbook: str | None, num_versions: str) -> dict[str, Any]:
        self._list_calls.append((cookbook, num_versions))
        path = "/cookbooks" if cookbook is None else f"/cookbooks/{cookbook}"
        self._check_reachable("GET", path)

        if cookbook is not None and cookbook not in self._cookbooks:
            raise ChefServerError(
                method="GET",
                path=path,
                status_code=404,
                message=f"Cannot find a cookbook named {cookbook}",
            )
        names = [cookbook] if cookbook is not None else list(self._cookbooks)

        result: dict[str, Any] = {}
        for name in names:
            versions = self._cookbooks[name]
            if num_versions == "all":
                selected = versions
            elif self._latest is not None:
                selected = [v for v in self._latest.get(name, []) if v in versions]
            else:
                count = int(num_versions)
                selected = versions[-count:] if count > 0 else []
            result[name] = {
                "url": f"https://chef.test/cookbooks/{name}",
                "versions": [
                    {"url": f"https://chef.test/cookbooks/{name}/{v}", "version": v}
                    for v in selected
                ],
            }
        return result

    def list_environments(self) -> list[str]:
        self._check_reachable("GET", "/environments")
        return list(self._environments)

    def get_environment_pins(self, environment: str) -> dict[str, str]:
        path = f"/environments/{environment}"
        self._check_reachable("GET", path)
        if environment not in self._environments:
            raise ChefServerError(method="GET", path=path, status_code=404, message="not found")
        return dict(self._environments[environment])

    def resolve_run_list(
        self, environment: str, run_list: str
    ) -> dict[str, str] | RunListResolutionFailed:
        self._resolve_calls.append((environment, run_list))
        if environment in self._failing_run_list_environments:
            return RunListResolutionFailed(
                environment=environment,
                run_list=run_list,
                message=f"Run list {run_list} is invalid for {environment}",
            )
        return dict(self._run_list_resolutions.get(environment, {}))

    def get_cookbook_manifest(self, cookbook: str, version: str) -> dict[str, Any]:
        path = f"/cookbooks/{cookbook}/{version}"
        self._check_reachable("GET", path)
        if (cookbook, version) not in self._manifests:
            raise ChefServerError(method="GET", path=path, status_code=404, message="not found")
        return self._manifests[(cookbook, version)]

    def fetch_file(self, url: str) -> bytes:
        if url not in self._files:
            raise ChefServerError(method="GET", path=url, status_code=404, message="not found")
        return self._files[url]

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def delete_cookbook_version(self, cookbook: str, version: str) -> None | ChefRequestFailed:
        self._delete_attempts.append((cookbook, version))
        path = f"/cookbooks/{cookbook}/{version}"
        if (cookbook, version) in self._failing_deletes:
            return ChefRequestFailed(path=path, status_code=500, message="internal server error")
        versions = self._cookbooks.get(cookbook, [])
        if version not in versions:
            return ChefRequestFailed(path=path, status_code=404, message="not found")
        versions.remove(version)
        self._deleted_versions.append((cookbook, version))
        return None

    # ============================================================================
    # Mutation Tracking Properties
    # ============================================================================

    @property
    def deleted_versions(self) -> list[tuple[str, str]]:
        return self._deleted_versions.copy()

    @property
    def delete_attempts(self) -> list[tuple[str, str]]:
        return self._delete_attempts.copy()

    @property
    def resolve_calls(self) -> list[tuple[str, str]]:
        return self._resolve_calls.copy()

    @property
    def list_calls(self) -> list[tuple[str | None, str]]:
        return self._list_calls.copy()
