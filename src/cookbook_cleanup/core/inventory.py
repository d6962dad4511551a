"""Cookbook version inventory from the Chef server index."""

import logging
from typing import Any

from cookbook_cleanup.core.types import VersionSet
from cookbook_cleanup.gateway.chef_server.abc import ChefServer

logger = logging.getLogger(__name__)


def parse_version_index(index: dict[str, Any]) -> VersionSet:
    """Convert a /cookbooks response into cookbook -> version strings.

    Server ordering of each version list is preserved.
    """
    return {
        str(name): [str(entry["version"]) for entry in (data.get("versions") or [])]
        for name, data in index.items()
    }


def fetch_inventory(
    chef_server: ChefServer, *, cookbook: str | None, keep_count: int
) -> tuple[VersionSet, VersionSet]:
    """Fetch every known version and the newest keep_count versions per cookbook.

    A keep_count of zero or less keeps nothing, so the server is not asked
    for the latest versions at all.

    Returns:
        (all_versions, latest)

    Raises:
        ChefServerError: If either index cannot be fetched
    """
    all_versions = parse_version_index(
        chef_server.list_cookbook_versions(cookbook=cookbook, num_versions="all")
    )
    if keep_count <= 0:
        latest: VersionSet = {name: [] for name in all_versions}
    else:
        latest = parse_version_index(
            chef_server.list_cookbook_versions(cookbook=cookbook, num_versions=str(keep_count))
        )
    logger.debug(
        "Inventory: %d cookbooks, %d versions",
        len(all_versions),
        sum(len(versions) for versions in all_versions.values()),
    )
    return all_versions, latest
