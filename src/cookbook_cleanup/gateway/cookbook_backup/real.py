import logging
from pathlib import Path
from typing import Any

from cookbook_cleanup.gateway.chef_server.abc import ChefServer
from cookbook_cleanup.gateway.chef_server.types import ChefServerError
from cookbook_cleanup.gateway.cookbook_backup.abc import BackupFailed, CookbookDownloader

logger = logging.getLogger(__name__)

# Manifest segments used by servers that predate the all_files list
LEGACY_SEGMENTS = (
    "attributes",
    "definitions",
    "files",
    "libraries",
    "providers",
    "recipes",
    "resources",
    "root_files",
    "templates",
)


def manifest_files(manifest: dict[str, Any]) -> list[Any]:
    """List file entries ({"path", "url", ...}) from a cookbook version manifest.

    Entries are returned as found; callers validate them.
    """
    if "all_files" in manifest:
        return list(manifest["all_files"] or [])
    entries: list[Any] = []
    for segment in LEGACY_SEGMENTS:
        entries.extend(manifest.get(segment) or [])
    return entries


class RealCookbookDownloader(CookbookDownloader):
    """Downloads every file of a cookbook version through the Chef server gateway."""

    def __init__(self, *, chef_server: ChefServer) -> None:
        self._chef_server = chef_server

    def download(self, *, cookbook: str, version: str, destination: Path) -> Path | BackupFailed:
        target = destination / f"{cookbook}-{version}"
        try:
            manifest = self._chef_server.get_cookbook_manifest(cookbook, version)
            target.mkdir(parents=True, exist_ok=True)
            root = target.resolve()
            for entry in manifest_files(manifest):
                path = entry.get("path") if isinstance(entry, dict) else None
                url = entry.get("url") if isinstance(entry, dict) else None
                if not isinstance(path, str) or not isinstance(url, str):
                    return BackupFailed(
                        cookbook=cookbook,
                        version=version,
                        message=f"Malformed manifest entry: {entry!r}",
                    )
                file_path = (target / path).resolve()
                if not file_path.is_relative_to(root):
                    return BackupFailed(
                        cookbook=cookbook,
                        version=version,
                        message=f"Refusing to write outside backup directory: {path}",
                    )
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_bytes(self._chef_server.fetch_file(url))
                logger.debug("Backed up %s@%s %s", cookbook, version, path)
        except (ChefServerError, OSError) as e:
            return BackupFailed(cookbook=cookbook, version=version, message=str(e))
        return target
