from pathlib import Path

from cookbook_cleanup.gateway.cookbook_backup.abc import BackupFailed, CookbookDownloader


class FakeCookbookDownloader(CookbookDownloader):
    """Writes a marker file per backup instead of downloading.

    Versions in failing_versions write a partial directory and then fail,
    which mirrors an interrupted download.
    """

    def __init__(self, *, failing_versions: set[tuple[str, str]] | None = None) -> None:
        self._failing_versions = failing_versions if failing_versions is not None else set()
        self._download_calls: list[tuple[str, str, Path]] = []

    def download(self, *, cookbook: str, version: str, destination: Path) -> Path | BackupFailed:
        self._download_calls.append((cookbook, version, destination))
        target = destination / f"{cookbook}-{version}"
        target.mkdir(parents=True, exist_ok=True)
        (target / "metadata.rb").write_text(f"name '{cookbook}'\n", encoding="utf-8")

        if (cookbook, version) in self._failing_versions:
            return BackupFailed(cookbook=cookbook, version=version, message="download interrupted")
        (target / "metadata.json").write_text(f'{{"version": "{version}"}}\n', encoding="utf-8")
        return target

    @property
    def download_calls(self) -> list[tuple[str, str, Path]]:
        return list(self._download_calls)
