from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class BackupFailed:
    cookbook: str
    version: str
    message: str


class CookbookDownloader(ABC):
    @abstractmethod
    def download(self, *, cookbook: str, version: str, destination: Path) -> Path | BackupFailed:
        """Materialize a cookbook version under destination/<cookbook>-<version>/.

        Partially written content is left in place on failure; callers own cleanup.

        Returns:
            The directory the cookbook was written to, or BackupFailed
        """
        ...
