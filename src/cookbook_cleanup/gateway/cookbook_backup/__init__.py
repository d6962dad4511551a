"""Cookbook version backup downloads."""

from cookbook_cleanup.gateway.cookbook_backup.abc import BackupFailed as BackupFailed
from cookbook_cleanup.gateway.cookbook_backup.abc import CookbookDownloader as CookbookDownloader
from cookbook_cleanup.gateway.cookbook_backup.fake import (
    FakeCookbookDownloader as FakeCookbookDownloader,
)
from cookbook_cleanup.gateway.cookbook_backup.real import (
    RealCookbookDownloader as RealCookbookDownloader,
)
