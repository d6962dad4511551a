"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

import click
import requests

from cookbook_cleanup.cli.config import ChefCredentials, ConfigError
from cookbook_cleanup.gateway.chef_server.abc import ChefServer
from cookbook_cleanup.gateway.chef_server.auth import parse_client_key
from cookbook_cleanup.gateway.chef_server.real import RealChefServer
from cookbook_cleanup.gateway.console.abc import Console
from cookbook_cleanup.gateway.console.real import RealConsole
from cookbook_cleanup.gateway.cookbook_backup.abc import CookbookDownloader
from cookbook_cleanup.gateway.cookbook_backup.real import RealCookbookDownloader

DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class CleanupContext:
    """Immutable context holding all dependencies for a cleanup run.

    Created at CLI entry point and threaded through the application.
    """

    chef_server: ChefServer
    downloader: CookbookDownloader
    console: Console
    cwd: Path  # Current working directory at CLI invocation

    @staticmethod
    def for_test(
        chef_server: ChefServer | None = None,
        downloader: CookbookDownloader | None = None,
        console: Console | None = None,
        cwd: Path | None = None,
    ) -> "CleanupContext":
        """Create a context backed by fakes for anything not supplied.

        The default console answers yes to every prompt.
        """
        from cookbook_cleanup.gateway.chef_server.fake import FakeChefServer
        from cookbook_cleanup.gateway.console.fake import FakeConsole
        from cookbook_cleanup.gateway.cookbook_backup.fake import FakeCookbookDownloader

        return CleanupContext(
            chef_server=chef_server if chef_server is not None else FakeChefServer(),
            downloader=downloader if downloader is not None else FakeCookbookDownloader(),
            console=console if console is not None else FakeConsole(confirm_response=True),
            cwd=cwd if cwd is not None else Path("/test/default/cwd"),
        )


def create_context(credentials: ChefCredentials, *, timeout: float) -> CleanupContext:
    """Create the production context for the given credentials.

    Raises:
        ConfigError: If the client key cannot be parsed
    """
    try:
        private_key = parse_client_key(credentials.client_key)
    except ValueError as e:
        msg = f"Unusable client key for {credentials.client_name}: {e}"
        raise ConfigError(msg) from e

    chef_server = RealChefServer(
        server_url=credentials.chef_server_url,
        client_name=credentials.client_name,
        private_key=private_key,
        session=requests.Session(),
        timeout=timeout,
    )
    return CleanupContext(
        chef_server=chef_server,
        downloader=RealCookbookDownloader(chef_server=chef_server),
        console=RealConsole(),
        cwd=Path.cwd(),
    )


# Key in click's ctx.meta holding a zero-argument callable that builds the
# production context. Commands only call it when no context was injected.
CONTEXT_FACTORY_KEY = "cookbook_cleanup.context_factory"


def get_context(click_ctx: click.Context) -> CleanupContext:
    """Return the injected context, or build the production one on first use.

    Raises:
        ConfigError: If credentials cannot be loaded
    """
    root = click_ctx.find_root()
    if isinstance(root.obj, CleanupContext):
        return root.obj
    factory = root.meta[CONTEXT_FACTORY_KEY]
    root.obj = factory()
    return root.obj
