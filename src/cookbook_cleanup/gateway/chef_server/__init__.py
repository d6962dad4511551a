"""Chef server REST API gateway."""

from cookbook_cleanup.gateway.chef_server.abc import ChefServer as ChefServer
from cookbook_cleanup.gateway.chef_server.fake import FakeChefServer as FakeChefServer
from cookbook_cleanup.gateway.chef_server.real import RealChefServer as RealChefServer
from cookbook_cleanup.gateway.chef_server.types import ChefRequestFailed as ChefRequestFailed
from cookbook_cleanup.gateway.chef_server.types import ChefServerError as ChefServerError
from cookbook_cleanup.gateway.chef_server.types import (
    RunListResolutionFailed as RunListResolutionFailed,
)
