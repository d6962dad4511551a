"""Type definitions for Chef server operations."""

from dataclasses import dataclass


class ChefServerError(Exception):
    """Transport failure or non-2xx response from the Chef server API."""

    def __init__(self, *, method: str, path: str, status_code: int | None, message: str) -> None:
        status = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"Chef server error{status} on {method} {path}: {message}")
        self.method = method
        self.path = path
        self.status_code = status_code


@dataclass(frozen=True)
class RunListResolutionFailed:
    """Run-list could not be resolved against an environment.

    Scoped to one environment; never fatal to a cleanup run.
    """

    environment: str
    run_list: str
    message: str


@dataclass(frozen=True)
class ChefRequestFailed:
    """A mutating Chef API request did not succeed."""

    path: str
    status_code: int | None
    message: str
