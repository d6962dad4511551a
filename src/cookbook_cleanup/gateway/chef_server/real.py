"""Production Chef server gateway using requests with signed headers."""

import json
import logging
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote, urlsplit

import requests
from cryptography.hazmat.primitives.asymmetric import rsa

from cookbook_cleanup.gateway.chef_server.abc import ChefServer
from cookbook_cleanup.gateway.chef_server.auth import sign_request
from cookbook_cleanup.gateway.chef_server.types import (
    ChefRequestFailed,
    ChefServerError,
    RunListResolutionFailed,
)

logger = logging.getLogger(__name__)

# Protocol version advertised to the server, not the client library version
CHEF_VERSION = "18.0.0"


def _error_message(response: requests.Response) -> str:
    """Extract Chef's {"error": [...]} message, falling back to the raw body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason
    if isinstance(data, dict) and "error" in data:
        error = data["error"]
        if isinstance(error, list):
            return "; ".join(str(e) for e in error)
        return str(error)
    return response.text


class RealChefServer(ChefServer):
    """Production implementation talking to a Chef Infra Server."""

    def __init__(
        self,
        *,
        server_url: str,
        client_name: str,
        private_key: rsa.RSAPrivateKey,
        session: requests.Session,
        timeout: float,
    ) -> None:
        self._base_url = server_url.rstrip("/")
        self._client_name = client_name
        self._private_key = private_key
        self._session = session
        self._timeout = timeout

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._base_url}/{endpoint}"
        path = urlsplit(url).path
        body = json.dumps(payload).encode("utf-8") if payload is not None else b""

        headers = {
            "Accept": "application/json",
            "X-Chef-Version": CHEF_VERSION,
            **sign_request(
                method=method,
                path=path,
                body=body,
                client_name=self._client_name,
                private_key=self._private_key,
                now=datetime.now(UTC),
            ),
        }
        if payload is not None:
            headers["Content-Type"] = "application/json"

        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                data=body if body else None,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ChefServerError(
                method=method, path=path, status_code=None, message=str(e)
            ) from e

        if not response.ok:
            raise ChefServerError(
                method=method,
                path=path,
                status_code=response.status_code,
                message=_error_message(response),
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ChefServerError(
                method=method,
                path=path,
                status_code=response.status_code,
                message=f"invalid JSON response: {e}",
            ) from e

    # ============================================================================
    # Query Operations
    # ============================================================================

    def list_cookbook_versions(self, *, cookbook: str | None, num_versions: str) -> dict[str, Any]:
        endpoint = "cookbooks" if cookbook is None else f"cookbooks/{quote(cookbook, safe='')}"
        data = self._request("GET", endpoint, params={"num_versions": num_versions})
        return data if data is not None else {}

    def list_environments(self) -> list[str]:
        data = self._request("GET", "environments")
        return list(data) if data is not None else []

    def get_environment_pins(self, environment: str) -> dict[str, str]:
        data = self._request("GET", f"environments/{quote(environment, safe='')}")
        if data is None:
            return {}
        pins = data.get("cookbook_versions") or {}
        return {str(name): str(constraint) for name, constraint in pins.items()}

    def resolve_run_list(
        self, environment: str, run_list: str
    ) -> dict[str, str] | RunListResolutionFailed:
        try:
            data = self._request(
                "POST",
                f"environments/{quote(environment, safe='')}/cookbook_versions",
                payload={"run_list": [run_list]},
            )
        except ChefServerError as e:
            return RunListResolutionFailed(
                environment=environment, run_list=run_list, message=str(e)
            )

        if data is None:
            return {}
        if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
            return RunListResolutionFailed(
                environment=environment,
                run_list=run_list,
                message="unexpected run-list resolution response",
            )

        resolved: dict[str, str] = {}
        for key, cookbook in data.items():
            name = cookbook.get("cookbook_name", key)
            version = cookbook.get("version") or (cookbook.get("metadata") or {}).get("version")
            if version is None:
                logger.debug("No version in run-list resolution for %s in %s", name, environment)
                continue
            resolved[str(name)] = str(version)
        return resolved

    def get_cookbook_manifest(self, cookbook: str, version: str) -> dict[str, Any]:
        data = self._request(
            "GET", f"cookbooks/{quote(cookbook, safe='')}/{quote(version, safe='')}"
        )
        return data if data is not None else {}

    def fetch_file(self, url: str) -> bytes:
        # Bookshelf URLs are pre-signed; Chef request signing does not apply
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as e:
            raise ChefServerError(
                method="GET", path=urlsplit(url).path, status_code=None, message=str(e)
            ) from e
        if not response.ok:
            raise ChefServerError(
                method="GET",
                path=urlsplit(url).path,
                status_code=response.status_code,
                message=response.reason,
            )
        return response.content

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def delete_cookbook_version(self, cookbook: str, version: str) -> None | ChefRequestFailed:
        endpoint = f"cookbooks/{quote(cookbook, safe='')}/{quote(version, safe='')}"
        try:
            self._request("DELETE", endpoint)
        except ChefServerError as e:
            return ChefRequestFailed(path=e.path, status_code=e.status_code, message=str(e))
        return None
