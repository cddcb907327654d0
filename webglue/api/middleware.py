"""Default host middleware.

Requests that reach the app by bare IPv4 address (load balancer health
checks, direct hits on an instance) get their Host rewritten to the
canonical host of the current environment, so URL generation and domain
matching keep working. The table is read once, at construction.

Example `hosts.yml`:

    production: www.example.com
    staging: staging.example.com
"""
from __future__ import annotations

import ipaddress
import os
from collections.abc import Callable, Mapping
from pathlib import Path

import yaml
from fastapi import Request, Response
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..logging_conf import get_logger
from .models import HostTable

__all__ = [
    "DEFAULT_ENVIRONMENT",
    "ORIGINAL_HOST_HEADER",
    "DefaultHostMiddleware",
    "HostTableError",
    "get_environment_from_env",
    "get_hosts_path_from_env",
    "load_host_table",
]

logger = get_logger("api.default_host")

DEFAULT_ENVIRONMENT = "development"
ORIGINAL_HOST_HEADER = "x-original-host"


class HostTableError(ValueError):
    """Raised when the host table cannot be read or is malformed."""

    code: str = "invalid_host_table"


def get_environment_from_env() -> str:
    """Return APP_ENV, defaulting to "development"."""
    return os.getenv("APP_ENV") or DEFAULT_ENVIRONMENT


def get_hosts_path_from_env() -> str | None:
    """Return DEFAULT_HOSTS_PATH, or None when unset."""
    return os.getenv("DEFAULT_HOSTS_PATH") or None


def load_host_table(path: str | os.PathLike[str]) -> HostTable:
    """Load and validate the environment -> host mapping from a YAML file.

    An empty file yields an empty table.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except OSError as e:
        raise HostTableError(f"Cannot read host table {path}: {e}") from e
    except yaml.YAMLError as e:
        raise HostTableError(f"Host table {path} is not valid YAML: {e}") from e

    try:
        return HostTable.model_validate(raw or {})
    except ValidationError as e:
        raise HostTableError(f"Host table {path} is invalid: {e}") from e


def is_ipv4(host: str) -> bool:
    try:
        ipaddress.IPv4Address(host)
    except ValueError:
        return False
    return True


def _split_host(value: str) -> str:
    """Drop the port from a Host header value."""
    return value.rsplit(":", 1)[0] if value.count(":") == 1 else value


class DefaultHostMiddleware(BaseHTTPMiddleware):
    """Replace a bare-IP Host with the environment's canonical host.

    The original value is kept in `request.state.orig_host` and in the
    `X-Original-Host` header seen by downstream handlers.
    """

    def __init__(
        self,
        app: ASGIApp,
        hosts_path: str | Path | None = None,
        *,
        hosts: Mapping[str, str] | HostTable | None = None,
        environment: str | Callable[[], str] | None = None,
    ) -> None:
        super().__init__(app)
        if hosts is not None:
            self.hosts = hosts if isinstance(hosts, HostTable) else HostTable.model_validate(dict(hosts))
        else:
            path = hosts_path or get_hosts_path_from_env()
            if not path:
                raise HostTableError("No host table: pass hosts_path or set DEFAULT_HOSTS_PATH")
            self.hosts = load_host_table(path)
        self._environment = environment or get_environment_from_env
        logger.info(
            "default_host.init",
            extra={"event": "default_host_init", "environments": sorted(self.hosts.root)},
        )

    @property
    def environment(self) -> str:
        env = self._environment
        return env() if callable(env) else env

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        self.rewrite(request.scope)
        return await call_next(request)

    def rewrite(self, scope: dict) -> bool:
        """Rewrite the Host of an ASGI scope in place; return True if changed."""
        headers: list[tuple[bytes, bytes]] = list(scope.get("headers") or [])
        old_value = next((v.decode("latin-1") for k, v in headers if k == b"host"), "")
        old_host = _split_host(old_value)
        new_host = self.hosts.host_for(self.environment)

        if not (new_host and is_ipv4(old_host)):
            return False

        encoded = new_host.encode("latin-1")
        headers = [(k, encoded if k == b"host" else v) for k, v in headers]
        headers.append((ORIGINAL_HOST_HEADER.encode("latin-1"), old_value.encode("latin-1")))
        scope["headers"] = headers

        server = scope.get("server")
        if server:
            scope["server"] = (new_host, server[1])
        scope.setdefault("state", {})["orig_host"] = old_value

        logger.debug(
            "default_host.rewrite",
            extra={"event": "default_host_rewrite", "from": old_value, "to": new_host},
        )
        return True
