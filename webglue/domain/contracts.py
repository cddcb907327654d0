"""Collaborator contracts.

The library only ever calls these members; concrete web-framework bindings
(see `webglue.api.transport`) adapt their own objects to them.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

__all__ = ["HostRequest", "NegotiatedRequest", "Transport"]


@runtime_checkable
class HostRequest(Protocol):
    """Anything with the host name the client asked for (no port)."""

    @property
    def host(self) -> str: ...


class NegotiatedRequest(Protocol):
    """The request side of a transport: its negotiated output format, if any."""

    @property
    def format(self) -> str | None: ...


@runtime_checkable
class Transport(Protocol):
    """The object that actually emits a response to the client."""

    @property
    def params(self) -> Mapping[str, Any]: ...

    @property
    def request(self) -> NegotiatedRequest: ...

    @property
    def performed(self) -> bool: ...

    def render(
        self,
        payload: Mapping[str, Any],
        *,
        status: int,
        callback: str | None = None,
        content_type: str | None = None,
    ) -> None: ...
