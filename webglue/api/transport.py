"""Starlette/FastAPI binding for `AjaxResponse`.

`StarletteTransport` wraps an incoming request and collects the response
produced by `AjaxResponse.reply()`; route handlers return `transport.response`.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic_core import to_jsonable_python

from ..service.ajax_response import is_valid_callback

__all__ = ["RequestView", "StarletteTransport", "negotiate_format"]

# Accept media type -> format name understood by AjaxResponse.
_FORMATS_BY_MEDIA_TYPE = {
    "application/json": "json",
    "text/json": "json",
    "application/javascript": "jsonp",
    "text/javascript": "jsonp",
    "text/plain": "text",
    "text/html": "html",
}

_MEDIA_TYPES_BY_FORMAT = {
    "json": "application/json",
    "jsonp": "application/javascript",
    "pretty_jsonp": "application/javascript",
    "text": "text/plain",
}


def negotiate_format(accept: str | None) -> str | None:
    """Return the format for the first recognised media type in `accept`.

    Quality values are ignored; order in the header decides. Wildcards and
    unknown types yield None so the caller's default applies.
    """
    if not accept:
        return None
    for part in accept.split(","):
        media_type = part.split(";", 1)[0].strip().lower()
        fmt = _FORMATS_BY_MEDIA_TYPE.get(media_type)
        if fmt:
            return fmt
    return None


class RequestView:
    """The parts of a Starlette request the library collaborators read."""

    __slots__ = ("_request",)

    def __init__(self, request: Request) -> None:
        self._request = request

    @property
    def host(self) -> str:
        return self._request.url.hostname or ""

    @property
    def format(self) -> str | None:
        return negotiate_format(self._request.headers.get("accept"))


class StarletteTransport:
    """Adapt a Starlette request to the `Transport` contract."""

    def __init__(self, request: Request) -> None:
        self._request = request
        self._view = RequestView(request)
        self.response: Response | None = None

    @property
    def params(self) -> Mapping[str, Any]:
        return self._request.query_params

    @property
    def request(self) -> RequestView:
        return self._view

    @property
    def performed(self) -> bool:
        return self.response is not None

    def render(
        self,
        payload: Mapping[str, Any],
        *,
        status: int,
        callback: str | None = None,
        content_type: str | None = None,
    ) -> None:
        if len(payload) != 1:
            raise ValueError("render() expects exactly one {format: content} entry")
        ((fmt, content),) = payload.items()
        if callback and not is_valid_callback(callback):
            raise ValueError(f"invalid JSONP callback name: {callback!r}")

        if callback and not isinstance(content, str):
            # Callback formats that arrive unserialized are rendered indented.
            content = json.dumps(to_jsonable_python(content), indent=2, ensure_ascii=False)

        if not isinstance(content, str):
            self.response = JSONResponse(content=content, status_code=status)
            if content_type:
                self.response.headers["content-type"] = content_type
            return

        if callback:
            # Empty comment prefix, as Rails emits for JSONP.
            content = f"/**/{callback}({content})"
        media_type = content_type or _MEDIA_TYPES_BY_FORMAT.get(fmt, "application/json")
        self.response = Response(content=content, status_code=status, media_type=media_type)
