from __future__ import annotations

import json
import re
import time
from typing import Any

from pydantic_core import to_jsonable_python

from ..domain.contracts import Transport
from ..domain.envelope import Envelope
from ..domain.status import DEFAULT_STATUS, StatusLike, status_code
from ..logging_conf import get_logger

__all__ = [
    "CALLBACK_FORMATS",
    "DEFAULT_FORMAT",
    "SERIALIZED_FORMATS",
    "AjaxResponse",
    "is_valid_callback",
]

logger = get_logger("service.ajax")

DEFAULT_FORMAT = "json"
# Formats whose body is a JSON string rather than the raw envelope mapping.
SERIALIZED_FORMATS = frozenset({"json", "jsonp", "text"})
CALLBACK_FORMATS = frozenset({"jsonp", "pretty_jsonp"})
TEXT_CONTENT_TYPE = "text/plain"
# A dotted JavaScript identifier path such as "app.handlers.onData".
_CALLBACK_RE = re.compile(r"[A-Za-z_$][\w$.]*", re.ASCII)


def is_valid_callback(name: str | None) -> bool:
    """Return True if `name` is safe to emit as a JSONP callback."""
    return bool(name) and _CALLBACK_RE.fullmatch(name) is not None


class AjaxResponse:
    """An AJAX response, filled in by a request handler and sent once.

    Attributes:
        status: HTTP status, symbolic ("ok", "not_found") or numeric.
        data: Payload for the client. Defaults to an empty mapping.
        error: Optional error payload.
        transport: The object used to emit the reply. See
            `webglue.domain.contracts.Transport`.
    """

    def __init__(
        self,
        *,
        status: StatusLike = DEFAULT_STATUS,
        data: Any = None,
        error: Any = None,
        transport: Transport | None = None,
    ) -> None:
        self.status = status
        self.data = {} if data is None else data
        self.error = error
        self.transport = transport

    def numeric_status(self) -> int:
        """Return the status as a number.

        Raises:
            UnknownStatusError: if a symbolic status has no standard code.
        """
        return status_code(self.status)

    def as_envelope(self, *, original_status: bool = False) -> dict[str, Any]:
        """Return the {status, data, error} mapping.

        With `original_status=True` the status is reported as it was set
        instead of being resolved to a number.
        """
        status = self.status if original_status else self.numeric_status()
        if isinstance(status, int):
            status = int(status)
        return Envelope(status=status, data=self.data, error=self.error).model_dump()

    def reply(self, *, format: str | None = None, pretty_json: bool = False) -> None:
        """Send the response through the transport.

        Does nothing if the transport already emitted a response. Otherwise
        calls `transport.render` exactly once.
        """
        transport = self._require_transport()
        if transport.performed:
            logger.debug("ajax.skip", extra={"event": "ajax_skip", "reason": "performed"})
            return

        fmt, callback, content_type = self._format_reply(transport, format)
        status = self.numeric_status()
        content: Any = self.as_envelope()
        if fmt in SERIALIZED_FORMATS:
            content = self._dump(content, pretty=pretty_json)

        logger.debug(
            "ajax.reply",
            extra={"event": "ajax_reply", "format": fmt, "status": status, "callback": callback},
        )
        transport.render({fmt: content}, status=status, callback=callback, content_type=content_type)

    # ------------------------
    # Internals
    # ------------------------

    def _require_transport(self) -> Transport:
        if self.transport is None:
            raise RuntimeError("AjaxResponse.reply() needs a transport")
        return self.transport

    def _format_reply(
        self, transport: Transport, format: str | None
    ) -> tuple[str, str | None, str | None]:
        fmt = self._choose_format(transport, format)
        callback = None
        if fmt in CALLBACK_FORMATS:
            requested = transport.params.get("callback")
            if requested and not is_valid_callback(requested):
                logger.info(
                    "ajax.callback_rejected",
                    extra={"event": "ajax_callback_rejected", "callback": requested},
                )
                requested = None
            callback = requested or f"jsonp{int(time.time())}"
        content_type = TEXT_CONTENT_TYPE if fmt == "text" else None
        return fmt, callback, content_type

    @staticmethod
    def _choose_format(transport: Transport, format: str | None) -> str:
        chosen = format or transport.params.get("format") or transport.request.format
        return str(chosen or DEFAULT_FORMAT)

    @staticmethod
    def _dump(content: Any, *, pretty: bool) -> str:
        # Convert models, datetimes, sets, ... to JSON types; anything else raises.
        jsonable = to_jsonable_python(content)
        if pretty:
            return json.dumps(jsonable, indent=2, ensure_ascii=False)
        return json.dumps(jsonable, separators=(",", ":"), ensure_ascii=False)
