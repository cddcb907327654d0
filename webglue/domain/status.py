from __future__ import annotations

from http import HTTPStatus

__all__ = [
    "DEFAULT_STATUS",
    "StatusLike",
    "UnknownStatusError",
    "status_code",
]

DEFAULT_STATUS = "ok"

StatusLike = int | str | HTTPStatus


class UnknownStatusError(ValueError):
    """Raised when a symbolic status has no standard HTTP code.

    The `code` attribute lets callers map the failure to a stable machine code.
    """

    code: str = "unknown_status"

    def __init__(self, status: object) -> None:
        super().__init__(f"Unrecognized status code: {status!r}")
        self.status = status


def status_code(status: StatusLike) -> int:
    """Resolve a symbolic or numeric status to its numeric HTTP code.

    - ints (and `HTTPStatus` members) are returned unchanged;
    - digit strings such as "404" are converted;
    - names such as "not_found", "NotFound" or "not-found" are looked up in
      `http.HTTPStatus`.

    Raises:
        UnknownStatusError: if the name has no standard mapping.
    """
    if isinstance(status, bool):
        raise UnknownStatusError(status)
    if isinstance(status, int):
        return int(status)
    if not isinstance(status, str):
        raise UnknownStatusError(status)

    raw = status.strip()
    if raw.isdigit():
        return int(raw)

    name = _normalize_name(raw)
    try:
        return HTTPStatus[name].value
    except KeyError as e:
        raise UnknownStatusError(status) from e


def _normalize_name(name: str) -> str:
    """Turn "not_found", "not-found", "Not Found" or "NotFound" into "NOT_FOUND"."""
    out: list[str] = []
    for i, ch in enumerate(name):
        if ch in "- ":
            ch = "_"
        elif ch.isupper() and i and name[i - 1].islower():
            out.append("_")
        out.append(ch.upper())
    return "".join(out)
