from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request, status

from ..domain.hosts import DomainMatcher
from ..logging_conf import get_logger
from .transport import RequestView, StarletteTransport

logger = get_logger("api.dependencies")


def ajax_transport(request: Request) -> StarletteTransport:
    """Per-request transport for `AjaxResponse.reply()`."""
    return StarletteTransport(request)


def domain_constraint(matcher: DomainMatcher) -> Callable[[Request], None]:
    """Build a dependency that 404s requests whose host the matcher rejects.

    Usage: APIRouter(dependencies=[Depends(domain_constraint(matcher))])
    """

    def _check(request: Request) -> None:
        view = RequestView(request)
        if matcher.matches(view):
            return
        logger.info(
            "domain.reject",
            extra={"event": "domain_reject", "host": view.host, "path": request.url.path},
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": "domain_mismatch",
                "error_message": f"{view.host} is not served here",
            },
        )

    return _check
