from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from ..domain.hosts import DomainMatcher
from ..domain.status import UnknownStatusError, status_code
from ..service.ajax_response import AjaxResponse
from .dependencies import ajax_transport, domain_constraint
from .transport import StarletteTransport

router = APIRouter()


@router.get("/ping", summary="AJAX liveness check")
def ping(pretty: bool = False, transport: StarletteTransport = Depends(ajax_transport)) -> Response:
    """Reply {"status": 200, "data": {"pong": true}} in the negotiated format."""
    AjaxResponse(data={"pong": True}, transport=transport).reply(pretty_json=pretty)
    return transport.response


@router.get("/statuses/{name}", summary="Resolve a symbolic HTTP status")
def resolve_status(name: str, transport: StarletteTransport = Depends(ajax_transport)) -> Response:
    """Reply with the numeric code for `name`, or a 400 envelope if unknown."""
    response = AjaxResponse(transport=transport)
    try:
        response.data = {"name": name, "code": status_code(name)}
    except UnknownStatusError as e:
        response.status = "bad_request"
        response.error = {"error_code": e.code, "error_message": str(e)}
    response.reply()
    return transport.response


def build_domain_router(matcher: DomainMatcher) -> APIRouter:
    """Routes served only when the request host matches `matcher`."""
    scoped = APIRouter(prefix="/site", dependencies=[Depends(domain_constraint(matcher))])

    @scoped.get("/ping", summary="AJAX liveness check for matched domains")
    def site_ping(transport: StarletteTransport = Depends(ajax_transport)) -> Response:
        host = transport.request.host
        AjaxResponse(data={"host": host, "canonical": matcher.final_host(host)}, transport=transport).reply()
        return transport.response

    return scoped
