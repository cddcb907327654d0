"""FastAPI app factory wiring the helpers together, with JSON request logging."""
from __future__ import annotations

import os
import time
from collections.abc import Callable, Iterable, Mapping
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from webglue.api.middleware import DefaultHostMiddleware, get_hosts_path_from_env
from webglue.api.routes import build_domain_router, router
from webglue.domain.hosts import DomainMatcher
from webglue.logging_conf import get_logger, setup_logging

setup_logging()
logger = get_logger("app")


def get_site_domains_from_env() -> list[str]:
    """Return SITE_DOMAINS as a list (comma-separated), empty if unset."""
    raw = os.getenv("SITE_DOMAINS", "")
    return [d.strip() for d in raw.split(",") if d.strip()]


def create_app(
    *,
    site_domains: Iterable[str] | None = None,
    default_hosts: Mapping[str, str] | None = None,
    environment: str | None = None,
) -> FastAPI:
    app = FastAPI(
        title="webglue demo",
        version=os.getenv("APP_VERSION", "0.1.0"),
    )

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Response]):
        """Log request start/end with a correlation id.

        - Reuses the client's X-Request-ID or mints one
        - Echoes X-Request-ID on the response
        """
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                "path": request.url.path,
                "host": request.url.hostname,
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                },
            )
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    # Registered after the logger so it runs first and the log shows the final host.
    if default_hosts is not None:
        app.add_middleware(DefaultHostMiddleware, hosts=default_hosts, environment=environment)
    elif get_hosts_path_from_env():
        app.add_middleware(DefaultHostMiddleware, environment=environment)

    @app.get("/health", summary="Liveness/readiness check")
    async def health() -> JSONResponse:
        return JSONResponse(content={"ok": True})

    app.include_router(router)

    domains = list(site_domains) if site_domains is not None else get_site_domains_from_env()
    if domains:
        app.include_router(build_domain_router(DomainMatcher(domains)))

    return app


# ASGI entrypoint for uvicorn: `uvicorn webglue.main:app --port 8000`
app = create_app()
