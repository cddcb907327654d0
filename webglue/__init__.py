"""Helpers for web applications: AJAX replies, domain matching, deferred work.

The most common entry points are re-exported here so callers can write
`from webglue import AjaxResponse, DomainMatcher, run_deferred`.
"""
from importlib.metadata import PackageNotFoundError, version

from .domain.hosts import CallbackRule, DomainMatcher, LiteralRule
from .domain.status import UnknownStatusError, status_code
from .service.ajax_response import AjaxResponse
from .service.deferred import AsyncioScheduler, Scheduler, run_deferred

try:  # Installed distributions report their own version; source trees fall back.
    __version__ = version("webglue")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "AjaxResponse",
    "AsyncioScheduler",
    "CallbackRule",
    "DomainMatcher",
    "LiteralRule",
    "Scheduler",
    "UnknownStatusError",
    "run_deferred",
    "status_code",
]
