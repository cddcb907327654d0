"""Shared pytest fixtures and fakes for webglue tests."""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest


class FakeTransport:
    """Records render() calls instead of emitting anything."""

    def __init__(self, params: dict[str, Any] | None = None, fmt: str | None = None, performed: bool = False):
        self.params = params or {}
        self.request = SimpleNamespace(format=fmt)
        self.performed = performed
        self.renders: list[dict[str, Any]] = []

    def render(self, payload, *, status, callback=None, content_type=None) -> None:
        self.renders.append(
            {"payload": dict(payload), "status": status, "callback": callback, "content_type": content_type}
        )
        self.performed = True


class FakeScheduler:
    """A scheduler whose deferred jobs run immediately on the calling thread."""

    def __init__(self, active: bool = False):
        self.active = active
        self.deferred: list[Callable[[], Any]] = []
        self.starts = 0
        self.stops = 0

    def is_active(self) -> bool:
        return self.active

    def run_deferred(self, block: Callable[[], Any]) -> str:
        self.deferred.append(block)
        block()
        return "scheduled"

    def start(self, on_start: Callable[[], Any]) -> None:
        self.starts += 1
        self.active = True
        on_start()

    def stop(self) -> None:
        self.stops += 1
        self.active = False


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    return FakeTransport


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def hosts_file(tmp_path: Path) -> Path:
    path = tmp_path / "hosts.yml"
    path.write_text("production: HOST\nstaging: staging.example.com\n", encoding="utf-8")
    return path
