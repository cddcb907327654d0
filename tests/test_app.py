from __future__ import annotations

import json
import re

import pytest
from fastapi.testclient import TestClient

from webglue.main import create_app


@pytest.fixture
def client() -> TestClient:
    app = create_app(
        site_domains=["example.com"],
        default_hosts={"production": "example.com"},
        environment="production",
    )
    return TestClient(app)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_ping_json(client):
    r = client.get("/ping")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"status": 200, "data": {"pong": True}, "error": None}


def test_ping_pretty(client):
    r = client.get("/ping", params={"pretty": "true"})
    assert "\n" in r.text
    assert r.json()["data"] == {"pong": True}


def test_ping_text_from_query_param(client):
    r = client.get("/ping", params={"format": "text"})
    assert r.headers["content-type"].startswith("text/plain")
    assert json.loads(r.text)["status"] == 200


def test_ping_jsonp_with_callback(client):
    r = client.get("/ping", params={"format": "jsonp", "callback": "handle"})
    assert r.headers["content-type"].startswith("application/javascript")
    assert r.text.startswith("/**/handle(")
    assert r.text.endswith(")")


def test_ping_jsonp_synthesized_callback(client):
    r = client.get("/ping", headers={"Accept": "application/javascript"})
    assert re.fullmatch(r"/\*\*/jsonp\d+\(.*\)", r.text, flags=re.S)


def test_ping_pretty_jsonp_with_callback(client):
    r = client.get("/ping", params={"format": "pretty_jsonp", "callback": "cb"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/javascript")
    assert r.text.startswith("/**/cb(")
    assert r.text.endswith(")")
    inner = r.text[len("/**/cb(") : -1]
    assert "\n" in inner
    assert json.loads(inner) == {"status": 200, "data": {"pong": True}, "error": None}


def test_ping_jsonp_unsafe_callback_is_replaced(client):
    r = client.get("/ping", params={"format": "jsonp", "callback": "alert(document.cookie)//"})
    assert r.status_code == 200
    assert "alert" not in r.text
    assert re.fullmatch(r"/\*\*/jsonp\d+\(.*\)", r.text, flags=re.S)


def test_ping_negotiated_text(client):
    r = client.get("/ping", headers={"Accept": "text/plain"})
    assert r.headers["content-type"].startswith("text/plain")


def test_resolve_status(client):
    r = client.get("/statuses/not_found")
    assert r.status_code == 200
    assert r.json()["data"] == {"name": "not_found", "code": 404}


def test_resolve_unknown_status(client):
    r = client.get("/statuses/teapot_of_doom")
    assert r.status_code == 400
    body = r.json()
    assert body["status"] == 400
    assert body["error"]["error_code"] == "unknown_status"


def test_site_routes_match_dev_suffix(client):
    r = client.get("http://example.com.dev/site/ping")
    assert r.status_code == 200
    assert r.json()["data"] == {"host": "example.com.dev", "canonical": "example.com"}


def test_site_routes_reject_other_hosts(client):
    r = client.get("http://other.com/site/ping")
    assert r.status_code == 404
    assert r.json()["detail"]["error_code"] == "domain_mismatch"


def test_default_host_feeds_domain_matching(client):
    r = client.get("http://10.0.0.1/site/ping")
    assert r.status_code == 200
    assert r.json()["data"]["host"] == "example.com"


def test_site_routes_absent_without_domains(monkeypatch):
    monkeypatch.delenv("SITE_DOMAINS", raising=False)
    monkeypatch.delenv("DEFAULT_HOSTS_PATH", raising=False)
    client = TestClient(create_app())
    assert client.get("/site/ping").status_code == 404
    assert client.get("/ping").status_code == 200
