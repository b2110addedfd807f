"""Focused unit tests for global exception handling behaviors.

These tests exercise the public contract via FastAPI test app using the installed
exception handler and ExceptionNormalizationMiddleware.
"""

from __future__ import annotations

from unittest.mock import patch

from fastapi import FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from core.error_handler import (
    ExceptionNormalizationMiddleware,
    global_exception_handler,
)
from core.exceptions import (
    DomainStreamError,
    SuffixListUnavailableError,
    UpstreamStreamError,
)
from core.middleware import CorrelationIdMiddleware


class Query(BaseModel):
    description: str = Field(min_length=3)
    limit: int = Field(ge=1)


def build_test_app(env: str) -> TestClient:
    app = FastAPI()
    app.add_middleware(ExceptionNormalizationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(DomainStreamError, global_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)

    @app.post("/queries")
    async def create_query(query: Query):  # pragma: no cover - executed via client
        return {"ok": True, "query": query.model_dump()}

    @app.get("/suffixes-missing")
    async def suffixes_missing():
        raise SuffixListUnavailableError("TLD list request failed: ConnectError")

    @app.get("/upstream-failed")
    async def upstream_failed():
        raise UpstreamStreamError("Completion stream failed: ReadError")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("Exploded with secret=should_not_leak")

    @app.get("/forbidden")
    async def forbidden():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )

    client = TestClient(app)

    # Patch environment setting per test invocation
    patcher = patch("core.error_handler.get_settings")
    mocked = patcher.start()
    mocked.return_value.ENVIRONMENT = env

    # Ensure patcher stops at client finalizer
    def fin():
        patcher.stop()

    client._finalizer = fin  # type: ignore[attr-defined]
    return client


def test_validation_error_production():
    client = build_test_app("production")
    resp = client.post("/queries", json={"description": "ab", "limit": 0})
    client._finalizer()
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"]["type"] == "validation_error"
    # production should not include validation_errors
    assert "validation_errors" not in data["error"]


def test_validation_error_development():
    client = build_test_app("development")
    resp = client.post("/queries", json={"description": "ab", "limit": 0})
    client._finalizer()
    assert resp.status_code == 422
    data = resp.json()
    assert "validation_errors" in data["error"]


def test_suffix_list_unavailable_production():
    client = build_test_app("production")
    resp = client.get("/suffixes-missing")
    client._finalizer()
    assert resp.status_code == 503
    data = resp.json()
    assert data["error"]["type"] == "suffix_list_unavailable"
    assert data["message"] == "Domain suffix list is currently unavailable"
    assert "details" not in data["error"]


def test_suffix_list_unavailable_development():
    client = build_test_app("development")
    resp = client.get("/suffixes-missing")
    client._finalizer()
    assert resp.status_code == 503
    data = resp.json()
    assert data["error"]["details"] == {
        "detail": "TLD list request failed: ConnectError"
    }
    assert data["error"]["exception_type"] == "SuffixListUnavailableError"


def test_unmapped_domain_error_is_generic():
    client = build_test_app("production")
    resp = client.get("/upstream-failed")
    client._finalizer()
    assert resp.status_code == 500
    assert resp.json()["error"]["type"] == "domain_error"
    assert resp.json()["message"] == "Domain error"


def test_generic_exception_production():
    client = build_test_app("production")
    resp = client.get("/boom")
    client._finalizer()
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert "traceback" not in body["error"]
    assert "secret=should_not_leak" not in str(body)


def test_generic_exception_development():
    client = build_test_app("development")
    resp = client.get("/boom")
    client._finalizer()
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert "traceback" in body["error"]


def test_http_exception_keeps_status():
    client = build_test_app("production")
    resp = client.get("/forbidden")
    client._finalizer()
    assert resp.status_code == 403
    body = resp.json()
    assert body["error"]["type"] == "http_error"
    assert body["error"]["correlation_id"]
    assert body["success"] is False
    # Should not leak details in production
    assert "details" not in body["error"]


def test_error_body_uses_request_correlation_id():
    client = build_test_app("production")
    resp = client.get("/suffixes-missing", headers={"X-Correlation-ID": "req-42"})
    client._finalizer()
    assert resp.json()["error"]["correlation_id"] == "req-42"
    assert resp.headers["X-Correlation-ID"] == "req-42"
