# ruff: noqa

from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from starlette.requests import Request

from kanban.core import error_handling
from kanban.core.error_handling import (
    REQUEST_ID_HEADER,
    _error_payload,
    _get_request_id,
    _http_exception_exception_handler,
    install_error_handling,
)
from kanban.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError


def _app() -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    return app


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (NotFoundError("Board not found"), 404, "not_found"),
        (ForbiddenError("Requires edit access"), 403, "forbidden"),
        (ValidationError("Column ids must not repeat"), 400, "validation_failed"),
        (ConflictError("Column has dependent tasks"), 409, "conflict"),
    ],
)
def test_service_errors_render_code_and_retryable(error, status_code, code):
    app = _app()

    @app.get("/fail")
    def fail() -> None:
        raise error

    resp = TestClient(app).get("/fail")

    assert resp.status_code == status_code
    body = resp.json()
    assert body["detail"] == error.detail
    assert body["code"] == code
    assert body["retryable"] is False
    assert body["request_id"] == resp.headers[REQUEST_ID_HEADER]


def test_retryable_conflict_is_flagged():
    app = _app()

    @app.post("/reorder")
    def reorder() -> None:
        raise ConflictError("Column order changed concurrently", retryable=True)

    resp = TestClient(app).post("/reorder")

    assert resp.status_code == 409
    assert resp.json()["retryable"] is True


def test_plain_http_exception_has_no_code():
    app = _app()

    @app.get("/nope")
    def nope() -> None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    resp = TestClient(app).get("/nope")

    assert resp.status_code == 401
    body = resp.json()
    assert body["detail"] == "Unauthorized"
    assert "code" not in body
    assert "retryable" not in body


def test_request_validation_error_keeps_client_request_id():
    app = _app()

    @app.get("/columns")
    def columns(limit: int) -> dict[str, int]:
        return {"limit": limit}

    resp = TestClient(app).get("/columns?limit=many", headers={REQUEST_ID_HEADER: " req-42 "})

    assert resp.status_code == 422
    body = resp.json()
    assert isinstance(body["detail"], list)
    assert body["request_id"] == "req-42"
    assert resp.headers[REQUEST_ID_HEADER] == "req-42"


def test_unhandled_exception_is_masked_as_500():
    app = _app()

    @app.get("/boom")
    def boom() -> None:
        raise RuntimeError("database exploded")

    resp = TestClient(app, raise_server_exceptions=False).get("/boom")

    assert resp.status_code == 500
    body = resp.json()
    assert body["detail"] == "Internal Server Error"
    assert body["request_id"]


def test_response_validation_error_is_masked_as_500():
    class Out(BaseModel):
        name: str = Field(min_length=1)

    app = _app()

    @app.get("/bad", response_model=Out)
    def bad() -> dict[str, str]:
        return {"name": ""}

    resp = TestClient(app, raise_server_exceptions=False).get("/bad")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal Server Error"


def test_slow_requests_log_a_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    warnings: list[tuple[str, dict[str, object]]] = []

    def _record(message: str, *args: object, **kwargs: object) -> None:
        extra = kwargs.get("extra")
        warnings.append((message, extra if isinstance(extra, dict) else {}))

    ticks = iter((10.0, 10.5))
    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 100)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(ticks))
    monkeypatch.setattr(error_handling.logger, "warning", _record)

    app = _app()

    @app.get("/slow")
    def slow() -> dict[str, str]:
        return {"ok": "1"}

    resp = TestClient(app).get("/slow")

    assert resp.status_code == 200
    assert warnings[0][0] == "http.request.slow"
    assert warnings[0][1]["duration_ms"] == 500
    assert warnings[0][1]["slow_threshold_ms"] == 100


def test_get_request_id_ignores_invalid_state() -> None:
    for state in ({}, {"request_id": 7}, {"request_id": ""}):
        req = Request({"type": "http", "headers": [], "state": state})
        assert _get_request_id(req) is None


def test_error_payload_only_includes_known_fields() -> None:
    assert _error_payload(detail="x", request_id=None) == {"detail": "x"}
    assert _error_payload(detail="x", request_id="r", code="conflict", retryable=True) == {
        "detail": "x",
        "request_id": "r",
        "code": "conflict",
        "retryable": True,
    }


@pytest.mark.asyncio
async def test_http_exception_handler_rejects_other_exceptions() -> None:
    req = Request({"type": "http", "headers": [], "state": {}})
    with pytest.raises(TypeError, match="Expected StarletteHTTPException"):
        await _http_exception_exception_handler(req, Exception("x"))


def test_json_safe_decodes_bytes_and_stringifies_unknowns() -> None:
    class Opaque:
        def __str__(self) -> str:
            return "opaque"

    assert error_handling._json_safe(b"\xff") == "\ufffd"
    assert error_handling._json_safe({"k": (1, Opaque())}) == {"k": [1, "opaque"]}
