from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient

from userapi.common.context import Context
from userapi.common.errors import CanceledError, MalformedRequestError, NotFoundError, ValidationFailedError
from userapi.common.middlewares import recover, request_logger
from userapi.domain.schemas import UserPayload
from userapi.framework import App, Handler, Middleware, Request, Response, compose
from userapi.main import create_app
from userapi.storage import StorageConfig, build_storage


def _tracing(name: str, events: List[str]) -> Middleware:
    def middleware(next_handler: Handler) -> Handler:
        def handler(req: Request, res: Response) -> None:
            events.append(f"{name}-enter")
            next_handler(req, res)
            events.append(f"{name}-exit")

        return handler

    return middleware


def _app(tmp_path: Path) -> App:
    return App(build_storage(StorageConfig(type="relational-file", file_path=str(tmp_path / "fw.db"))))


def test_compose_makes_first_middleware_outermost() -> None:
    events: List[str] = []

    def terminal(req: Request, res: Response) -> None:
        events.append("H")
        res.write_success("ok")

    handler = compose([_tracing("A", events), _tracing("B", events)], terminal)
    handler(Request(), Response())

    assert events == ["A-enter", "B-enter", "H", "B-exit", "A-exit"]


def test_middleware_order_over_http(tmp_path: Path) -> None:
    events: List[str] = []
    app = _app(tmp_path)
    app.use(_tracing("A", events)).use(_tracing("B", events))

    def terminal(req: Request, res: Response) -> None:
        events.append("H")
        res.write_success("ok", {"id": req.param("id")})

    app.route("/things").get("/{id}", terminal)

    with TestClient(app.asgi) as client:
        response = client.get("/things/42")

    assert response.status_code == 200
    assert response.json() == {"message": "ok", "data": {"id": "42"}}
    assert events == ["A-enter", "B-enter", "H", "B-exit", "A-exit"]


def test_routes_capture_middlewares_at_registration(tmp_path: Path) -> None:
    events: List[str] = []
    app = _app(tmp_path)
    app.use(_tracing("A", events))

    def terminal(req: Request, res: Response) -> None:
        res.write_success("ok")

    app.route("/early").get("/", terminal)
    app.use(_tracing("B", events))
    app.route("/late").get("/", terminal)

    with TestClient(app.asgi) as client:
        client.get("/early/")
        early = list(events)
        events.clear()
        client.get("/late/")

    assert early == ["A-enter", "A-exit"]
    assert events == ["A-enter", "B-enter", "B-exit", "A-exit"]


def test_registration_is_frozen_once_started(tmp_path: Path) -> None:
    app = _app(tmp_path)
    app.route("/x").get("/", lambda req, res: res.write_success("ok"))

    with TestClient(app.asgi):
        assert app.frozen
        with pytest.raises(RuntimeError):
            app.use(recover)
        with pytest.raises(RuntimeError):
            app.route("/y").get("/", lambda req, res: res.write_success("ok"))


def test_recover_contains_panics_and_server_keeps_serving(tmp_path: Path) -> None:
    app = _app(tmp_path)
    app.use(recover)

    def explode(req: Request, res: Response) -> None:
        raise RuntimeError("boom: secret internals")

    app.route("/boom").get("/", explode)
    app.route("/fine").get("/", lambda req, res: res.write_success("fine"))

    with TestClient(app.asgi) as client:
        broken = client.get("/boom/")
        healthy = client.get("/fine/")

    assert broken.status_code == 500
    assert broken.headers["content-type"].startswith("application/json")
    assert broken.json() == {"error": "Internal server error"}
    assert healthy.status_code == 200
    assert healthy.json() == {"message": "fine", "data": None}


def test_recover_translates_app_errors(tmp_path: Path) -> None:
    app = _app(tmp_path)
    app.use(recover)

    def missing(req: Request, res: Response) -> None:
        raise NotFoundError(message="User not found")

    def canceled(req: Request, res: Response) -> None:
        raise CanceledError(detail="driver said: timeout on host 10.0.0.3")

    app.route("/missing").get("/", missing)
    app.route("/canceled").get("/", canceled)

    with TestClient(app.asgi) as client:
        assert client.get("/missing/").json() == {"error": "User not found"}
        response = client.get("/canceled/")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_handler_without_write_yields_error_envelope(tmp_path: Path) -> None:
    app = _app(tmp_path)
    app.route("/silent").get("/", lambda req, res: None)

    with TestClient(app.asgi) as client:
        response = client.get("/silent/")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_unknown_route_and_method_use_error_envelope(tmp_path: Path) -> None:
    app = create_app(build_storage(StorageConfig(type="relational-file", file_path=str(tmp_path / "fw.db"))))

    with TestClient(app.asgi) as client:
        not_found = client.get("/nope")
        not_allowed = client.patch("/users/1")

    assert not_found.status_code == 404
    assert not_found.json() == {"error": "Not Found"}
    assert not_allowed.status_code == 405
    assert not_allowed.json() == {"error": "Method Not Allowed"}


def test_trace_id_is_echoed(tmp_path: Path) -> None:
    app = create_app(build_storage(StorageConfig(type="relational-file", file_path=str(tmp_path / "fw.db"))))

    with TestClient(app.asgi) as client:
        given = client.get("/users/", headers={"X-Request-Id": "req-123"})
        generated = client.get("/users/")

    assert given.headers["X-Trace-Id"] == "req-123"
    assert len(generated.headers["X-Trace-Id"]) == 32


def test_response_builder_chaining() -> None:
    res = Response()

    assert res.status_code == 200
    assert res.set_status(201) is res
    res.write_success("created", {"id": 1})

    assert res.status_code == 201
    assert res.payload == {"message": "created", "data": {"id": 1}}


def test_response_builder_error_sets_status() -> None:
    res = Response()

    res.write_error(404, "User not found")
    rendered = res.render()

    assert rendered.status_code == 404
    assert rendered.body == b'{"error":"User not found"}'


def test_request_parse_body_errors() -> None:
    with pytest.raises(MalformedRequestError):
        Request(body=b"{not json").parse_body(UserPayload)
    with pytest.raises(MalformedRequestError):
        Request(body=b"[1, 2]").parse_body(UserPayload)
    with pytest.raises(ValidationFailedError) as excinfo:
        Request(body=b'{"name": "A", "email": "a@example.com"}').parse_body(UserPayload)

    assert excinfo.value.message.startswith("Validation failed: name:")


def test_request_parse_body_ignores_server_fields() -> None:
    payload = Request(body=b'{"id": 7, "name": " Alice ", "email": "alice@example.com"}').parse_body(UserPayload)

    assert payload.name == " Alice "
    assert not hasattr(payload, "id")


def test_request_parse_body_keeps_email_as_submitted() -> None:
    payload = Request(body=b'{"name": "Bob", "email": "Bob@Example.COM"}').parse_body(UserPayload)

    assert payload.email == "Bob@Example.COM"


def test_request_logger_reports_failed_requests(caplog) -> None:
    def boom(req: Request, res: Response) -> None:
        raise RuntimeError("boom")

    handler = compose([recover, request_logger], boom)
    res = Response()
    with caplog.at_level(logging.INFO, logger="userapi.common.middlewares"):
        handler(Request(method="GET", path="/boom/"), res)

    assert res.status_code == 500
    assert "Failed GET /boom/" in caplog.text
    assert "Completed GET /boom/" not in caplog.text


def test_request_logger_reports_completed_requests(caplog) -> None:
    def ok(req: Request, res: Response) -> None:
        res.write_success("ok")

    handler = compose([recover, request_logger], ok)
    with caplog.at_level(logging.INFO, logger="userapi.common.middlewares"):
        handler(Request(method="GET", path="/ok/"), Response())

    assert "Completed GET /ok/ 200" in caplog.text
    assert "Failed" not in caplog.text


def test_context_cancellation_and_deadline() -> None:
    ctx = Context(timeout=60)
    assert not ctx.cancelled
    assert 0 < ctx.remaining() <= 60

    ctx.cancel()
    assert ctx.cancelled
    with pytest.raises(CanceledError):
        ctx.raise_if_cancelled()

    background = Context.background()
    assert background.remaining() is None
    background.raise_if_cancelled()

    short = Context(timeout=0.01)
    time.sleep(0.02)
    assert short.expired
