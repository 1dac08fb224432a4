"""
Route lookup, middleware chaining and error handling.
"""
from __future__ import annotations

import asyncio
import logging

import pytest

from api.core.http import HttpError, HttpRequest, HttpResponse
from api.core.router import Dispatcher, Route, Router

pytestmark = pytest.mark.anyio


def _tracked_chain(events: list[str]):
    async def a(req, res):
        events.append("a:start")
        await asyncio.sleep(0.01)
        events.append("a:end")

    async def b(req, res):
        events.append("b:start")

    async def h(req, res):
        events.append("h:start")
        res.end("pong")

    return a, b, h


async def test_unknown_path_gets_404():
    req, res = HttpRequest("GET", "/unknown?x=1"), HttpResponse()
    controller = Router().route(req)

    await controller(req, res)

    assert res.status_code == 404
    assert res.body == b"Route /unknown not found."


async def test_method_mismatch_gets_404():
    async def handler(req, res):
        res.end("ok")

    router = Router([Route("POST", "/sign-up", handler)])
    res = await Dispatcher(router).dispatch(HttpRequest("GET", "/sign-up"), HttpResponse())

    assert res.status_code == 404
    assert res.body == b"Route /sign-up not found."


def test_query_string_is_ignored_for_matching():
    async def handler(req, res):
        res.end("ok")

    router = Router([Route("GET", "/ping", handler)])

    assert router.route(HttpRequest("get", "/ping?token=abc")) is handler
    assert router.lookup("GET", "/ping/") is None


def test_duplicate_route_is_rejected():
    router = Router([Route("GET", "/ping", lambda req, res: None)])
    with pytest.raises(ValueError):
        router.add(Route("get", "/ping", lambda req, res: None))


def test_unknown_chain_mode_is_rejected():
    with pytest.raises(ValueError):
        Router(chain_mode="parallel")


def test_decorators_register_routes():
    router = Router()

    @router.get("/ping")
    async def ping(req, res):
        res.end("pong")

    @router.post("/items", middlewares=[ping])
    async def create(req, res):
        res.end("created")

    assert [(r.method, r.path) for r in router.routes] == [("GET", "/ping"), ("POST", "/items")]
    assert router.lookup("POST", "/items").middlewares == (ping,)


@pytest.mark.parametrize("mode", ["sequential", "fanout"])
async def test_later_steps_wait_for_first_middleware(mode):
    events: list[str] = []
    a, b, h = _tracked_chain(events)
    router = Router([Route("GET", "/ping-with-auth", h, (a, b))], chain_mode=mode)

    res = await Dispatcher(router).dispatch(HttpRequest("GET", "/ping-with-auth"), HttpResponse())

    assert events[:2] == ["a:start", "a:end"]
    assert sorted(events[2:]) == ["b:start", "h:start"]
    assert res.body == b"pong"


async def test_sequential_mode_runs_middlewares_in_order():
    events: list[str] = []
    a, b, h = _tracked_chain(events)
    router = Router([Route("GET", "/ping-with-auth", h, (a, b))])

    await Dispatcher(router).dispatch(HttpRequest("GET", "/ping-with-auth"), HttpResponse())

    assert events == ["a:start", "a:end", "b:start", "h:start"]


async def test_fanout_mode_lets_later_middleware_overlap_handler():
    handler_started = asyncio.Event()

    async def a(req, res):
        pass

    async def b(req, res):
        # only finishes once the handler has started
        await handler_started.wait()

    async def h(req, res):
        handler_started.set()
        res.end("pong")

    router = Router([Route("GET", "/ping-with-auth", h, (a, b))], chain_mode="fanout")

    res = await asyncio.wait_for(
        Dispatcher(router).dispatch(HttpRequest("GET", "/ping-with-auth"), HttpResponse()), timeout=1
    )

    assert res.body == b"pong"


@pytest.mark.parametrize("mode", ["sequential", "fanout"])
async def test_http_error_in_middleware_stops_chain(mode):
    called = []

    async def deny(req, res):
        raise HttpError(401, "Unauthorized", headers={"WWW-Authenticate": "Basic"})

    async def h(req, res):
        called.append("h")

    router = Router([Route("GET", "/ping-with-auth", h, (deny,))], chain_mode=mode)
    res = await Dispatcher(router).dispatch(HttpRequest("GET", "/ping-with-auth"), HttpResponse())

    assert called == []
    assert res.status_code == 401
    assert res.body == b"Unauthorized"
    assert res.headers["WWW-Authenticate"] == "Basic"


@pytest.mark.parametrize("mode", ["sequential", "fanout"])
async def test_unexpected_error_becomes_empty_500(mode, caplog):
    def broken(req, res):
        raise RuntimeError("boom")

    async def h(req, res):
        res.end("never")

    router = Router([Route("GET", "/broken", h, (broken,))], chain_mode=mode)

    with caplog.at_level(logging.ERROR, logger="api.core.router"):
        res = await Dispatcher(router).dispatch(HttpRequest("GET", "/broken"), HttpResponse())

    assert res.status_code == 500
    assert res.body == b""
    assert "Unhandled error in GET /broken" in caplog.text


async def test_handler_without_middlewares_is_guarded_by_dispatcher():
    async def h(req, res):
        raise RuntimeError("boom")

    res = await Dispatcher(Router([Route("GET", "/x", h)])).dispatch(HttpRequest("GET", "/x"), HttpResponse())

    assert res.status_code == 500
    assert res.finished


async def test_dispatcher_finishes_open_responses():
    def h(req, res):
        res.write("partial")

    res = await Dispatcher(Router([Route("GET", "/x", h)])).dispatch(HttpRequest("GET", "/x"), HttpResponse())

    assert res.finished
    assert res.body == b"partial"


async def test_double_slash_path_is_kept_in_404_body():
    res = await Dispatcher(Router()).dispatch(HttpRequest("GET", "//unknown?x=1"), HttpResponse())

    assert res.status_code == 404
    assert res.body == b"Route //unknown not found."


def test_request_path_and_query():
    req = HttpRequest("get", "/items?page=2&tag=a&tag=b")

    assert req.method == "GET"
    assert req.path == "/items"
    assert req.query == {"page": ["2"], "tag": ["a", "b"]}
    assert HttpRequest("GET", "").path == "/"
