"""Tests for roost.server.handler: MATCH, INVOKE, PERSIST, ENCODE, ERROR."""

import json
import logging
from typing import Any

import pytest

from roost.assembly.models import Model
from roost.errors import HTTPError, PersistenceFailure, SerializationFailure
from roost.http.cookies import save_cookies
from roost.http.request import Request
from roost.http.response import JSON_CONTENT_TYPE, Response, StreamingResponse
from roost.routing.route import Route
from roost.routing.router import Router
from roost.server.handler import dispatch, encode_response, handle_request, invoke_handler


def _router(*routes: Route) -> Router:
    router = Router()
    for route in routes:
        router.add(route)
    router.compile()
    return router


def _scope(method: str = "GET", path: str = "/", headers=()) -> dict[str, Any]:
    return {
        "type": "http",
        "method": method,
        "path": path,
        "headers": list(headers),
        "query_string": b"",
        "http_version": "1.1",
    }


async def _receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


def _request(method: str = "GET", path: str = "/") -> Request:
    return Request.from_asgi(_scope(method, path), _receive)


async def _dispatch(router: Router, method: str = "GET", path: str = "/", **kwargs):
    return await dispatch(_request(method, path), router=router, **kwargs)


class TestMatch:
    @pytest.mark.asyncio
    async def test_no_route_is_404_json(self) -> None:
        response = await _dispatch(_router(), path="/missing")
        assert response.status == 404
        assert response.content_type == JSON_CONTENT_TYPE
        assert response.header("Cache-Control") == "no-store"
        assert json.loads(response.text) == "No route matches GET '/missing'"

    @pytest.mark.asyncio
    async def test_wrong_method_is_405_with_allow(self) -> None:
        router = _router(Route("/x", lambda r: "x", frozenset({"GET", "POST"})))
        response = await _dispatch(router, "DELETE", "/x")
        assert response.status == 405
        assert response.header("Allow") == "GET, POST"
        assert "Allowed methods: GET, POST" in json.loads(response.text)

    @pytest.mark.asyncio
    async def test_path_params_reach_handler(self) -> None:
        seen: dict[str, Any] = {}

        def handler(request: Request):
            seen.update(request.path_params)
            return "ok"

        router = _router(Route("/users/{id:int}", handler))
        response = await _dispatch(router, path="/users/42")
        assert response.status == 200
        assert seen == {"id": 42}


class TestInvoke:
    @pytest.mark.asyncio
    async def test_bare_value(self) -> None:
        async def handler(request):
            return {"a": 1}

        assert await invoke_handler(handler, _request()) == ({"a": 1}, None)

    @pytest.mark.asyncio
    async def test_status_in_second_slot(self) -> None:
        assert await invoke_handler(lambda r: ("x", 202), _request()) == ("x", 202)

    @pytest.mark.asyncio
    async def test_third_slot_overrides(self) -> None:
        assert await invoke_handler(lambda r: ("x", 202, 201), _request()) == ("x", 201)

    @pytest.mark.asyncio
    async def test_structured_result_with_status(self) -> None:
        router = _router(Route("/", lambda r: ({"ok": True}, None, 201)))
        response = await _dispatch(router)
        assert response.text == '{"ok":true}'
        assert response.status == 201
        assert response.content_type == "application/json; charset=utf-8"
        assert response.header("Cache-Control") == "no-store"

    @pytest.mark.asyncio
    async def test_none_with_error_message(self) -> None:
        router = _router(Route("/", lambda r: (None, "no such post", 404)))
        response = await _dispatch(router)
        assert response.status == 404
        assert json.loads(response.text) == "no such post"

    @pytest.mark.asyncio
    async def test_none_with_structured_error(self) -> None:
        router = _router(Route("/", lambda r: (None, {"field": "required"}, 422)))
        response = await _dispatch(router)
        assert response.status == 422
        assert json.loads(response.text) == {"field": "required"}

    @pytest.mark.asyncio
    async def test_none_without_error(self) -> None:
        response = await _dispatch(_router(Route("/", lambda r: None)))
        assert response.status == 500
        assert json.loads(response.text) == "handler returned no response"

    @pytest.mark.asyncio
    async def test_raised_http_error(self) -> None:
        def handler(request):
            raise HTTPError(status=403, detail="forbidden")

        response = await _dispatch(_router(Route("/", handler)))
        assert response.status == 403
        assert json.loads(response.text) == "forbidden"

    @pytest.mark.asyncio
    async def test_raised_exception_is_500(self, caplog) -> None:
        def handler(request):
            raise ValueError("secret detail")

        with caplog.at_level(logging.ERROR, logger="roost.server"):
            response = await _dispatch(_router(Route("/", handler)))
        assert response.status == 500
        assert json.loads(response.text) == "internal server error"
        assert any(r.exc_info for r in caplog.records)

    @pytest.mark.asyncio
    async def test_debug_exposes_exception(self) -> None:
        def handler(request):
            raise ValueError("secret detail")

        response = await _dispatch(_router(Route("/", handler)), debug=True)
        assert json.loads(response.text) == "ValueError: secret detail"


class TestEncode:
    @pytest.mark.asyncio
    async def test_response_passes_through(self) -> None:
        original = Response("hi", status=202)
        assert await encode_response(original, 500) is original

    @pytest.mark.asyncio
    async def test_list_is_json(self) -> None:
        response = await encode_response([1, "two"])
        assert response.text == '[1,"two"]'
        assert response.status == 200

    @pytest.mark.asyncio
    async def test_string_is_html(self) -> None:
        response = await encode_response("<p>hi</p>", 201)
        assert response.text == "<p>hi</p>"
        assert response.status == 201
        assert response.content_type == "text/html; charset=utf-8"
        assert response.header("Cache-Control") is None

    @pytest.mark.asyncio
    async def test_unrecognized_kind(self) -> None:
        response = await _dispatch(_router(Route("/", lambda r: 42)))
        assert response.status == 500
        assert json.loads(response.text) == "unrecognized response type: int"

    @pytest.mark.asyncio
    async def test_tuple_value_is_not_json(self) -> None:
        response = await _dispatch(_router(Route("/", lambda r: ((1, 2), 200))))
        assert json.loads(response.text) == "unrecognized response type: tuple"

    @pytest.mark.asyncio
    async def test_serialization_failure(self) -> None:
        response = await _dispatch(_router(Route("/", lambda r: {"f": object()})))
        assert response.status == 500
        assert "not JSON serializable" in json.loads(response.text)

    @pytest.mark.asyncio
    async def test_read_only_mappings_are_json(self) -> None:
        model = Model.from_export({"fields": {"title": {"type": "text"}}})
        response = await _dispatch(_router(Route("/", lambda r: {"fields": model.fields})))
        assert response.status == 200
        assert json.loads(response.text) == {"fields": {"title": {"type": "text"}}}

    @pytest.mark.asyncio
    async def test_query_params_are_json(self) -> None:
        request = Request.from_asgi({**_scope(), "query_string": b"q=owl&page=2"}, _receive)
        response = await dispatch(request, router=_router(Route("/", lambda r: r.query)))
        assert response.status == 200
        assert json.loads(response.text) == {"q": "owl", "page": "2"}

    @pytest.mark.asyncio
    async def test_unencodable_error_falls_back(self) -> None:
        router = _router(Route("/", lambda r: (None, {"bad": float("nan")}, 400)))
        response = await _dispatch(router)
        assert response.status == 400
        assert response.text == '"server error"'

    @pytest.mark.asyncio
    async def test_custom_encoder(self) -> None:
        def encode(value):
            return "<<" + repr(value) + ">>"

        response = await _dispatch(_router(Route("/", lambda r: {"a": 1})), encode=encode)
        assert response.text == "<<{'a': 1}>>"


class TestDeferred:
    @pytest.mark.asyncio
    async def test_deferred_response(self) -> None:
        def handler(request):
            return lambda: Response("later", status=202)

        response = await _dispatch(_router(Route("/", handler)))
        assert response.text == "later"
        assert response.status == 202

    @pytest.mark.asyncio
    async def test_async_deferred_streaming(self) -> None:
        async def deferred():
            return StreamingResponse(iter(["a", "b"]))

        response = await _dispatch(_router(Route("/", lambda r: deferred)))
        assert isinstance(response, StreamingResponse)

    @pytest.mark.asyncio
    async def test_deferred_error_tuple(self) -> None:
        response = await _dispatch(_router(Route("/", lambda r: lambda: (None, "not ready"))))
        assert response.status == 500
        assert json.loads(response.text) == "not ready"

    @pytest.mark.asyncio
    async def test_deferred_raises(self) -> None:
        def deferred():
            raise RuntimeError("late failure")

        response = await _dispatch(_router(Route("/", lambda r: deferred)))
        assert response.status == 500
        assert json.loads(response.text) == "internal server error"

    @pytest.mark.asyncio
    async def test_deferred_must_return_response(self) -> None:
        response = await _dispatch(_router(Route("/", lambda r: lambda: {"a": 1})))
        assert json.loads(response.text) == "unrecognized response type: dict"


class TestPersist:
    @pytest.mark.asyncio
    async def test_staged_cookies_attached(self) -> None:
        def handler(request: Request):
            request.set_cookie("session", "abc")
            return {"ok": True}

        response = await _dispatch(_router(Route("/", handler)))
        assert [c.name for c in response.cookies] == ["session"]

    @pytest.mark.asyncio
    async def test_invalid_cookie_is_persistence_error(self) -> None:
        def handler(request: Request):
            request.set_cookie("bad name", "abc")
            return "ok"

        response = await _dispatch(_router(Route("/", handler)))
        assert response.status == 500
        assert "invalid cookie name" in json.loads(response.text)
        assert response.cookies == ()

    @pytest.mark.asyncio
    async def test_custom_persist(self) -> None:
        def persist(request):
            raise PersistenceFailure("store offline")

        response = await _dispatch(_router(Route("/", lambda r: "ok")), persist=persist)
        assert json.loads(response.text) == "store offline"

    @pytest.mark.asyncio
    async def test_cookies_kept_on_encode_failure(self) -> None:
        def handler(request: Request):
            request.set_cookie("session", "abc")
            return {"f": object()}

        response = await _dispatch(_router(Route("/", handler)))
        assert response.status == 500
        assert [c.name for c in response.cookies] == ["session"]

    @pytest.mark.asyncio
    async def test_persist_runs_before_encode(self) -> None:
        order: list[str] = []

        def persist(request):
            order.append("persist")
            return save_cookies(request)

        def encode(value):
            order.append("encode")
            raise SerializationFailure("nope")

        await _dispatch(_router(Route("/", lambda r: {"a": 1})), persist=persist, encode=encode)
        assert order[:2] == ["persist", "encode"]


class TestHandleRequest:
    @pytest.mark.asyncio
    async def test_sends_asgi_messages(self) -> None:
        def handler(request: Request):
            request.set_cookie("s", "1")
            return {"ok": True}

        messages: list[dict[str, Any]] = []

        async def send(message):
            messages.append(message)

        await handle_request(_scope(path="/"), _receive, send, router=_router(Route("/", handler)))

        start, body = messages
        assert start["status"] == 200
        headers = dict(start["headers"])
        assert headers[b"content-type"] == b"application/json; charset=utf-8"
        assert headers[b"cache-control"] == b"no-store"
        assert headers[b"set-cookie"].startswith(b"s=1")
        assert body["body"] == b'{"ok":true}'

    @pytest.mark.asyncio
    async def test_streams(self) -> None:
        messages: list[dict[str, Any]] = []

        async def send(message):
            messages.append(message)

        router = _router(Route("/", lambda r: StreamingResponse(iter(["a", "b"]))))
        await handle_request(_scope(), _receive, send, router=router)
        assert [m.get("body") for m in messages[1:]] == [b"a", b"b", b""]

    @pytest.mark.asyncio
    async def test_ignores_non_http(self) -> None:
        messages: list[dict[str, Any]] = []

        async def send(message):
            messages.append(message)

        await handle_request({"type": "websocket"}, _receive, send, router=_router())
        assert messages == []
