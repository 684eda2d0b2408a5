"""ASGI request handler: the per-request pipeline.

Each request runs once through::

    MATCH    router.match(method, path)
    INVOKE   handler(request) -> value | (value, status_or_error[, status])
    PERSIST  persist(request) flushes staged cookies
    ENCODE   mapping/list -> JSON, str -> HTML, callable -> deferred,
             Response/StreamingResponse -> as is

and any failure on the way becomes one JSON error response. Nothing is
retried. The router is only read, so concurrent requests share it
without locking.
"""

import logging
from collections.abc import Mapping
from typing import Any

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.codec import encode_json
from roost._internal.invoke import invoke
from roost._internal.types import Encoder, Persist
from roost.errors import (
    HandlerFailure,
    HTTPError,
    PersistenceFailure,
    SerializationFailure,
    UnrecognizedResponseKind,
)
from roost.http.cookies import SetCookie, save_cookies
from roost.http.request import Request
from roost.http.response import (
    HTML_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    AnyResponse,
    Response,
    StreamingResponse,
)
from roost.routing.router import Router
from roost.server.errors import error_response
from roost.server.sender import send_response, send_streaming_response

logger = logging.getLogger("roost.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    persist: Persist = save_cookies,
    encode: Encoder = encode_json,
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = await dispatch(request, router=router, persist=persist, encode=encode, debug=debug)

    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send)
    else:
        await send_response(response, send)


async def dispatch(
    request: Request,
    *,
    router: Router,
    persist: Persist = save_cookies,
    encode: Encoder = encode_json,
    debug: bool = False,
) -> AnyResponse:
    """Run MATCH, INVOKE, PERSIST and ENCODE for *request*.

    Always returns a response; failures are turned into error responses.
    """
    cookies: tuple[SetCookie, ...] = ()
    try:
        match = router.match(request.method, request.path)
        request = request.with_path_params(match.path_params)
        value, status = await invoke_handler(match.route.handler, request)
        cookies = tuple(persist(request))
        response = await encode_response(value, status, encode=encode)
    except HTTPError as exc:
        failed = error_response(
            exc.detail or str(exc.status),
            exc.status,
            request=request,
            encode=encode,
            headers=exc.headers,
        )
    except HandlerFailure as exc:
        failed = error_response(exc.message, exc.status, request=request, encode=encode)
    except (PersistenceFailure, SerializationFailure, UnrecognizedResponseKind) as exc:
        failed = error_response(str(exc), request=request, encode=encode)
    except Exception as exc:
        logger.exception("500 %s %s", request.method, request.path)
        message = f"{type(exc).__name__}: {exc}" if debug else "internal server error"
        failed = error_response(message, 500, request=request, encode=encode)
    else:
        return response.with_cookies(cookies) if cookies else response

    return failed.with_cookies(cookies) if cookies else failed


def _status(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


async def invoke_handler(handler: Any, request: Request) -> tuple[Any, int | None]:
    """Call *handler* and unpack its result into ``(response, status)``.

    A handler returns a bare value or a tuple ``(value, status_or_error)``
    or ``(value, status_or_error, status)``. An integer in the second slot
    is the status; the third slot, when given, takes precedence. A
    ``None`` value raises ``HandlerFailure`` carrying the second slot as
    the error message.
    """
    result = await invoke(handler, request)

    status_or_error: Any = None
    status: Any = None
    if isinstance(result, tuple) and 1 <= len(result) <= 3:
        value, status_or_error, status = (*result, None, None)[:3]
    else:
        value = result

    if value is None:
        raise HandlerFailure(status_or_error, _status(status))

    if _status(status) is not None:
        return value, _status(status)
    return value, _status(status_or_error)


async def encode_response(
    value: Any,
    status: int | None = None,
    *,
    encode: Encoder = encode_json,
) -> AnyResponse:
    """Turn a handler's value into a response, by kind."""
    if isinstance(value, (Response, StreamingResponse)):
        return value

    if isinstance(value, (Mapping, list)):
        return Response(
            body=encode(value),
            status=status or 200,
            content_type=JSON_CONTENT_TYPE,
        ).without_cache()

    if isinstance(value, str):
        return Response(body=value, status=status or 200, content_type=HTML_CONTENT_TYPE)

    if callable(value):
        return await _resolve_deferred(value)

    raise UnrecognizedResponseKind(value)


async def _resolve_deferred(deferred: Any) -> AnyResponse:
    """Call a deferred response with no arguments.

    It returns a ``Response``/``StreamingResponse`` or ``(response, error)``;
    the response is sent with no further encoding.
    """
    result = await invoke(deferred)
    error: Any = None
    if isinstance(result, tuple) and len(result) == 2:
        result, error = result

    if not result:
        raise HandlerFailure(error or "deferred response produced no response")
    if not isinstance(result, (Response, StreamingResponse)):
        raise UnrecognizedResponseKind(result)
    return result
