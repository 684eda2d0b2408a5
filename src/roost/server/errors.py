"""Error responses for the request pipeline.

Every failure a request can hit ends here: one JSON body, never cached,
with the status the failure carried (500 when it carried none).
"""

import logging
from typing import Any

from roost._internal.codec import FALLBACK_ERROR_BODY, encode_json
from roost._internal.types import Encoder
from roost.errors import SerializationFailure
from roost.http.request import Request
from roost.http.response import JSON_CONTENT_TYPE, Response

logger = logging.getLogger("roost.server")


def error_response(
    message: Any,
    status: int | None = None,
    *,
    request: Request | None = None,
    encode: Encoder = encode_json,
    headers: tuple[tuple[str, str], ...] = (),
) -> Response:
    """Build the JSON error response for *message*.

    If *message* itself cannot be encoded the body falls back to
    ``"server error"``.
    """
    status = status or 500
    where = f"{request.method} {request.path}" if request is not None else "-"
    if status >= 500:
        logger.error("%d %s: %s", status, where, message)
    else:
        logger.debug("%d %s: %s", status, where, message)

    try:
        body = encode(message)
    except SerializationFailure:
        logger.warning("error message for %s is not serializable", where)
        body = FALLBACK_ERROR_BODY

    return Response(
        body=body,
        status=status,
        content_type=JSON_CONTENT_TYPE,
        headers=headers,
    ).without_cache()
