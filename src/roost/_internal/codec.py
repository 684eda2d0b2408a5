"""JSON encoding for structured and error responses."""

import json
from collections.abc import Mapping
from typing import Any

from roost.errors import SerializationFailure

# Sent when an error message cannot itself be encoded
FALLBACK_ERROR_BODY = '"server error"'


def _plain_mapping(value: Any) -> dict[Any, Any]:
    # Read-only mappings (model fields, admin attrs, query params) encode as objects
    if isinstance(value, Mapping):
        return dict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode_json(value: Any) -> str:
    """Encode *value* as compact JSON.

    Any ``Mapping`` encodes as an object, nested ones included. Raises
    ``SerializationFailure`` for values JSON cannot represent
    (functions, arbitrary objects, NaN, tuple mapping keys).
    """
    try:
        return json.dumps(
            value,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
            default=_plain_mapping,
        )
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(str(exc)) from exc
