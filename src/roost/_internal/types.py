"""Shared type aliases used across roost modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: receives the Request envelope, returns a response value
Handler: TypeAlias = Callable[..., Any]

# Persistence collaborator: flushes cookies staged on a request
Persist: TypeAlias = Callable[..., Any]

# Serializer: value -> JSON text, raising SerializationFailure
Encoder: TypeAlias = Callable[[Any], str]
