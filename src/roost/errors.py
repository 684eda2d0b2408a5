"""Roost exception hierarchy.

Shared across discovery, assembly, router, and the request handler so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when app configuration is invalid.

    Aborts assembly. Everything else found while collecting modules is
    logged and skipped instead.
    """


class DuplicateModelError(ConfigurationError):
    """Two model modules resolved to the same table name."""

    def __init__(self, table_name: str, first: str, second: str) -> None:
        self.table_name = table_name
        super().__init__(
            f"table name {table_name!r} is declared by both {first!r} and {second!r}"
        )


class DiscoveryWarning(RoostError):  # noqa: N818
    """A discovered file does not participate in assembly."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path} is ignored: {reason}")


class ModuleLoadError(RoostError):
    """Importing a discovered module, or reading its export, failed."""

    def __init__(self, module_name: str, reason: str) -> None:
        self.module_name = module_name
        self.reason = reason
        super().__init__(f"loading module {module_name} failed: {reason}")


class ShapeValidationError(RoostError):
    """A route declaration is malformed."""


class PersistenceFailure(RoostError):  # noqa: N818
    """Flushing response-side state (cookies) failed."""


class SerializationFailure(RoostError):  # noqa: N818
    """A value could not be encoded to JSON."""


class UnrecognizedResponseKind(RoostError):  # noqa: N818
    """A handler returned a value the encoder does not know how to send."""

    def __init__(self, value: object) -> None:
        self.kind = type(value).__name__
        super().__init__(f"unrecognized response type: {self.kind}")


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Raised by the router or by handlers. The request handler catches
    these and answers with a JSON error body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods and embeds
    the allowed methods in the detail string.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class HandlerFailure(RoostError):  # noqa: N818
    """A handler (or a deferred response) produced no response.

    ``message`` is whatever the handler returned in place of a response
    and may be any JSON-encodable value, not only a string.
    """

    def __init__(self, message: object = None, status: int | None = None) -> None:
        self.message = "handler returned no response" if message is None else message
        self.status = status
        super().__init__(str(self.message))
