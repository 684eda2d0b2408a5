"""Cookie parsing, SetCookie serialization and cookie persistence.

The read side (``parse_cookies``) feeds ``Request.cookies``. Handlers
stage outgoing cookies on the request with ``request.set_cookie()``;
``save_cookies`` flushes them after the handler returns, before the
response is encoded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from roost.errors import PersistenceFailure

if TYPE_CHECKING:
    from roost.http.request import Request

# RFC 6265 cookie-name token and cookie-octets
_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_VALUE_RE = re.compile(r'^[\x21\x23-\x2b\x2d-\x3a\x3c-\x5b\x5d-\x7e]*$')
_SAMESITE = frozenset({"lax", "strict", "none"})


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Returns an empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies[key.strip()] = value.strip()
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str | None = "lax"

    def validate(self) -> None:
        """Raise ``PersistenceFailure`` if the cookie cannot be sent as is."""
        if not _NAME_RE.match(self.name):
            msg = f"invalid cookie name {self.name!r}"
            raise PersistenceFailure(msg)
        if not _VALUE_RE.match(self.value):
            msg = f"invalid value for cookie {self.name!r}"
            raise PersistenceFailure(msg)
        if self.samesite and self.samesite.lower() not in _SAMESITE:
            msg = f"invalid SameSite {self.samesite!r} for cookie {self.name!r}"
            raise PersistenceFailure(msg)
        if self.samesite and self.samesite.lower() == "none" and not self.secure:
            msg = f"cookie {self.name!r} uses SameSite=None without Secure"
            raise PersistenceFailure(msg)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite}")
        return "; ".join(parts)


def save_cookies(request: Request) -> tuple[SetCookie, ...]:
    """Flush the cookies staged on *request*.

    Every staged cookie is validated first; one bad cookie fails the
    whole flush with ``PersistenceFailure`` and nothing is sent.
    """
    staged = request.staged_cookies
    for cookie in staged:
        cookie.validate()
    return staged
