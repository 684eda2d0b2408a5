"""Path parameter converters for route segments like ``{id:int}``.

A converter pairs the regex a segment must match with the function that
turns the captured text into the handler's value. A segment that matches
the regex but still cannot be converted does not match the route.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Converter:
    pattern: str
    parse: Callable[[str], Any]

    def convert(self, value: str) -> Any | None:
        """Converted *value*, or ``None`` when *parse* rejects it."""
        try:
            return self.parse(value)
        except (ValueError, OverflowError):
            return None


CONVERTERS: dict[str, Converter] = {
    "str": Converter(r"[^/]+", str),
    "int": Converter(r"\d+", int),
    "float": Converter(r"\d+(?:\.\d+)?", float),
    "path": Converter(r".+", str),
}


def convert_param(value: str, param_type: str) -> Any | None:
    """Convert a captured path segment with the *param_type* converter.

    Returns ``None`` when the segment cannot be converted (an ``int``
    too long for the interpreter's digit limit, for one). Raises
    ``KeyError`` for an unknown *param_type*.
    """
    return CONVERTERS[param_type].convert(value)
