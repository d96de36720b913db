"""Typed path parameters.

A route segment like ``{id:int}`` only matches text its converter
accepts, and the handler receives the converted value.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from perch.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class Converter:
    """Shape check plus conversion for one parameter type."""

    name: str
    pattern: str
    to_python: Callable[[str], Any]
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", re.compile(f"^(?:{self.pattern})$"))

    def accepts(self, value: str) -> bool:
        return self.regex.match(value) is not None


CONVERTERS: dict[str, Converter] = {
    converter.name: converter
    for converter in (
        Converter("str", r"[^/]+", str),
        Converter("int", r"\d+", int),
        Converter("float", r"\d+(?:\.\d+)?", float),
    )
}


def get_converter(name: str, path: str) -> Converter:
    """Look up the converter for a ``{param:name}`` segment of *path*.

    Raises ``ConfigurationError`` for an unknown converter name.
    """
    try:
        return CONVERTERS[name]
    except KeyError:
        msg = (
            f"Route {path!r} uses unknown converter {name!r}. "
            f"Available: {', '.join(sorted(CONVERTERS))}"
        )
        raise ConfigurationError(msg) from None
