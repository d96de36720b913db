"""Immutable HTTP request.

Frozen metadata plus the already-parsed query string and form body.
The request is honest about what it is: received data that doesn't
change.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

from perch.http.cookies import parse_cookies

_FORM_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request descriptor.

    ``method`` is the effective method: a POST whose form carries a
    ``_method`` field is treated as that method (HTML forms can only
    send GET and POST).
    """

    method: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    form: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)

    @property
    def input(self) -> dict[str, str]:
        """Query and form values merged; form wins."""
        return {**self.query, **self.form}

    @property
    def referer(self) -> str | None:
        return self.headers.get("referer")

    # -- Factories --

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        query: Mapping[str, str] | None = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Request:
        """Create a Request from plain values (tests, scripts)."""
        path, _, raw_query = path.partition("?")
        merged_query = dict(parse_qsl(raw_query, keep_blank_values=True))
        merged_query.update(query or {})
        lowered = {k.lower(): v for k, v in (headers or {}).items()}
        form = dict(form or {})
        return cls(
            method=_effective_method(method, form),
            path=path or "/",
            query=merged_query,
            form=form,
            headers=lowered,
            cookies=parse_cookies(lowered.get("cookie", "")),
        )

    @classmethod
    async def from_asgi(cls, scope: Mapping[str, Any], receive: Any) -> Request:
        """Create a Request from an ASGI HTTP scope, reading the full body."""
        headers = {
            name.decode("latin-1").lower(): value.decode("latin-1")
            for name, value in scope.get("headers", ())
        }
        chunks: list[bytes] = []
        while True:
            message = await receive()
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        body = b"".join(chunks)

        form: dict[str, str] = {}
        if headers.get("content-type", "").startswith(_FORM_TYPE):
            text = body.decode("utf-8", errors="replace")
            form = dict(parse_qsl(text, keep_blank_values=True))

        query_string = scope.get("query_string", b"").decode("latin-1")
        return cls(
            method=_effective_method(scope["method"], form),
            path=scope["path"],
            query=dict(parse_qsl(query_string, keep_blank_values=True)),
            form=form,
            headers=headers,
            cookies=parse_cookies(headers.get("cookie", "")),
        )


def _effective_method(method: str, form: Mapping[str, str]) -> str:
    method = method.upper()
    if method == "POST" and form.get("_method"):
        return form["_method"].upper()
    return method
