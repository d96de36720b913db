"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Responses are never
mutated in place.
"""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass, replace
from typing import Any

from perch.http.cookies import SetCookie


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_cookie(self, cookie: SetCookie) -> Response:
        return replace(self, cookies=(*self.cookies, cookie))

    # -- Reading --

    def header(self, name: str) -> str | None:
        """First header value named *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def location(self) -> str | None:
        return self.header("Location")

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400 and self.location is not None

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode("utf-8")

    @property
    def text(self) -> str:
        if isinstance(self.body, str):
            return self.body
        return self.body.decode("utf-8")

    @classmethod
    def json(cls, data: Any, *, status: int = 200) -> Response:
        return cls(
            body=json_module.dumps(data, default=str),
            status=status,
            content_type="application/json",
        )


@dataclass(frozen=True, slots=True)
class Redirect:
    """Return value asking for a redirect to *location*.

    ``303 See Other`` by default so a redirected POST is followed by a GET.
    """

    location: str
    status: int = 303

    def to_response(self) -> Response:
        return Response(status=self.status).with_header("Location", self.location)
