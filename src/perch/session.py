"""Signed-cookie sessions with flash values.

Session data is serialized as JSON and signed with ``itsdangerous``.
Flash values live under a reserved key. A value flashed during one
request is readable on the next and cleared by ``unflash()`` once that
request completes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from perch.errors import ConfigurationError
from perch.http.cookies import SetCookie
from perch.http.request import Request
from perch.http.response import Response

logger = logging.getLogger("perch.server")

FLASH_KEY = "_flash"


class Session:
    """Mutable per-request session state.

    Usage::

        session.put("user", {"email": "a@b.com"})
        session.flash("errors", {"body": ["This field is required"]})

        # next request
        session.get("errors")   # flashed value
        session.unflash()       # done with it
    """

    __slots__ = ("_data", "_stale")

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        if FLASH_KEY in self._data:
            self._data[FLASH_KEY] = dict(self._data[FLASH_KEY])
        # Flash keys that arrived with this request; unflash() drops these only
        self._stale: set[str] = set(self._data.get(FLASH_KEY, {}))

    def get(self, key: str, default: Any = None) -> Any:
        """Read a flashed value first, then a regular one."""
        flashed = self._data.get(FLASH_KEY, {})
        if key in flashed:
            return flashed[key]
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data.get(FLASH_KEY, {}) or key in self._data

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def put(self, key: str, value: Any) -> None:
        if key == FLASH_KEY:
            msg = f"{FLASH_KEY!r} is reserved for flash values; use flash()."
            raise ValueError(msg)
        self._data[key] = value

    def forget(self, key: str) -> None:
        self._data.pop(key, None)

    def flash(self, key: str, value: Any) -> None:
        self._data.setdefault(FLASH_KEY, {})[key] = value
        self._stale.discard(key)

    def unflash(self) -> None:
        """Drop the flash values this request was loaded with."""
        flashed = self._data.get(FLASH_KEY, {})
        for key in self._stale:
            flashed.pop(key, None)
        self._stale.clear()
        if not flashed:
            self._data.pop(FLASH_KEY, None)

    def flush(self) -> None:
        self._data.clear()
        self._stale.clear()

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"<Session {self._data!r}>"


class SessionStore:
    """Loads sessions from, and saves them to, a signed cookie."""

    __slots__ = ("_cookie_name", "_max_age", "_secure", "_serializer")

    def __init__(
        self,
        secret_key: str,
        *,
        cookie_name: str = "perch_session",
        max_age: int = 86400,
        secure: bool = False,
    ) -> None:
        if not secret_key:
            msg = "Sessions need a non-empty secret_key."
            raise ConfigurationError(msg)
        self._serializer = URLSafeTimedSerializer(secret_key, salt="perch.session")
        self._cookie_name = cookie_name
        self._max_age = max_age
        self._secure = secure

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def load(self, request: Request) -> Session:
        """Verify and decode the session cookie; tampered or expired is empty."""
        raw = request.cookies.get(self._cookie_name)
        if not raw:
            return Session()
        try:
            data = self._serializer.loads(raw, max_age=self._max_age)
        except BadSignature:
            logger.debug("Discarding session cookie with a bad or expired signature")
            return Session()
        if not isinstance(data, dict):
            return Session()
        return Session(data)

    def save(self, response: Response, session: Session) -> Response:
        cookie = SetCookie(
            name=self._cookie_name,
            value=self._serializer.dumps(session.to_dict()),
            max_age=self._max_age,
            secure=self._secure,
        )
        return response.with_cookie(cookie)
