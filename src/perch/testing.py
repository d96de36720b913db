"""In-process test client for perch applications.

Calls ``App.handle()`` directly with the same Request and Response
types used in production. Keeps a cookie jar so session and flash data
survive from one request to the next, the way a browser would.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from perch.app import App
from perch.http.request import Request
from perch.http.response import Response


class TestClient:
    """Async test client.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/notes")
            assert response.status == 200

            response = await client.post("/notes", form={"body": ""}, follow=True)
    """

    __test__ = False  # Tell pytest this is not a test class

    __slots__ = ("_lifespan", "app", "cookies")

    def __init__(self, app: App) -> None:
        self.app = app
        self.cookies: dict[str, str] = {}
        self._lifespan: Any = None

    async def __aenter__(self) -> TestClient:
        self._lifespan = self.app.lifespan()
        await self._lifespan.__aenter__()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self._lifespan.__aexit__(*exc_info)

    async def request(
        self,
        method: str,
        path: str,
        *,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        follow: bool = False,
    ) -> Response:
        """Send a request; with *follow*, chase redirects with GETs."""
        response = await self._send(method, path, form=form, headers=headers)
        hops = 0
        while follow and response.is_redirect and hops < 10:
            assert response.location is not None
            response = await self._send("GET", response.location, headers=headers)
            hops += 1
        return response

    async def _send(
        self,
        method: str,
        path: str,
        *,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        all_headers = dict(headers or {})
        if self.cookies:
            all_headers["cookie"] = "; ".join(f"{k}={v}" for k, v in self.cookies.items())
        request = Request.build(method, path, form=form, headers=all_headers)
        response = await self.app.handle(request)
        for cookie in response.cookies:
            if cookie.max_age == 0:
                self.cookies.pop(cookie.name, None)
            else:
                self.cookies[cookie.name] = cookie.value
        return response

    async def get(self, path: str, **kwargs: Any) -> Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Response:
        return await self.request("DELETE", path, **kwargs)
