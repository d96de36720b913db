"""Ordered router with first-match-wins path matching.

Routes are kept in registration order and scanned linearly. The first
route whose method and segments line up wins; there is no scoring, so
``/notes/{id}`` registered before ``/notes/new`` captures ``new`` as an id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from perch._internal.invoke import call_with_injection
from perch.errors import ConfigurationError, RouteNotFoundError
from perch.routing.params import get_converter
from perch.routing.route import HTTP_METHODS, Handler, PathSegment, Route, RouteMatch

if TYPE_CHECKING:
    from perch.container import Container

logger = logging.getLogger("perch.routing")


def parse_path(path: str) -> tuple[PathSegment, ...]:
    """Parse a route path string into segments.

    Examples::

        "/notes"           -> (PathSegment("notes"),)
        "/notes/{id}"      -> (PathSegment("notes"), PathSegment("{id}", is_param=True, ...))
        "/notes/:id"       -> same as "/notes/{id}"
        "/notes/{id:int}"  -> (..., PathSegment("{id:int}", is_param=True, param_type="int"))
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route {path!r} uses <param> syntax. "
                "Perch expects {param} or :param path parameters."
            )
            raise ConfigurationError(msg)

        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
        elif part.startswith(":") and len(part) > 1:
            inner = part[1:]
        else:
            segments.append(PathSegment(value=part))
            continue

        param_name, _, param_type = inner.partition(":")
        param_type = param_type or "str"
        if not param_name:
            msg = f"Route {path!r} has an unnamed parameter segment {part!r}."
            raise ConfigurationError(msg)
        segments.append(
            PathSegment(
                value=part,
                is_param=True,
                param_name=param_name,
                param_type=param_type,
                converter=get_converter(param_type, path),
            )
        )
    return tuple(segments)


def _split(path: str) -> list[str]:
    path = path.split("?", 1)[0]
    return [p for p in path.strip("/").split("/") if p]


class PreviousPath:
    """The last successfully routed path, used for redirect-back.

    A router keeps one for the whole process. ``App`` builds one per
    request from the client's session and passes it to ``dispatch()``,
    so each client is redirected back to its own previous page.
    ``clear()`` resets it to the default.
    """

    __slots__ = ("_default", "_value")

    def __init__(self, default: str = "/", value: str | None = None) -> None:
        self._default = default
        self._value = value

    @property
    def default(self) -> str:
        return self._default

    @property
    def value(self) -> str:
        return self._value if self._value is not None else self._default

    def record(self, path: str) -> None:
        self._value = path

    def clear(self) -> None:
        self._value = None

    def __repr__(self) -> str:
        return f"PreviousPath({self.value!r})"


class Router:
    """Ordered route table with method dispatch.

    Usage::

        router = Router(container)
        router.get("/notes", index)
        router.get("/notes/{id:int}", show, middleware="auth")
        router.post("/notes", store)

        match = router.match("GET", "/notes/42")
        result = await router.dispatch("GET", "/notes/42", request=request)
    """

    __slots__ = ("_container", "_history", "_named", "_routes")

    def __init__(
        self,
        container: Container | None = None,
        *,
        history: PreviousPath | None = None,
    ) -> None:
        self._container = container
        self._history = history if history is not None else PreviousPath()
        self._routes: list[Route] = []
        self._named: dict[str, Route] = {}

    # -- Registration --

    def register(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        name: str | None = None,
        middleware: str | None = None,
    ) -> Route:
        """Append a route. Registration order decides precedence."""
        method = method.upper()
        if method not in HTTP_METHODS:
            msg = (
                f"Unsupported HTTP method {method!r} for route {path!r}. "
                f"Supported: {', '.join(sorted(HTTP_METHODS))}"
            )
            raise ConfigurationError(msg)
        if name is not None and name in self._named:
            msg = f"Duplicate route name {name!r} ({path!r} and {self._named[name].path!r})."
            raise ConfigurationError(msg)

        route = Route(
            method=method,
            path=path,
            handler=handler,
            segments=parse_path(path),
            name=name,
            middleware=middleware,
        )
        self._routes.append(route)
        if name is not None:
            self._named[name] = route
        return route

    def get(self, path: str, handler: Handler, **options: Any) -> Route:
        return self.register("GET", path, handler, **options)

    def post(self, path: str, handler: Handler, **options: Any) -> Route:
        return self.register("POST", path, handler, **options)

    def put(self, path: str, handler: Handler, **options: Any) -> Route:
        return self.register("PUT", path, handler, **options)

    def patch(self, path: str, handler: Handler, **options: Any) -> Route:
        return self.register("PATCH", path, handler, **options)

    def delete(self, path: str, handler: Handler, **options: Any) -> Route:
        return self.register("DELETE", path, handler, **options)

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in registration order."""
        return tuple(self._routes)

    # -- Matching --

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Return the first route matching *method* and *path*, or ``None``."""
        method = method.upper()
        parts = _split(path)

        for route in self._routes:
            if route.method != method or len(route.segments) != len(parts):
                continue
            params = _match_segments(route.segments, parts)
            if params is not None:
                return RouteMatch(route=route, path_params=params)
        return None

    async def dispatch(
        self,
        method: str,
        path: str,
        /,
        *,
        history: PreviousPath | None = None,
        **extras: Any,
    ) -> Any:
        """Match, record the path, then run the route's guard and handler.

        ``extras`` (typically ``request`` and ``session``) are offered to
        the guard and handler by parameter name alongside path params.
        Handler failures propagate unchanged. The path is recorded in the
        router's own history and, when given, in the caller's *history*.

        Raises ``RouteNotFoundError`` when no route matches.
        """
        match = self.match(method, path)
        if match is None:
            raise RouteNotFoundError(f"No route matches {method.upper()} {path!r}")

        # Recorded before the handler runs so a failing handler still
        # leaves this path as the redirect-back target.
        self._history.record(path)
        if history is not None:
            history.record(path)

        route = match.route
        available = {**extras, **_convert(route, match.path_params)}

        if route.middleware is not None:
            guard = self._resolve(f"middleware.{route.middleware}")
            outcome = await call_with_injection(guard, available, self._container)
            if outcome is not None:
                logger.debug("Guard %r short-circuited %s %s", route.middleware, method, path)
                return outcome

        handler = self._resolve(route.handler) if isinstance(route.handler, str) else route.handler
        return await call_with_injection(handler, available, self._container)

    def _resolve(self, name: str) -> Any:
        if self._container is None:
            msg = f"Router has no container to resolve {name!r}."
            raise ConfigurationError(msg)
        return self._container.resolve(name)

    # -- Redirect-back --

    @property
    def history(self) -> PreviousPath:
        return self._history

    def previous_path(self) -> str:
        """The last successfully dispatched path (``/`` if none yet)."""
        return self._history.value

    # -- URL building --

    def url_for(self, name: str, /, **params: Any) -> str:
        """Build a path for the route registered as *name*."""
        try:
            route = self._named[name]
        except KeyError:
            msg = f"No route named {name!r}."
            raise ConfigurationError(msg) from None

        parts: list[str] = []
        for seg in route.segments:
            if not seg.is_param:
                parts.append(seg.value)
                continue
            if seg.param_name not in params:
                msg = f"Route {name!r} requires parameter {seg.param_name!r}."
                raise ConfigurationError(msg)
            parts.append(str(params[seg.param_name]))
        return "/" + "/".join(parts)


def _match_segments(segments: tuple[PathSegment, ...], parts: list[str]) -> dict[str, str] | None:
    params: dict[str, str] = {}
    for seg, part in zip(segments, parts, strict=True):
        if not seg.is_param:
            if seg.value != part:
                return None
            continue
        assert seg.converter is not None
        if not seg.converter.accepts(part):
            return None
        params[seg.param_name or ""] = part
    return params


def _convert(route: Route, params: dict[str, str]) -> dict[str, Any]:
    converted: dict[str, Any] = {}
    for seg in route.segments:
        if seg.converter is not None and seg.param_name is not None:
            converted[seg.param_name] = seg.converter.to_python(params[seg.param_name])
    return converted
