"""Perch application class.

Wires the container, router, sessions and views together and owns the
single failure-handling boundary, ``App.handle()``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING, Any

from perch._internal.invoke import call_with_injection
from perch.config import AppConfig
from perch.container import Container
from perch.data.database import Database
from perch.data.errors import NotFoundError
from perch.errors import HTTPError, ValidationError
from perch.http.request import Request
from perch.http.response import Redirect, Response
from perch.middleware import GUARDS
from perch.routing.route import Handler
from perch.routing.router import PreviousPath, Router
from perch.server.errors import (
    ErrorHandler,
    default_error_response,
    internal_error_response,
    log_failure,
    redirect_back,
)
from perch.server.sender import send_response
from perch.session import Session, SessionStore
from perch.templating import Template, create_environment, render

if TYPE_CHECKING:
    from jinja2 import Environment

logger = logging.getLogger("perch.server")

# Session key holding the client's redirect-back target
PREVIOUS_PATH_KEY = "_previous_path"


class App:
    """The perch application.

    Usage::

        app = App(AppConfig(secret_key="s3cr3t", database="sqlite:///notes.db"))

        @app.get("/notes/{id:int}", middleware="auth")
        async def show(id: int, db: Database, session: Session):
            note = await db.query("SELECT * FROM notes WHERE id = :id", {"id": id}).find_or_fail()
            authorize(note["user_id"] == session.get("user")["id"])
            return Template("notes/show.html", note=note)

        async with app.lifespan():
            response = await app.handle(Request.build("GET", "/notes/1"))

    Container bindings registered by default:

    - ``config``: the ``AppConfig``
    - ``router``: the ``Router``
    - ``db``: a ``Database`` singleton, when ``config.database`` is set
    - ``middleware.auth`` / ``middleware.guest``: route guards
    """

    __slots__ = (
        "_error_handlers",
        "_jinja_env",
        "_sessions",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "container",
        "router",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        container: Container | None = None,
        jinja_env: Environment | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.container: Container = container if container is not None else Container()
        self.router: Router = Router(
            self.container,
            history=PreviousPath(self.config.home_path),
        )
        self._jinja_env: Environment | None = jinja_env
        self._error_handlers: dict[int, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []

        self._sessions: SessionStore | None = None
        if self.config.secret_key:
            self._sessions = SessionStore(
                self.config.secret_key,
                cookie_name=self.config.session_cookie,
                max_age=self.config.session_max_age,
                secure=self.config.session_secure,
            )
        else:
            logger.warning("No secret_key configured; sessions and flash data will not persist")

        self.container.instance("config", self.config)
        self.container.instance("router", self.router)
        database = self.config.database
        if database is not None:
            self.container.singleton("db", lambda: Database.from_config(database))
        for key, guard in GUARDS.items():
            if not self.container.has(f"middleware.{key}"):
                self.container.singleton(
                    f"middleware.{key}",
                    lambda guard=guard: guard(self.config.home_path),
                )

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: tuple[str, ...] | list[str] = ("GET",),
        name: str | None = None,
        middleware: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a handler for *path* under each of *methods*."""

        def decorator(func: Handler) -> Handler:
            for index, method in enumerate(methods):
                # A name can only point at one route; it goes to the first method
                route_name = name if index == 0 else None
                self.router.register(method, path, func, name=route_name, middleware=middleware)
            return func

        return decorator

    def get(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("GET",), **options)

    def post(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("POST",), **options)

    def put(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PUT",), **options)

    def patch(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PATCH",), **options)

    def delete(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("DELETE",), **options)

    def error(self, status: int) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register a handler that renders responses for *status*.

        The handler may take ``request``, ``exc``, ``status`` and
        ``session`` by name, plus any container binding.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._error_handlers[status] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        self._shutdown_hooks.append(func)
        return func

    # -- Services --

    @property
    def db(self) -> Database:
        """The ``db`` binding. Raises ``ResolutionError`` if none is configured."""
        return self.container.resolve("db")

    @property
    def jinja_env(self) -> Environment:
        if self._jinja_env is None:
            self._jinja_env = create_environment(self.config)
        return self._jinja_env

    def render(self, name: str, data: Mapping[str, Any] | None = None) -> str:
        return render(self.jinja_env, name, data or {})

    # -- Lifespan --

    @asynccontextmanager
    async def lifespan(self) -> AsyncIterator[App]:
        """Connect the database and run startup hooks; undo both on exit.

        Every ``Database`` the container has created is disconnected on
        exit, whether the body finished cleanly or raised.
        """
        try:
            if self.container.has("db"):
                await self.db.connect()
            for hook in self._startup_hooks:
                await call_with_injection(hook, {"app": self}, self.container)
            yield self
        finally:
            try:
                for hook in self._shutdown_hooks:
                    await call_with_injection(hook, {"app": self}, self.container)
            finally:
                for instance in self.container.resolved().values():
                    if isinstance(instance, Database):
                        await instance.disconnect()

    # -- Dispatch --

    async def handle(self, request: Request) -> Response:
        """Route *request* and translate any failure into a response.

        - ``ValidationError``: redirect to the previous path with
          ``errors`` and ``old`` flashed
        - ``HTTPError`` (route not found, forbidden, ``abort()``): its status
        - ``NotFoundError`` from the data layer: 404
        - anything else: logged, 500

        The redirect-back target is the client's own previous path, kept
        in its session; a new client starts at ``config.home_path``.
        """
        session = self._load_session(request)
        history = PreviousPath(self.config.home_path, session.get(PREVIOUS_PATH_KEY))
        back = history.value

        try:
            result = await self.router.dispatch(
                request.method,
                request.path,
                history=history,
                request=request,
                session=session,
            )
            response = self._to_response(result, session)
        except ValidationError as exc:
            response = redirect_back(session, back, exc.errors, exc.old)
        except HTTPError as exc:
            log_failure(exc.status, request.method, request.path, exc)
            response = await self._error_response(exc.status, exc, request, session)
        except NotFoundError as exc:
            log_failure(404, request.method, request.path, exc)
            response = await self._error_response(404, exc, request, session)
        except Exception as exc:
            log_failure(500, request.method, request.path, exc)
            response = await self._error_response(500, exc, request, session)

        session.unflash()
        session.put(PREVIOUS_PATH_KEY, history.value)
        if self._sessions is not None:
            response = self._sessions.save(response, session)
        return response

    def _load_session(self, request: Request) -> Session:
        if self._sessions is None:
            return Session()
        return self._sessions.load(request)

    def _to_response(self, result: Any, session: Session) -> Response:
        """Turn a handler's return value into a Response."""
        if isinstance(result, Response):
            return result
        if isinstance(result, Redirect):
            return result.to_response()
        if isinstance(result, Template):
            context = {
                "errors": session.get("errors", {}),
                "old": session.get("old", {}),
                **result.context,
            }
            return Response(body=self.render(result.name, context))
        if isinstance(result, (str, bytes)):
            return Response(body=result)
        if isinstance(result, (dict, list)):
            return Response.json(result)
        if result is None:
            return Response(status=204)
        msg = f"Handler returned unsupported type {type(result).__name__}"
        raise TypeError(msg)

    async def _error_response(
        self,
        status: int,
        exc: Exception,
        request: Request,
        session: Session,
    ) -> Response:
        handler = self._error_handlers.get(status)
        if handler is None:
            return self._fallback_response(status, exc)

        try:
            result = await call_with_injection(
                handler,
                {"request": request, "exc": exc, "status": status, "session": session},
                self.container,
            )
            response = self._to_response(result, session)
        except Exception:
            logger.exception(
                "Error handler for %d failed on %s %s", status, request.method, request.path
            )
            return self._fallback_response(status, exc)
        # Keep the error status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(status)
        return response

    def _fallback_response(self, status: int, exc: Exception) -> Response:
        if status >= 500:
            return internal_error_response(exc, debug=self.config.debug)
        detail = exc.detail if isinstance(exc, HTTPError) else ""
        return default_error_response(status, detail)

    # -- ASGI interface --

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        """ASGI 3.0 entry point for ``lifespan`` and ``http`` scopes."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return
        request = await Request.from_asgi(scope, receive)
        response = await self.handle(request)
        await send_response(response, send)

    async def _handle_lifespan(self, receive: Any, send: Any) -> None:
        """Run ``lifespan()`` across the ASGI startup/shutdown messages."""
        stack = AsyncExitStack()
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    await stack.enter_async_context(self.lifespan())
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await stack.aclose()
                await send({"type": "lifespan.shutdown.complete"})
                return

