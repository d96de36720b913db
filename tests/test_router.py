"""Tests for perch.routing.router: ordered first-match router."""

import pytest

from perch.container import Container
from perch.errors import ConfigurationError, ResolutionError, RouteNotFoundError
from perch.routing.params import CONVERTERS, get_converter
from perch.routing.router import PreviousPath, Router, parse_path


def _handler() -> str:
    return "ok"


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/notes")
        assert len(segments) == 1
        assert segments[0].value == "notes"
        assert segments[0].is_param is False

    def test_root(self) -> None:
        assert parse_path("/") == ()

    def test_brace_param(self) -> None:
        segments = parse_path("/notes/{id}")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "str"

    def test_colon_param(self) -> None:
        segments = parse_path("/notes/:id")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"

    def test_typed_param(self) -> None:
        assert parse_path("/notes/{id:int}")[1].param_type == "int"

    def test_rejects_angle_brackets(self) -> None:
        with pytest.raises(ConfigurationError, match="<param>"):
            parse_path("/notes/<id>")

    def test_rejects_unknown_converter(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown converter 'uuid'"):
            parse_path("/notes/{id:uuid}")

    def test_rejects_unnamed_param(self) -> None:
        with pytest.raises(ConfigurationError, match="unnamed"):
            parse_path("/notes/{}")


class TestConverters:
    def test_int(self) -> None:
        converter = CONVERTERS["int"]
        assert converter.accepts("42")
        assert not converter.accepts("4x")
        assert converter.to_python("42") == 42

    def test_float(self) -> None:
        converter = CONVERTERS["float"]
        assert converter.accepts("2.5")
        assert converter.accepts("2")
        assert not converter.accepts("2.")
        assert converter.to_python("2.5") == 2.5

    def test_str_rejects_slash(self) -> None:
        assert not CONVERTERS["str"].accepts("a/b")

    def test_unknown(self) -> None:
        with pytest.raises(ConfigurationError, match="Available: float, int, str"):
            get_converter("uuid", "/x/{id:uuid}")

    async def test_float_param_dispatch(self) -> None:
        router = Router()
        router.get("/scale/{factor:float}", lambda factor: factor * 2)
        assert await router.dispatch("GET", "/scale/1.5") == 3.0


class TestRegistration:
    def test_routes_kept_in_order(self) -> None:
        router = Router()
        router.get("/a", _handler)
        router.post("/b", _handler)
        router.delete("/c", _handler)
        assert [(r.method, r.path) for r in router.routes] == [
            ("GET", "/a"),
            ("POST", "/b"),
            ("DELETE", "/c"),
        ]

    def test_method_is_uppercased(self) -> None:
        router = Router()
        route = router.register("patch", "/notes/{id}", _handler)
        assert route.method == "PATCH"

    def test_unsupported_method(self) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported HTTP method 'TRACE'"):
            Router().register("TRACE", "/", _handler)

    def test_duplicate_name(self) -> None:
        router = Router()
        router.get("/notes", _handler, name="notes")
        with pytest.raises(ConfigurationError, match="Duplicate route name"):
            router.get("/other", _handler, name="notes")

    def test_middleware_key_recorded(self) -> None:
        route = Router().get("/notes", _handler, middleware="auth")
        assert route.middleware == "auth"


class TestMatch:
    def test_static_match(self) -> None:
        router = Router()
        router.get("/notes", _handler)
        match = router.match("GET", "/notes")
        assert match is not None
        assert match.path_params == {}

    def test_trailing_slash_and_query_ignored(self) -> None:
        router = Router()
        router.get("/notes", _handler)
        assert router.match("GET", "/notes/") is not None
        assert router.match("GET", "/notes?page=2") is not None

    def test_param_captured_as_string(self) -> None:
        router = Router()
        router.get("/notes/{id}", _handler)
        match = router.match("GET", "/notes/42")
        assert match is not None
        assert match.path_params == {"id": "42"}

    def test_int_param_rejects_non_digits(self) -> None:
        router = Router()
        router.get("/notes/{id:int}", _handler)
        assert router.match("GET", "/notes/abc") is None

    def test_method_must_match(self) -> None:
        router = Router()
        router.get("/notes", _handler)
        assert router.match("POST", "/notes") is None

    def test_segment_count_must_match(self) -> None:
        router = Router()
        router.get("/notes/{id}", _handler)
        assert router.match("GET", "/notes") is None
        assert router.match("GET", "/notes/1/edit") is None

    def test_first_registered_wins(self) -> None:
        router = Router()
        router.get("/notes/{id}", _handler, name="show")
        router.get("/notes/create", _handler, name="create")
        match = router.match("GET", "/notes/create")
        assert match is not None
        assert match.route.name == "show"

    def test_no_match_is_none(self) -> None:
        assert Router().match("GET", "/nowhere") is None


class TestDispatch:
    async def test_runs_handler(self) -> None:
        router = Router()
        router.get("/", _handler)
        assert await router.dispatch("GET", "/") == "ok"

    async def test_converts_and_injects_params(self) -> None:
        router = Router()

        async def show(id: int) -> int:
            return id

        router.get("/notes/{id:int}", show)
        result = await router.dispatch("GET", "/notes/7")
        assert result == 7
        assert isinstance(result, int)

    async def test_extras_offered_by_name(self) -> None:
        router = Router()
        router.post("/notes", lambda request: request)
        assert await router.dispatch("POST", "/notes", request="req") == "req"

    async def test_string_handler_resolved_from_container(self) -> None:
        container = Container()
        container.instance("notes.index", lambda: ["a", "b"])
        router = Router(container)
        router.get("/notes", "notes.index")
        assert await router.dispatch("GET", "/notes") == ["a", "b"]

    async def test_string_handler_needs_container(self) -> None:
        router = Router()
        router.get("/notes", "notes.index")
        with pytest.raises(ConfigurationError, match="no container"):
            await router.dispatch("GET", "/notes")

    async def test_handler_gets_container_bindings(self) -> None:
        container = Container()
        container.instance("db", "the-db")
        router = Router(container)
        router.get("/", lambda db: db)
        assert await router.dispatch("GET", "/") == "the-db"

    async def test_no_route_raises_not_found(self) -> None:
        router = Router()
        router.get("/notes", _handler)
        with pytest.raises(RouteNotFoundError, match="No route matches DELETE '/notes'") as exc:
            await router.dispatch("DELETE", "/notes")
        assert exc.value.status == 404

    async def test_handler_errors_propagate(self) -> None:
        router = Router()

        def broken() -> None:
            raise ValueError("broken handler")

        router.get("/", broken)
        with pytest.raises(ValueError, match="broken handler"):
            await router.dispatch("GET", "/")


class TestGuards:
    async def test_guard_passes(self) -> None:
        container = Container()
        container.instance("middleware.open", lambda: None)
        router = Router(container)
        router.get("/", _handler, middleware="open")
        assert await router.dispatch("GET", "/") == "ok"

    async def test_guard_short_circuits(self) -> None:
        calls: list[str] = []
        container = Container()
        container.instance("middleware.closed", lambda: "go away")
        router = Router(container)
        router.get("/", lambda: calls.append("handler"), middleware="closed")

        assert await router.dispatch("GET", "/") == "go away"
        assert calls == []

    async def test_guard_sees_extras(self) -> None:
        container = Container()
        container.instance("middleware.admin", lambda session: None if session == "admin" else "no")
        router = Router(container)
        router.get("/", _handler, middleware="admin")
        assert await router.dispatch("GET", "/", session="admin") == "ok"
        assert await router.dispatch("GET", "/", session="guest") == "no"

    async def test_unknown_guard_key(self) -> None:
        router = Router(Container())
        router.get("/", _handler, middleware="missing")
        with pytest.raises(ResolutionError, match="middleware.missing"):
            await router.dispatch("GET", "/")


class TestPreviousPath:
    def test_defaults_to_root(self) -> None:
        assert Router().previous_path() == "/"

    def test_custom_default(self) -> None:
        router = Router(history=PreviousPath("/home"))
        assert router.previous_path() == "/home"

    async def test_records_dispatched_path(self) -> None:
        router = Router()
        router.get("/notes/{id}", _handler)
        await router.dispatch("GET", "/notes/3")
        assert router.previous_path() == "/notes/3"

    async def test_recorded_even_when_handler_fails(self) -> None:
        router = Router()

        def forbidden() -> None:
            raise PermissionError

        router.get("/notes/{id}", forbidden)
        with pytest.raises(PermissionError):
            await router.dispatch("GET", "/notes/1")
        assert router.previous_path() == "/notes/1"

    async def test_not_recorded_without_match(self) -> None:
        router = Router()
        router.get("/notes", _handler)
        await router.dispatch("GET", "/notes")
        with pytest.raises(RouteNotFoundError):
            await router.dispatch("GET", "/missing")
        assert router.previous_path() == "/notes"

    async def test_caller_history_also_recorded(self) -> None:
        router = Router()
        router.get("/notes/{id}", _handler)
        client = PreviousPath("/home", "/notes")
        assert client.value == "/notes"

        await router.dispatch("GET", "/notes/5", history=client)

        assert client.value == "/notes/5"
        assert router.previous_path() == "/notes/5"

    async def test_caller_history_untouched_without_match(self) -> None:
        client = PreviousPath("/home")
        with pytest.raises(RouteNotFoundError):
            await Router().dispatch("GET", "/missing", history=client)
        assert client.value == "/home"
        assert client.default == "/home"

    def test_clear(self) -> None:
        history = PreviousPath()
        history.record("/notes")
        history.clear()
        assert history.value == "/"


class TestUrlFor:
    def test_static(self) -> None:
        router = Router()
        router.get("/notes", _handler, name="notes.index")
        assert router.url_for("notes.index") == "/notes"

    def test_with_params(self) -> None:
        router = Router()
        router.get("/notes/{id:int}", _handler, name="notes.show")
        assert router.url_for("notes.show", id=5) == "/notes/5"

    def test_missing_param(self) -> None:
        router = Router()
        router.get("/notes/{id}", _handler, name="notes.show")
        with pytest.raises(ConfigurationError, match="requires parameter 'id'"):
            router.url_for("notes.show")

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="No route named"):
            Router().url_for("nope")
