"""Route, PathSegment, and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from perch.routing.params import Converter

HTTP_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

type Handler = Callable[..., Any] | str


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/notes``      (is_param=False)
    Param:   ``/{id}``       (is_param=True, param_name="id")
    Param:   ``/:id``        (same as ``{id}``)
    Typed:   ``/{id:int}``   (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"
    converter: Converter | None = None


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route.

    ``handler`` is either a callable or the name of a container binding
    that produces one. ``middleware`` names a guard resolved from the
    container as ``middleware.<key>``.
    """

    method: str
    path: str
    handler: Handler
    segments: tuple[PathSegment, ...]
    name: str | None = None
    middleware: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
