"""Name-keyed dependency container.

Maps a logical name to a zero-argument factory. Plain bindings call
the factory on every resolution; singleton bindings call it once and
cache the result for the lifetime of the container.

Usage::

    container = Container()
    container.singleton("db", lambda: Database("sqlite:///app.db"))
    container.bind("clock", time.monotonic)

    db = container.resolve("db")      # created on first resolve
    db is container.resolve("db")     # True
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from perch.errors import ResolutionError

type Factory = Callable[[], Any]

_UNSET: Any = object()


@dataclass(frozen=True, slots=True)
class Binding:
    """A registered factory and whether its product is shared."""

    factory: Factory
    shared: bool = False


class Container:
    """Registry of named factories and cached singleton instances.

    The container owns the singletons it creates but not the resources
    behind them; closing a cached ``Database`` is the job of
    ``App.lifespan()``.
    """

    __slots__ = ("_bindings", "_instances", "_lock")

    def __init__(self) -> None:
        self._bindings: dict[str, Binding] = {}
        self._instances: dict[str, Any] = {}
        self._lock = threading.Lock()

    # -- Registration --

    def bind(self, name: str, factory: Factory) -> None:
        """Register *factory* under *name*, replacing any prior binding."""
        self._register(name, Binding(factory))

    def singleton(self, name: str, factory: Factory) -> None:
        """Register *factory* under *name*; the first result is cached."""
        self._register(name, Binding(factory, shared=True))

    def instance(self, name: str, value: Any) -> None:
        """Register an already-built value as a singleton."""
        self._register(name, Binding(lambda: value, shared=True))
        self._instances[name] = value

    def _register(self, name: str, binding: Binding) -> None:
        self._bindings[name] = binding
        self._instances.pop(name, None)

    # -- Lookup --

    def has(self, name: str) -> bool:
        return name in self._bindings

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._bindings)

    def resolve(self, name: str) -> Any:
        """Return the value bound to *name*.

        Raises ``ResolutionError`` if nothing is bound under *name*.
        """
        try:
            binding = self._bindings[name]
        except KeyError:
            raise ResolutionError(name) from None

        if not binding.shared:
            return binding.factory()

        cached = self._instances.get(name, _UNSET)
        if cached is not _UNSET:
            return cached
        with self._lock:
            cached = self._instances.get(name, _UNSET)
            if cached is _UNSET:
                cached = binding.factory()
                self._instances[name] = cached
            return cached

    def resolved(self) -> dict[str, Any]:
        """Return the singleton instances created so far."""
        return dict(self._instances)
