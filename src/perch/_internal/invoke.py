"""Invoke helpers: call sync or async handlers uniformly.

Perch handlers and guards can be ``def`` or ``async def``, and receive
their arguments by parameter name. This module keeps both concerns in
one place.

Usage::

    from perch._internal.invoke import call_with_injection

    result = await call_with_injection(handler, {"request": request, "id": "42"}, container)
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from perch.container import Container


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def build_kwargs(
    func: Callable[..., Any],
    available: Mapping[str, Any],
    container: Container | None = None,
) -> dict[str, Any]:
    """Inspect *func*'s signature and pick its arguments by name.

    Resolution order:
    1. Values in *available* (request, path params, dispatch extras)
    2. Container bindings with the same name
    3. The parameter's own default

    A ``**kwargs`` parameter receives every remaining available value.
    Parameters with no source are left out, so a missing required
    argument surfaces as a ``TypeError`` from the call itself.
    """
    sig = inspect.signature(func)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            continue
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            for key, value in available.items():
                kwargs.setdefault(key, value)
            continue
        if name in available:
            kwargs[name] = available[name]
        elif container is not None and container.has(name):
            kwargs[name] = container.resolve(name)

    return kwargs


async def call_with_injection(
    func: Callable[..., Any],
    available: Mapping[str, Any],
    container: Container | None = None,
) -> Any:
    """Build keyword arguments for *func* by name, then invoke it."""
    return await invoke(func, **build_kwargs(func, available, container))
