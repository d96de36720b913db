"""View rendering with Jinja2.

Handlers return ``Template(name, **context)``; the app renders it with
a Jinja2 ``Environment`` built once from ``AppConfig``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from jinja2 import Environment, FileSystemLoader

from perch.config import AppConfig


@dataclass(frozen=True, slots=True)
class Template:
    """Render a full Jinja2 template.

    Usage::

        return Template("notes/show.html", heading="Note", note=note)
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)


def create_environment(config: AppConfig) -> Environment:
    """Create the Jinja2 Environment for an app. Called once per App."""
    return Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )


def render(env: Environment, name: str, data: Mapping[str, Any]) -> str:
    """Render template *name* with *data*; the view only reads *data*."""
    return env.get_template(name).render(dict(data))
