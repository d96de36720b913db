"""Perch: a small async web framework.

A name-keyed dependency container, an ordered first-match router with
redirect-back support, and a parameterized SQLite access layer.

Basic usage::

    from perch import App, AppConfig, Template, authorize

    app = App(AppConfig(secret_key="s3cr3t", database="sqlite:///notes.db"))

    @app.get("/notes/{id:int}")
    async def show(id: int, db):
        note = await db.query("SELECT * FROM notes WHERE id = :id", {"id": id}).find_or_fail()
        authorize(note["user_id"] == 1)
        return Template("notes/show.html", note=note)
"""

from perch.app import App
from perch.authorization import abort, authorize
from perch.config import AppConfig
from perch.container import Container
from perch.data import Database, DatabaseConfig, NotFoundError, QueryError, Row
from perch.errors import (
    ConfigurationError,
    ForbiddenError,
    HTTPError,
    PerchError,
    ResolutionError,
    RouteNotFoundError,
    ValidationError,
)
from perch.http import Redirect, Request, Response
from perch.routing import PreviousPath, Route, Router
from perch.session import Session
from perch.templating import Template
from perch.validation import validate

__version__ = "0.1.0"

__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Container",
    "Database",
    "DatabaseConfig",
    "ForbiddenError",
    "HTTPError",
    "NotFoundError",
    "PerchError",
    "PreviousPath",
    "QueryError",
    "Redirect",
    "Request",
    "ResolutionError",
    "Response",
    "Route",
    "RouteNotFoundError",
    "Router",
    "Row",
    "Session",
    "Template",
    "ValidationError",
    "abort",
    "authorize",
    "validate",
]
