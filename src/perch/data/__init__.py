"""Typed async database access for perch.

Named-placeholder SQL in, ``Row`` records (or frozen dataclasses) out.
Not an ORM.

Basic usage::

    from perch.data import Database

    db = Database("sqlite:///app.db")

    notes = await db.query("SELECT * FROM notes WHERE user_id = :user", {"user": 1}).get()
    note = await db.query("SELECT * FROM notes WHERE id = :id", {"id": 42}).fetch()
    note = await db.query("SELECT * FROM notes WHERE id = :id", {"id": 42}).find_or_fail()
"""

from perch.data.database import Database, DatabaseConfig
from perch.data.errors import ColumnError, DataError, NotFoundError, QueryError
from perch.data.query import Query
from perch.data.row import Row

__all__ = [
    "ColumnError",
    "DataError",
    "Database",
    "DatabaseConfig",
    "NotFoundError",
    "Query",
    "QueryError",
    "Row",
]
