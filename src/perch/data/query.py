"""Lazy parameterized statements.

``Database.query()`` returns a frozen ``Query`` holding SQL text and its
named bindings. Nothing runs until a terminal method is awaited, and
every terminal call executes the statement afresh, so calling ``get()``
twice runs the query twice.

Usage::

    note = await db.query("SELECT * FROM notes WHERE id = :id", {"id": 1}).find_or_fail()
    notes = await db.query("SELECT * FROM notes WHERE user_id = :user", {"user": 1}).get()

Transparency: ``.sql`` and ``.params`` show exactly what will run.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from perch.data._bindings import bind
from perch.data._mapping import map_row, map_rows
from perch.data.errors import NotFoundError

if TYPE_CHECKING:
    from perch.data.database import Database
    from perch.data.row import Row, Scalar


@dataclass(frozen=True, slots=True)
class Query:
    """An unexecuted statement bound to a ``Database``."""

    db: Database = field(repr=False)
    sql: str
    bindings: Mapping[str, Any] = field(default_factory=dict)

    @property
    def params(self) -> dict[str, Any]:
        """The checked parameter dict handed to the driver.

        Raises ``QueryError`` if a placeholder has no binding.
        """
        return bind(self.sql, self.bindings)

    # -- Terminal methods --

    async def fetch(self, cls: type | None = None) -> Row | Any | None:
        """Return the first row, or ``None`` when there are no rows.

        Only the first row is read from the cursor. Pass a dataclass as
        *cls* to map the row onto it.
        """
        rows = await self.db._select(self.sql, self.params, first_only=True)
        if not rows:
            return None
        return map_row(cls, rows[0]) if cls is not None else rows[0]

    async def get(self, cls: type | None = None) -> list[Row] | list[Any]:
        """Return every row, in result-set order."""
        rows = await self.db._select(self.sql, self.params)
        return map_rows(cls, rows) if cls is not None else rows

    async def find_or_fail(self, cls: type | None = None) -> Row | Any:
        """Like ``fetch()``, but raise ``NotFoundError`` when there is no row."""
        found = await self.fetch(cls)
        if found is None:
            msg = f"No row for {self.sql!r} with {dict(self.bindings)!r}"
            raise NotFoundError(msg)
        return found

    async def value(self) -> Scalar:
        """Return the first column of the first row, or ``None``.

        Useful for COUNT, SUM, MAX, etc.
        """
        row = await self.fetch()
        if row is None:
            return None
        return next(iter(row.values()), None)

    async def execute(self) -> int:
        """Run as a statement (INSERT/UPDATE/DELETE); return rows affected."""
        return await self.db.execute(self.sql, self.bindings)
