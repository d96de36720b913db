"""Hydrated result rows.

A ``Row`` is an immutable, ordered mapping of column name to scalar.
Column order follows the result set. Missing columns fail loudly with
``ColumnError`` instead of reading as ``None``; the typed accessors
also check the value's type.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from perch.data._mapping import map_row
from perch.data.errors import ColumnError

type Scalar = str | int | float | bool | bytes | None


class Row(Mapping[str, Scalar]):
    """One record from a query result.

    Usage::

        row = await db.query("SELECT id, body FROM notes WHERE id = :id", {"id": 1}).fetch()
        row["body"]            # raw value
        row.get_int("id")      # 1, or TypeError if not an int
        row["missing"]         # ColumnError
        row.to(Note)           # Note(id=1, body=...)
    """

    __slots__ = ("_values",)

    def __init__(self, columns: Sequence[str], values: Sequence[Scalar]) -> None:
        self._values: dict[str, Scalar] = dict(zip(columns, values, strict=True))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Scalar]) -> Row:
        return cls(tuple(data), tuple(data.values()))

    # -- Mapping protocol --

    def __getitem__(self, column: str) -> Scalar:
        try:
            return self._values[column]
        except KeyError:
            raise ColumnError(column, self.columns) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Row({self._values!r})"

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(self._values)

    # -- Typed accessors --

    def get_str(self, column: str) -> str:
        return self._typed(column, str)

    def get_int(self, column: str) -> int:
        value = self[column]
        if isinstance(value, bool) or not isinstance(value, int):
            raise _wrong_type(column, "int", value)
        return value

    def get_float(self, column: str) -> float:
        value = self[column]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _wrong_type(column, "float", value)
        return float(value)

    def get_bool(self, column: str) -> bool:
        """Read a boolean; SQLite stores these as ``0``/``1``."""
        value = self[column]
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise _wrong_type(column, "bool", value)

    def is_null(self, column: str) -> bool:
        return self[column] is None

    def _typed(self, column: str, kind: type) -> Any:
        value = self[column]
        if not isinstance(value, kind):
            raise _wrong_type(column, kind.__name__, value)
        return value

    # -- Conversion --

    def to[T](self, cls: type[T]) -> T:
        """Map this row onto a dataclass."""
        return map_row(cls, self)


def _wrong_type(column: str, expected: str, value: Any) -> TypeError:
    return TypeError(f"Column {column!r} is {type(value).__name__}, expected {expected}")
