"""Data layer error hierarchy."""

from perch.errors import PerchError


class DataError(PerchError):
    """Base for all perch.data errors."""


class QueryError(DataError):
    """Raised when a SQL statement cannot be bound or fails to execute."""


class NotFoundError(DataError):
    """Raised when a query that must produce a row produced none."""


class ColumnError(DataError, KeyError):
    """Raised when a row has no column with the requested name."""

    def __init__(self, column: str, columns: tuple[str, ...] = ()) -> None:
        self.column = column
        self.columns = columns
        super().__init__(column)

    def __str__(self) -> str:
        available = ", ".join(self.columns) or "(none)"
        return f"Row has no column {self.column!r}. Available: {available}"
