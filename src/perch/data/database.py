"""Typed async database access.

SQLite via stdlib ``sqlite3`` + ``anyio``. SQL with ``:name``
placeholders in, ``Row`` objects (or frozen dataclasses) out.

Connection URL format::

    sqlite:///path/to/db.sqlite    # SQLite file
    sqlite:///:memory:             # In-memory SQLite

Lifecycle:
    The connection is opened by ``connect()`` (or lazily by the first
    query) and closed by ``disconnect()``. ``async with Database(...)``
    guarantees the close on every exit path, including a failed query.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

import anyio

from perch.data._bindings import bind
from perch.data.errors import DataError, QueryError
from perch.data.query import Query
from perch.data.row import Row

logger = logging.getLogger("perch.data")

# Database -> connection for every transaction() open in this context.
# Statements on a database with an entry reuse that connection without
# re-taking its lock. The mapping is replaced, never mutated.
_transactions: ContextVar[Mapping[Database, Any]] = ContextVar("perch_db_transactions")


def _open_transactions() -> Mapping[Database, Any]:
    return _transactions.get({})


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Database connection configuration.

    Parsed from a URL string, a settings mapping, or constructed directly.
    """

    url: str
    echo: bool = False
    timeout: float = 5.0

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> DatabaseConfig:
        """Build a config from a settings mapping.

        Accepts either ``{"url": ...}`` or ``{"driver": ..., "database": ...}``.
        Connection keys such as ``host``, ``port``, ``user`` and
        ``password`` are accepted; the SQLite driver has no use for them.
        """
        if settings.get("url"):
            url = str(settings["url"])
        else:
            database = settings.get("database") or settings.get("dbname")
            if not database:
                msg = "Database settings need a 'url' or a 'database' entry."
                raise DataError(msg)
            url = f"{settings.get('driver', 'sqlite')}:///{database}"
        return cls(
            url=url,
            echo=bool(settings.get("echo", False)),
            timeout=float(settings.get("timeout", 5.0)),
        )


class Database:
    """Async access to one SQLite database.

    Usage::

        db = Database("sqlite:///app.db")

        async with db:
            notes = await db.query(
                "SELECT * FROM notes WHERE user_id = :user", {"user": 1}
            ).get()

            note = await db.query(
                "SELECT * FROM notes WHERE id = :id", {"id": 42}
            ).find_or_fail()

            await db.execute(
                "INSERT INTO notes (body, user_id) VALUES (:body, :user)",
                {"body": "hello", "user": 1},
            )

            async with db.transaction():
                await db.execute("DELETE FROM notes WHERE user_id = :user", {"user": 1})
                await db.execute("DELETE FROM users WHERE id = :user", {"user": 1})
    """

    __slots__ = ("_async_lock", "_config", "_conn", "_initialized", "_lock")

    def __init__(self, url: str, /, *, echo: bool = False, timeout: float = 5.0) -> None:
        self._config = DatabaseConfig(url=url, echo=echo, timeout=timeout)
        _detect_driver(url)
        self._lock = threading.Lock()
        self._async_lock: anyio.Lock | None = None  # Created lazily on first use
        self._conn: Any = None
        self._initialized = False

    @classmethod
    def from_config(cls, config: DatabaseConfig | Mapping[str, Any] | str) -> Database:
        if isinstance(config, str):
            return cls(config)
        if not isinstance(config, DatabaseConfig):
            config = DatabaseConfig.from_mapping(config)
        return cls(config.url, echo=config.echo, timeout=config.timeout)

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._initialized

    # -- Connection management --

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[Any]:
        """Hold the connection for one statement.

        Inside a ``transaction()`` block the transaction's connection is
        reused (the lock is already held). Otherwise statements are
        serialized through an async lock.
        """
        if not self._initialized:
            await self.connect()

        conn = _open_transactions().get(self)
        if conn is not None:
            yield conn
            return

        async with self._get_async_lock():
            yield self._conn

    def _get_async_lock(self) -> anyio.Lock:
        # Can't create in __init__ before an event loop exists.
        if self._async_lock is None:
            self._async_lock = anyio.Lock()
        return self._async_lock

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Execute multiple statements atomically.

        Commits on clean exit, rolls back on exception. Nested
        ``transaction()`` blocks on the same database join the outer one;
        other databases keep their own connection and transaction.
        """
        if not self._initialized:
            await self.connect()

        if self in _open_transactions():
            yield
            return

        async with self._get_async_lock():
            conn = self._conn
            token = _transactions.set({**_open_transactions(), self: conn})
            try:
                conn.autocommit = False
                yield
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                conn.autocommit = True
                _transactions.reset(token)

    # -- Query logging --

    def _log_query(self, sql: str, params: Mapping[str, Any], elapsed: float) -> None:
        level = logging.INFO if self._config.echo else logging.DEBUG
        if not logger.isEnabledFor(level):
            return
        param_str = f"  params={dict(params)!r}" if params else ""
        logger.log(level, "%6.1fms  %s%s", elapsed * 1000, sql, param_str)

    # -- Public query API --

    def query(self, sql: str, bindings: Mapping[str, Any] | None = None, /) -> Query:
        """Prepare *sql* with named *bindings*; run it via the returned ``Query``."""
        return Query(self, sql, dict(bindings or {}))

    async def execute(self, sql: str, bindings: Mapping[str, Any] | None = None, /) -> int:
        """Execute a statement (INSERT/UPDATE/DELETE) and return rows affected."""
        cursor = await self._run(sql, bind(sql, bindings))
        return cursor.rowcount

    async def execute_insert(self, sql: str, bindings: Mapping[str, Any] | None = None, /) -> int:
        """Execute an INSERT and return the new row's id."""
        cursor = await self._run(sql, bind(sql, bindings))
        if cursor.lastrowid is None:
            msg = f"Statement produced no row id: {sql!r}"
            raise QueryError(msg)
        return cursor.lastrowid

    async def execute_script(self, sql: str, /) -> None:
        """Execute multiple SQL statements at once (schema setup, seeds)."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                await conn.executescript(sql)
            except Exception as exc:
                raise QueryError(str(exc)) from exc
            finally:
                self._log_query(sql, {}, time.perf_counter() - t0)

    async def _run(self, sql: str, params: dict[str, Any]) -> Any:
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                return await conn.execute(sql, params)
            except Exception as exc:
                raise QueryError(str(exc)) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    async def _select(
        self,
        sql: str,
        params: dict[str, Any],
        *,
        first_only: bool = False,
    ) -> list[Row]:
        """Run a SELECT and hydrate rows. Used by ``Query``."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
                columns = cursor.columns
                try:
                    if first_only:
                        record = await cursor.fetchone()
                        records = [] if record is None else [record]
                    else:
                        records = await cursor.fetchall()
                finally:
                    await cursor.close()
                return [Row(columns, record) for record in records]
            except Exception as exc:
                raise QueryError(str(exc)) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    # -- Lifecycle --

    async def connect(self) -> None:
        """Open the connection.

        Called automatically on first query. Call explicitly to fail fast
        at startup.
        """
        if self._initialized:
            return
        from perch.data._sqlite import connect as sqlite_connect

        conn = await sqlite_connect(
            _parse_sqlite_path(self._config.url),
            timeout=self._config.timeout,
        )
        with self._lock:
            lost_race = self._initialized
            if not lost_race:
                self._conn = conn
                self._initialized = True
        if lost_race:
            await conn.close()
            return
        await conn.execute("PRAGMA foreign_keys=ON")
        logger.debug("Connected to %s", self._config.url)

    async def disconnect(self) -> None:
        """Close the connection."""
        with self._lock:
            if not self._initialized:
                return
            conn = self._conn
            self._conn = None
            self._initialized = False
        await conn.close()
        logger.debug("Disconnected from %s", self._config.url)

    # -- Context manager --

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()


def _detect_driver(url: str) -> str:
    """Detect the database driver from the URL scheme."""
    if url.startswith("sqlite"):
        return "sqlite"
    msg = f"Unsupported database URL scheme: {url!r}. Supported: sqlite:///path"
    raise DataError(msg)


def _parse_sqlite_path(url: str) -> str:
    """Extract the file path from a sqlite:// URL."""
    # sqlite:///path/to/db  ->  path/to/db
    # sqlite:///:memory:    ->  :memory:
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            return url[len(prefix) :]
    msg = f"Invalid SQLite URL: {url!r}"
    raise DataError(msg)
