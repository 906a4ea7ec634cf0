"""Generic database object and adapter registry.

``Database`` owns the connection lifecycle, statement logging, error
conversion and schema DDL generation. Adapters subclass it (passing
``scheme=...`` to register themselves) and implement ``connect`` and
``execute``, overriding hook methods where their backend needs different SQL.
"""

import datetime
import time
from abc import ABC, abstractmethod
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, ClassVar, NoReturn, Optional, TypeVar

from sqlbq.dataset import Dataset
from sqlbq.exceptions import AdapterNotFoundError, DatabaseError, MissingDependencyError, SQLBuilderError
from sqlbq.sql import Column
from sqlbq.utils.logging import get_logger
from sqlbq.utils.module_loader import import_string

if TYPE_CHECKING:
    import logging

__all__ = ("ADAPTERS", "Database", "connect", "get_adapter_class", "register_adapter")

ResultT = TypeVar("ResultT")

ADAPTERS: "dict[str, type[Database]]" = {}

# bool must be looked up before int
GENERIC_TYPE_NAMES: "dict[type, str]" = {
    bool: "boolean",
    int: "integer",
    float: "float",
    Decimal: "numeric",
    str: "string",
    bytes: "bytes",
    datetime.datetime: "datetime",
    datetime.date: "date",
    datetime.time: "time",
}


def register_adapter(scheme: str, database_class: "type[Database]") -> None:
    """Register a database class for an adapter scheme."""
    ADAPTERS[scheme] = database_class


def get_adapter_class(scheme: str) -> "type[Database]":
    """Return the database class for ``scheme``, importing ``sqlbq.adapters.<scheme>`` on demand.

    Raises:
        AdapterNotFoundError: No adapter could be found for the scheme.
        MissingDependencyError: The adapter needs a package that is not installed.
    """
    if scheme not in ADAPTERS:
        try:
            import_string(f"sqlbq.adapters.{scheme}")
        except MissingDependencyError:
            raise
        except ImportError as e:
            raise AdapterNotFoundError(scheme) from e
    try:
        return ADAPTERS[scheme]
    except KeyError as e:
        raise AdapterNotFoundError(scheme) from e


def connect(adapter: str, **options: Any) -> "Database":
    """Create a database for the given adapter.

    Unless ``test=False`` is passed the connection is established immediately,
    so configuration problems surface here rather than on the first query.

    Args:
        adapter: Adapter scheme, e.g. ``"bigquery"``.
        **options: Adapter connection options.

    Returns:
        The adapter's database object.
    """
    database_class = get_adapter_class(adapter)
    db = database_class(adapter=adapter, **options)
    if options.get("test", True):
        db.test_connection()
    return db


class Database(ABC):
    """Base class for adapter databases."""

    adapter_scheme: "ClassVar[Optional[str]]" = None
    dataset_class: "ClassVar[type[Dataset]]" = Dataset
    supports_create_table_if_not_exists: "ClassVar[bool]" = False

    def __init_subclass__(cls, scheme: Optional[str] = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if scheme is not None:
            cls.adapter_scheme = scheme
            register_adapter(scheme, cls)

    def __init__(self, **options: Any) -> None:
        self.opts: "dict[str, Any]" = dict(options)
        scheme = self.adapter_scheme or "database"
        self.logger: "logging.Logger" = options.get("logger") or get_logger(f"adapters.{scheme}")
        self._connection: Any = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} adapter={self.adapter_scheme!r}>"

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    # Connection lifecycle

    @abstractmethod
    def connect(self) -> Any:
        """Create and return a new backend connection."""

    def disconnect_connection(self, connection: Any) -> None:
        """Release a backend connection."""

    @contextmanager
    def synchronize(self) -> "Generator[Any, None, None]":
        """Yield the connection, creating it on first use."""
        if self._connection is None:
            self._connection = self.connect()
        yield self._connection

    def disconnect(self) -> None:
        if self._connection is not None:
            connection, self._connection = self._connection, None
            self.disconnect_connection(connection)

    def test_connection(self) -> bool:
        with self.synchronize():
            return True

    # Execution

    @abstractmethod
    def execute(self, sql: str, consumer: "Optional[Callable[[Any], Any]]" = None) -> Any:
        """Execute ``sql``.

        Args:
            sql: Statement to run.
            consumer: Called with the backend result; its return value is returned.

        Returns:
            The consumer's return value, or the backend result when no consumer is given.
        """

    def run(self, sql: str) -> None:
        self.execute(sql)

    def fetch(self, sql: str) -> Dataset:
        """Dataset for a raw SELECT statement."""
        return self.dataset_class(self, sql=sql)

    def dataset(self) -> Dataset:
        return self.dataset_class(self)

    def __getitem__(self, table: str) -> Dataset:
        return self.dataset_class(self, table)

    @contextmanager
    def transaction(self) -> "Generator[Database, None, None]":
        self.execute("BEGIN")
        try:
            yield self
        except Exception:
            self.execute("ROLLBACK")
            raise
        self.execute("COMMIT")

    def literal(self, value: Any) -> str:
        return self.dataset().literal(value)

    def quote_identifier(self, name: str) -> str:
        return self.dataset().quote_identifier(name)

    def database_error_classes(self) -> "tuple[type[BaseException], ...]":
        """Backend exception classes converted to ``DatabaseError`` by ``raise_error``."""
        return ()

    def raise_error(self, exc: BaseException) -> NoReturn:
        raise DatabaseError(str(exc) or type(exc).__name__) from exc

    def log_connection_yield(self, sql: str, func: "Callable[[], ResultT]") -> ResultT:
        """Run ``func`` on behalf of ``sql``, logging its duration or failure."""
        start = time.perf_counter()
        try:
            result = func()
        except Exception as e:
            self.logger.error("%s: %s: %s", type(e).__name__, e, sql)
            raise
        self.logger.info("(%.6fs) %s", time.perf_counter() - start, sql)
        return result

    # Schema

    def create_table(self, name: str, *columns: Column, if_not_exists: bool = False, **options: Any) -> None:
        """Create a table.

        Args:
            name: Table name.
            *columns: Column definitions.
            if_not_exists: Do nothing if the table already exists.
            **options: Adapter specific table options passed to ``create_table_suffix_sql``.
        """
        if if_not_exists and not self.supports_create_table_if_not_exists:
            if self.table_exists(name):
                return
            if_not_exists = False
        self.run(self.create_table_sql(name, columns, {**options, "if_not_exists": if_not_exists}))

    def create_table_sql(self, name: str, columns: "Iterable[Column]", options: "dict[str, Any]") -> str:
        column_sql = ", ".join(self.column_definition_sql(column) for column in columns)
        if not column_sql:
            msg = f"Table {name!r} needs at least one column"
            raise SQLBuilderError(msg)
        prefix = "CREATE TABLE IF NOT EXISTS" if options.get("if_not_exists") else "CREATE TABLE"
        table_sql = self.dataset().quote_schema_table(name)
        return f"{prefix} {table_sql} ({column_sql}){self.create_table_suffix_sql(name, options)}"

    def create_table_suffix_sql(self, name: str, options: "dict[str, Any]") -> str:
        """SQL appended after the column list of CREATE TABLE."""
        return ""

    def column_definition_sql(self, column: Column) -> str:
        sql = f"{self.quote_identifier(column.name)} {self.type_literal(column)}"
        if column.has_default:
            sql += f" DEFAULT {self.literal(column.default)}"
        if not column.null:
            sql += " NOT NULL"
        if column.primary_key:
            sql += " PRIMARY KEY"
        return sql

    def type_literal(self, column: Column) -> str:
        if isinstance(column.type, str):
            return column.type
        kind = GENERIC_TYPE_NAMES.get(column.type)
        if kind is None:
            msg = f"Unsupported column type {column.type!r} for column {column.name!r}"
            raise SQLBuilderError(msg)
        return str(getattr(self, f"type_literal_generic_{kind}")(column))

    def type_literal_generic_string(self, column: Column) -> str:
        if column.text:
            return "text"
        return f"varchar({column.size or 255})"

    def type_literal_generic_integer(self, column: Column) -> str:
        return "integer"

    def type_literal_generic_float(self, column: Column) -> str:
        return "double precision"

    def type_literal_generic_boolean(self, column: Column) -> str:
        return "boolean"

    def type_literal_generic_numeric(self, column: Column) -> str:
        if column.size is None:
            return "numeric"
        if isinstance(column.size, tuple):
            return f"numeric({column.size[0]}, {column.size[1]})"
        return f"numeric({column.size})"

    def type_literal_generic_datetime(self, column: Column) -> str:
        return "timestamp"

    def type_literal_generic_date(self, column: Column) -> str:
        return "date"

    def type_literal_generic_time(self, column: Column) -> str:
        return "time"

    def type_literal_generic_bytes(self, column: Column) -> str:
        return "blob"

    def table_exists(self, name: str) -> bool:
        try:
            self.fetch(f"SELECT NULL FROM {self.dataset().quote_schema_table(name)} LIMIT 1").all()
        except DatabaseError:
            return False
        return True

    def drop_table(self, name: str, if_exists: bool = False) -> None:
        prefix = "DROP TABLE IF EXISTS" if if_exists else "DROP TABLE"
        self.run(f"{prefix} {self.dataset().quote_schema_table(name)}")
