"""Generic dataset: an immutable query object bound to a database.

Datasets build SQL strings and render Python values as SQL literals. Adapters
subclass ``Dataset`` to implement ``fetch_rows`` and to override the literal and
identifier hooks where their backend differs from generic SQL.
"""

import datetime
from collections.abc import Iterator, Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlbq.exceptions import SQLBuilderError
from sqlbq.sql import Identifier, Raw

if TYPE_CHECKING:
    from sqlbq.database import Database
    from sqlbq.typing import Row

__all__ = ("Dataset",)

ColumnRef = Union[str, Identifier, Raw]


class Dataset:
    """Query object for a single table or a raw SQL string.

    Filtering methods return new datasets; action methods (``all``, ``insert``,
    ``update``, ...) run SQL through the owning database.
    """

    __slots__ = ("_opts", "columns", "db")

    def __init__(self, db: "Database", table: Optional[str] = None, *, sql: Optional[str] = None) -> None:
        self.db = db
        self.columns: "Optional[tuple[str, ...]]" = None
        self._opts: "dict[str, Any]" = {
            "table": table,
            "sql": sql,
            "select": (),
            "where": (),
            "order": (),
            "limit": None,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.select_sql()!r}>"

    def clone(self, **changes: Any) -> "Dataset":
        """Return a copy of this dataset with the given options replaced."""
        new = type(self).__new__(type(self))
        new.db = self.db
        new.columns = None
        new._opts = {**self._opts, **changes}
        return new

    @property
    def table(self) -> Optional[str]:
        return self._opts["table"]

    # Query refinement

    def select(self, *columns: ColumnRef) -> "Dataset":
        return self.clone(select=columns)

    def where(self, **conditions: Any) -> "Dataset":
        filters = tuple((column, value, False) for column, value in conditions.items())
        return self.clone(where=self._opts["where"] + filters)

    def exclude(self, **conditions: Any) -> "Dataset":
        filters = tuple((column, value, True) for column, value in conditions.items())
        return self.clone(where=self._opts["where"] + filters)

    def order_by(self, *columns: ColumnRef) -> "Dataset":
        return self.clone(order=columns)

    def limit(self, count: int) -> "Dataset":
        return self.clone(limit=count)

    # SQL generation

    def select_sql(self) -> str:
        if self._opts["sql"] is not None:
            return self._opts["sql"]
        columns = ", ".join(self._column_sql(c) for c in self._opts["select"]) or "*"
        sql = f"SELECT {columns} FROM {self._require_table_sql()}"
        sql += self._where_sql()
        if self._opts["order"]:
            sql += " ORDER BY " + ", ".join(self._column_sql(c) for c in self._opts["order"])
        if self._opts["limit"] is not None:
            sql += f" LIMIT {self.literal(self._opts['limit'])}"
        return sql

    def insert_sql(self, values: "Mapping[str, Any]") -> str:
        if not values:
            msg = "INSERT requires at least one column value"
            raise SQLBuilderError(msg)
        columns = ", ".join(self.quote_identifier(c) for c in values)
        literals = ", ".join(self.literal(v) for v in values.values())
        return f"INSERT INTO {self._require_table_sql()} ({columns}) VALUES ({literals})"

    def update_sql(self, values: "Mapping[str, Any]") -> str:
        if not values:
            msg = "UPDATE requires at least one column value"
            raise SQLBuilderError(msg)
        assignments = ", ".join(f"{self.quote_identifier(c)} = {self.literal(v)}" for c, v in values.items())
        return f"UPDATE {self._require_table_sql()} SET {assignments}{self._where_sql()}"

    def delete_sql(self) -> str:
        return f"DELETE FROM {self._require_table_sql()}{self._where_sql()}"

    def truncate_sql(self) -> str:
        if self._opts["where"]:
            msg = "Cannot truncate a filtered dataset"
            raise SQLBuilderError(msg)
        return f"TRUNCATE TABLE {self._require_table_sql()}"

    # Actions

    def fetch_rows(self, sql: str) -> "Iterator[Row]":
        """Run ``sql`` and yield each row as a dict, setting ``columns``."""
        raise NotImplementedError

    def each(self) -> "Iterator[Row]":
        yield from self.fetch_rows(self.select_sql())

    def all(self) -> "list[Row]":
        return list(self.each())

    def first(self) -> "Optional[Row]":
        rows = self.limit(1).all()
        return rows[0] if rows else None

    def count(self) -> int:
        row = self.select(Raw(f"count(*) AS {self.quote_identifier('count')}")).clone(order=(), limit=None).first()
        if not row:
            return 0
        return int(next(iter(row.values())))

    def insert(self, values: "Optional[Mapping[str, Any]]" = None, /, **kwargs: Any) -> None:
        self.db.execute(self.insert_sql({**(values or {}), **kwargs}))

    def update(self, values: "Optional[Mapping[str, Any]]" = None, /, **kwargs: Any) -> None:
        self.db.execute(self.update_sql({**(values or {}), **kwargs}))

    def delete(self) -> None:
        self.db.execute(self.delete_sql())

    def truncate(self) -> None:
        self.db.execute(self.truncate_sql())

    # Literalisation

    def literal(self, value: Any) -> str:
        """Render a Python value as a SQL literal."""
        if value is None:
            return self.literal_none()
        if isinstance(value, Raw):
            return value.sql
        if isinstance(value, Identifier):
            return self.quote_identifier(value.name)
        if isinstance(value, bool):
            return self.literal_true() if value else self.literal_false()
        if isinstance(value, (int, Decimal)):
            return str(value)
        if isinstance(value, float):
            return self.literal_float(value)
        if isinstance(value, str):
            return self.literal_string(value)
        if isinstance(value, (bytes, bytearray)):
            return self.literal_bytes(bytes(value))
        # datetime is a date subclass
        if isinstance(value, datetime.datetime):
            return self.literal_datetime(value)
        if isinstance(value, datetime.date):
            return self.literal_date(value)
        if isinstance(value, datetime.time):
            return self.literal_time(value)
        if isinstance(value, (list, tuple)):
            return self.literal_sequence(value)
        msg = f"Cannot express {value!r} of type {type(value).__name__} as a SQL literal"
        raise SQLBuilderError(msg)

    def literal_none(self) -> str:
        return "NULL"

    def literal_true(self) -> str:
        return "TRUE"

    def literal_false(self) -> str:
        return "FALSE"

    def literal_float(self, value: float) -> str:
        return repr(value)

    def literal_string(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def literal_bytes(self, value: bytes) -> str:
        return f"X'{value.hex()}'"

    def literal_date(self, value: datetime.date) -> str:
        return f"'{value.isoformat()}'"

    def literal_datetime(self, value: datetime.datetime) -> str:
        return f"'{value.strftime('%Y-%m-%d %H:%M:%S.%f%z')}'"

    def literal_time(self, value: datetime.time) -> str:
        return f"'{value.isoformat()}'"

    def literal_sequence(self, value: "Union[list[Any], tuple[Any, ...]]") -> str:
        return "(" + ", ".join(self.literal(v) for v in value) + ")"

    def input_identifier(self, name: str) -> str:
        """Transform an identifier before quoting; generic SQL folds to upper case."""
        return name.upper()

    def quoted_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def quote_identifier(self, name: str) -> str:
        return self.quoted_identifier(self.input_identifier(name))

    def quote_schema_table(self, name: str) -> str:
        """Quote a possibly dataset-qualified table name such as ``dataset.table``."""
        return ".".join(self.quote_identifier(part) for part in name.split("."))

    # Helpers

    def _require_table_sql(self) -> str:
        table = self._opts["table"]
        if table is None:
            msg = "Dataset has no table"
            raise SQLBuilderError(msg)
        return self.quote_schema_table(table)

    def _column_sql(self, column: ColumnRef) -> str:
        if isinstance(column, Raw):
            return column.sql
        return self.quote_identifier(str(column))

    def _where_sql(self) -> str:
        if not self._opts["where"]:
            return ""
        return " WHERE " + " AND ".join(self._condition_sql(*f) for f in self._opts["where"])

    def _condition_sql(self, column: str, value: Any, negate: bool) -> str:
        quoted = self.quote_identifier(column)
        if value is None:
            condition = f"{quoted} IS NULL"
        elif isinstance(value, (list, tuple)):
            # an empty IN list is not valid SQL
            condition = f"{quoted} IN {self.literal_sequence(value)}" if value else "1 = 0"
        else:
            condition = f"{quoted} = {self.literal(value)}"
        return f"NOT ({condition})" if negate else f"({condition})"
