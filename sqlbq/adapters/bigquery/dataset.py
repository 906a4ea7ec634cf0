import datetime
import math
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from sqlbq.dataset import Dataset

if TYPE_CHECKING:
    from google.cloud.bigquery.table import RowIterator

    from sqlbq.typing import Row

__all__ = ("BigQueryDataset",)

_STRING_ESCAPES = str.maketrans({"\\": "\\\\", "'": "\\'", "\n": "\\n", "\r": "\\r"})


def _to_local(value: Any) -> Any:
    if isinstance(value, datetime.datetime) and value.tzinfo is not None:
        return value.astimezone()
    return value


class BigQueryDataset(Dataset):
    """Dataset rendering BigQuery literals and reading rows from query results."""

    __slots__ = ()

    def fetch_rows(self, sql: str) -> "Iterator[Row]":
        yield from self.db.execute(sql, consumer=self._consume_result)

    def _consume_result(self, result: "RowIterator") -> "list[Row]":
        self.columns = tuple(field.name for field in result.schema)
        return [{key: _to_local(value) for key, value in row.items()} for row in result]

    def literal_true(self) -> str:
        return "true"

    def literal_false(self) -> str:
        return "false"

    def literal_float(self, value: float) -> str:
        if math.isfinite(value):
            return repr(value)
        return f"CAST('{value}' AS FLOAT64)"

    def literal_string(self, value: str) -> str:
        return "'" + value.translate(_STRING_ESCAPES) + "'"

    def literal_bytes(self, value: bytes) -> str:
        return "b'" + "".join(f"\\x{byte:02x}" for byte in value) + "'"

    def literal_datetime(self, value: datetime.datetime) -> str:
        # naive values are local time
        if value.tzinfo is None:
            value = value.astimezone()
        return f"'{value.isoformat()}'"

    def quoted_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "\\`") + "`"

    def input_identifier(self, name: str) -> str:
        return str(name)
