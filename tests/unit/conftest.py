from collections.abc import Iterator
from typing import Any, Callable, Optional

import pytest

from sqlbq.database import Database
from sqlbq.dataset import Dataset
from sqlbq.typing import Row


class RecordingDataset(Dataset):
    __slots__ = ()

    def fetch_rows(self, sql: str) -> "Iterator[Row]":
        rows = self.db.execute(sql)
        self.columns = tuple(rows[0]) if rows else ()
        yield from rows


class RecordingDatabase(Database):
    """In-memory database that records SQL and answers SELECTs from ``responder``."""

    dataset_class = RecordingDataset

    def __init__(self, **options: Any) -> None:
        super().__init__(**options)
        self.executed: "list[str]" = []
        self.connect_calls = 0
        self.closed: "list[Any]" = []
        self.responder: "Callable[[str], list[Row]]" = lambda sql: []

    def connect(self) -> Any:
        self.connect_calls += 1
        return object()

    def disconnect_connection(self, connection: Any) -> None:
        self.closed.append(connection)

    def execute(self, sql: str, consumer: "Optional[Callable[[Any], Any]]" = None) -> Any:
        with self.synchronize():
            self.executed.append(sql)
            result = self.log_connection_yield(sql, lambda: self.responder(sql))
            return consumer(result) if consumer is not None else result


@pytest.fixture
def recording_db() -> RecordingDatabase:
    return RecordingDatabase()
