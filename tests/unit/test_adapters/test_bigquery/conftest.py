from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from google.cloud import bigquery
from google.cloud.bigquery import Row, SchemaField


class FakeRowIterator:
    """Stands in for ``google.cloud.bigquery.table.RowIterator``."""

    def __init__(self, schema: "list[SchemaField]", rows: "list[tuple[Any, ...]]") -> None:
        self.schema = schema
        field_to_index = {field.name: index for index, field in enumerate(schema)}
        self._rows = [Row(values, field_to_index) for values in rows]

    def __iter__(self) -> Any:
        return iter(self._rows)


def make_result(columns: "dict[str, str]", rows: "list[tuple[Any, ...]]") -> FakeRowIterator:
    return FakeRowIterator([SchemaField(name, field_type) for name, field_type in columns.items()], rows)


@pytest.fixture
def mock_client_class() -> Generator[MagicMock, None, None]:
    """Patch ``bigquery.Client``; the client finds the ``test_dataset`` dataset."""
    with patch("sqlbq.adapters.bigquery.config.bigquery.Client") as client_class:
        client = client_class.return_value
        client.project = "test-project"
        client.get_dataset.return_value = bigquery.Dataset("test-project.test_dataset")
        client.query.return_value.result.return_value = make_result({}, [])
        yield client_class


@pytest.fixture
def mock_client(mock_client_class: MagicMock) -> MagicMock:
    return mock_client_class.return_value


@pytest.fixture
def bigquery_db(mock_client: MagicMock) -> Any:
    from sqlbq.adapters.bigquery import BigQueryDatabase

    return BigQueryDatabase(adapter="bigquery", project="test-project", dataset="test_dataset")


@pytest.fixture(name="make_result")
def make_result_fixture() -> Any:
    return make_result
