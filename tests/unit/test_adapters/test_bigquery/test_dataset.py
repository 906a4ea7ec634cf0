"""Unit tests for BigQuery literal rendering and row reading."""

import datetime
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from sqlbq.adapters.bigquery import BigQueryDatabase, BigQueryDataset
from sqlbq.sql import Identifier


@pytest.fixture
def dataset() -> BigQueryDataset:
    return BigQueryDataset(MagicMock(), "people")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, "true"),
        (False, "false"),
        (None, "NULL"),
        (27, "27"),
        (1.870672173, "1.870672173"),
        (float("nan"), "CAST('nan' AS FLOAT64)"),
        (float("-inf"), "CAST('-inf' AS FLOAT64)"),
        ("Reginald", "'Reginald'"),
        ("it's a\\b\nc", "'it\\'s a\\\\b\\nc'"),
        (b"\x00\xff", "b'\\x00\\xff'"),
        (datetime.date(1994, 1, 31), "'1994-01-31'"),
        (
            datetime.datetime(2016, 8, 21, 16, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=8))),
            "'2016-08-21T16:00:00+08:00'",
        ),
        (Identifier("date_of_birth"), "`date_of_birth`"),
    ],
)
def test_literal(dataset: BigQueryDataset, value: object, expected: str) -> None:
    """Python values render as BigQuery literals."""
    assert dataset.literal(value) == expected


def test_naive_datetime_literal_is_local_time(dataset: BigQueryDataset) -> None:
    """Naive datetimes are taken as local time and rendered with their offset."""
    value = datetime.datetime(2016, 8, 21, 16, 0)
    assert dataset.literal(value) == f"'{value.astimezone().isoformat()}'"


def test_identifiers_use_backticks(dataset: BigQueryDataset) -> None:
    """Identifiers are backtick quoted and keep their case."""
    assert dataset.quote_identifier("lastSkiedAt") == "`lastSkiedAt`"
    assert dataset.quote_identifier("we`ird") == "`we\\`ird`"
    assert dataset.quote_schema_table("other_dataset.people") == "`other_dataset`.`people`"


def test_select_sql(dataset: BigQueryDataset) -> None:
    sql = dataset.where(name="Reginald", is_developer=True).select_sql()
    assert sql == "SELECT * FROM `people` WHERE (`name` = 'Reginald') AND (`is_developer` = true)"


def test_fetch_rows_sets_columns_and_converts_timestamps(
    dataset: BigQueryDataset, make_result: "Callable[..., Any]"
) -> None:
    """Columns come from the result schema; UTC timestamps are returned in local time."""
    last_skied_at = datetime.datetime(2016, 8, 21, 8, 0, tzinfo=datetime.timezone.utc)
    result = make_result(
        {"name": "STRING", "last_skied_at": "TIMESTAMP", "date_of_birth": "DATE"},
        [("Reginald", last_skied_at, datetime.date(1994, 1, 31))],
    )
    dataset.db.execute.side_effect = lambda sql, consumer: consumer(result)

    rows = dataset.all()

    dataset.db.execute.assert_called_once()
    assert dataset.db.execute.call_args.args[0] == "SELECT * FROM `people`"
    assert dataset.columns == ("name", "last_skied_at", "date_of_birth")
    assert rows == [{"name": "Reginald", "last_skied_at": last_skied_at, "date_of_birth": datetime.date(1994, 1, 31)}]
    assert rows[0]["last_skied_at"].utcoffset() == last_skied_at.astimezone().utcoffset()


def test_fetch_rows_empty_result(dataset: BigQueryDataset, make_result: "Callable[..., Any]") -> None:
    """An empty result still reports its columns."""
    result = make_result({"version": "INTEGER"}, [])
    dataset.db.execute.side_effect = lambda sql, consumer: consumer(result)
    assert dataset.all() == []
    assert dataset.columns == ("version",)


def test_read_inside_transaction_returns_no_rows(bigquery_db: BigQueryDatabase, mock_client: MagicMock) -> None:
    """A read while the transaction is open is buffered: no rows and no columns until COMMIT."""
    with bigquery_db.transaction():
        people = bigquery_db["people"]
        assert people.all() == []
        assert people.columns is None
        mock_client.query.assert_not_called()

    queries = [c.args[0] for c in mock_client.query.call_args_list]
    assert queries == ["BEGIN;\nSELECT * FROM `people`;\nCOMMIT;"]
