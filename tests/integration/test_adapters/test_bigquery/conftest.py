"""BigQuery integration test fixtures backed by the BigQuery emulator."""

from collections.abc import Generator
from typing import TYPE_CHECKING, Any

import pytest
from google.api_core.client_options import ClientOptions
from google.auth.credentials import AnonymousCredentials

import sqlbq
from sqlbq.adapters.bigquery import BigQueryDatabase

if TYPE_CHECKING:
    from pytest_databases.docker.bigquery import BigQueryService


@pytest.fixture
def connection_options(bigquery_service: "BigQueryService") -> "dict[str, Any]":
    """Options pointing sqlbq at the emulator."""
    return {
        "project": bigquery_service.project,
        "dataset": bigquery_service.dataset,
        "client_options": ClientOptions(api_endpoint=f"http://{bigquery_service.host}:{bigquery_service.port}"),
        "credentials": AnonymousCredentials(),  # type: ignore[no-untyped-call]
    }


@pytest.fixture
def bigquery_db(connection_options: "dict[str, Any]") -> Generator[BigQueryDatabase, Any, None]:
    """Create a BigQuery database bound to the emulator dataset."""
    db = sqlbq.connect("bigquery", **connection_options)
    assert isinstance(db, BigQueryDatabase)
    try:
        yield db
    finally:
        db.disconnect()
