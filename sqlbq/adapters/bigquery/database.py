"""BigQuery database: statement execution, transaction emulation and dataset management.

BigQuery only runs multi-statement transactions inside a script, while callers
issue BEGIN, the body and COMMIT one statement at a time. Statements between
BEGIN and COMMIT are therefore buffered and sent as one script on COMMIT; no
rows are returned for statements issued while the buffer is open.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional

from google.api_core.exceptions import BadRequest, NotFound

from sqlbq.adapters.bigquery.config import BigQueryConfig, BigQueryConnection
from sqlbq.adapters.bigquery.core import StatementBuffer, is_bare_update, starts_with_keyword, strip_defaults
from sqlbq.adapters.bigquery.dataset import BigQueryDataset
from sqlbq.database import Database
from sqlbq.sql import Identifier, Raw

if TYPE_CHECKING:
    from google.cloud import bigquery

    from sqlbq.dataset import Dataset
    from sqlbq.sql import Column

__all__ = ("BigQueryDatabase",)


class BigQueryDatabase(Database, scheme="bigquery"):
    """Database object for Google BigQuery.

    Options are those of :class:`~sqlbq.adapters.bigquery.config.BigQueryConfig`:
    ``project``, ``dataset`` (or ``database``), ``location`` and any
    ``google.cloud.bigquery.Client`` argument.
    """

    dataset_class: "ClassVar[type[Dataset]]" = BigQueryDataset
    supports_create_table_if_not_exists: "ClassVar[bool]" = True

    def __init__(self, **options: Any) -> None:
        super().__init__(**options)
        self.config = BigQueryConfig(connection_config=self.opts, logger=self.logger)
        self._buffer = StatementBuffer()

    def connect(self) -> BigQueryConnection:
        return self.config.create_connection()

    def disconnect_connection(self, connection: BigQueryConnection) -> None:
        connection.close()

    @property
    def client(self) -> "bigquery.Client":
        with self.synchronize() as connection:
            return connection.client

    @property
    def is_buffering(self) -> bool:
        return self._buffer.is_buffering

    def database_error_classes(self) -> "tuple[type[BaseException], ...]":
        return (BadRequest, ValueError)

    def execute(self, sql: str, consumer: "Optional[Callable[[Any], Any]]" = None) -> Any:
        """Rewrite ``sql`` for BigQuery and run it, buffering transaction blocks.

        Args:
            sql: Statement to run.
            consumer: Called with the query's row iterator; its return value is returned.

        Raises:
            DatabaseError: BigQuery rejected the statement as invalid.

        Returns:
            The consumer's return value or the row iterator, or an empty list while
            a transaction is being buffered.
        """
        self.log_query(sql)

        rewritten, removed = strip_defaults(sql)
        if removed:
            self._warn_default_removal(sql)
        sql = rewritten

        if is_bare_update(sql):
            self.logger.warning(
                "Appended 'WHERE 1 = 1' to query since BigQuery requires UPDATE statements to include a WHERE clause"
            )
            sql += " WHERE 1 = 1"

        if starts_with_keyword(sql, "BEGIN"):
            self._warn_transaction()
            self._buffer.begin()

        if self._buffer.is_buffering:
            if starts_with_keyword(sql, "ROLLBACK"):
                self.logger.warning("Discarding %d buffered statement(s) on ROLLBACK", len(self._buffer))
                self._buffer.reset()
                return []
            self._buffer.append(sql)
            if not starts_with_keyword(sql, "COMMIT"):
                return []
            sql = self._buffer.script()
            self.logger.warning("Will now execute entire buffered transaction:\n%s", sql)

        try:
            with self.synchronize() as connection:
                try:
                    result = self.log_connection_yield(sql, lambda: connection.query(sql))
                    return consumer(result) if consumer is not None else result
                except self.database_error_classes() as e:
                    self.raise_error(e)
        finally:
            self._buffer.reset()

    @contextmanager
    def _management_client(self) -> "Generator[bigquery.Client, None, None]":
        # an open connection is reused; otherwise no dataset is resolved (or created)
        if self._connection is not None:
            yield self._connection.client
            return
        client = self.config.create_client()
        try:
            yield client
        finally:
            client.close()

    def drop_datasets(self, *dataset_names: str) -> None:
        """Delete datasets and every table in them; missing datasets are skipped.

        Does not require the configured dataset: without an open connection a
        short-lived client is used.
        """
        with self._management_client() as client:
            for name in dataset_names:
                self.logger.info("Dropping dataset %r", name)
                try:
                    dataset = client.get_dataset(name)
                except NotFound:
                    continue
                for table in client.list_tables(dataset):
                    client.delete_table(table, not_found_ok=True)
                client.delete_dataset(dataset, not_found_ok=True)

    drop_dataset = drop_datasets

    def tables(self) -> "list[str]":
        with self.synchronize() as connection:
            return [table.table_id for table in connection.client.list_tables(connection.dataset)]

    def table_exists(self, name: str) -> bool:
        with self.synchronize() as connection:
            try:
                connection.client.get_table(connection.dataset.reference.table(name))
            except NotFound:
                return False
            return True

    def type_literal_generic_string(self, column: "Column") -> str:
        if column.size:
            return f"string({column.size})"
        return "string"

    def type_literal_generic_float(self, column: "Column") -> str:
        return "float64"

    def type_literal_generic_bytes(self, column: "Column") -> str:
        return "bytes"

    def create_table_suffix_sql(self, name: str, options: "dict[str, Any]") -> str:
        partition_by = options.get("partition_by")
        if not partition_by:
            return ""
        if isinstance(partition_by, (str, Identifier, Raw)):
            partition_by = [partition_by]
        columns = tuple(c if isinstance(c, (Identifier, Raw)) else Identifier(c) for c in partition_by)
        return f" PARTITION BY {self.literal(columns)}"

    def log_query(self, sql: str) -> None:
        self.logger.debug("%s", sql)

    def _warn_default_removal(self, sql: str) -> None:
        self.logger.warning("Default removed from below query as it's not supported on BigQuery:\n%s", sql)

    def _warn_transaction(self) -> None:
        self.logger.warning(
            "Transaction detected. This is only supported on BigQuery in a script or session. "
            "Commencing buffering to run the whole transaction at once as a script upon commit. "
            "Note that no result data is returned while the transaction is open."
        )
