"""BigQuery connection configuration."""

from typing import TYPE_CHECKING, Any, Optional, TypedDict, Union

from google.api_core.exceptions import Conflict, NotFound
from google.cloud import bigquery
from google.cloud.bigquery import QueryJobConfig
from typing_extensions import NotRequired

from sqlbq.exceptions import ImproperConfigurationError
from sqlbq.utils.logging import get_logger

if TYPE_CHECKING:
    import logging

    from google.api_core.client_info import ClientInfo
    from google.api_core.client_options import ClientOptions
    from google.auth.credentials import Credentials
    from google.cloud.bigquery.table import RowIterator

__all__ = ("BigQueryConfig", "BigQueryConnection", "BigQueryConnectionParams")


class BigQueryConnectionParams(TypedDict, total=False):
    """BigQuery connection parameters."""

    project: NotRequired[str]
    dataset: NotRequired[str]
    database: NotRequired[str]
    location: NotRequired[str]
    credentials: NotRequired["Credentials"]
    credentials_path: NotRequired[str]
    client_options: NotRequired["ClientOptions"]
    client_info: NotRequired["ClientInfo"]
    default_query_job_config: NotRequired[QueryJobConfig]
    use_query_cache: NotRequired[bool]
    maximum_bytes_billed: NotRequired[int]
    query_timeout_ms: NotRequired[int]
    extra: NotRequired[dict[str, Any]]


# Options consumed here or by the database object; the rest go to ``bigquery.Client``.
NON_CLIENT_OPTIONS = frozenset(
    {
        "adapter",
        "credentials_path",
        "database",
        "dataset",
        "default_query_job_config",
        "location",
        "logger",
        "maximum_bytes_billed",
        "query_timeout_ms",
        "test",
        "use_query_cache",
    }
)


class BigQueryConnection:
    """A BigQuery client bound to the dataset used for unqualified table names."""

    __slots__ = ("client", "dataset", "job_config")

    def __init__(self, client: "bigquery.Client", dataset: "bigquery.Dataset", job_config: QueryJobConfig) -> None:
        self.client = client
        self.dataset = dataset
        self.job_config = job_config

    def query(self, sql: str) -> "RowIterator":
        """Run ``sql`` as a query job and wait for its rows."""
        return self.client.query(sql, job_config=self.job_config).result()

    def close(self) -> None:
        self.client.close()


class BigQueryConfig:
    """BigQuery configuration built from ``sqlbq.connect`` options.

    Example:
        >>> config = BigQueryConfig(
        ...     connection_config={
        ...         "project": "my-project",
        ...         "dataset": "analytics",
        ...         "location": "australia-southeast2",
        ...     }
        ... )
        >>> connection = config.create_connection()
    """

    __slots__ = ("connection_config", "logger")

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[BigQueryConnectionParams, dict[str, Any]]]" = None,
        logger: "Optional[logging.Logger]" = None,
    ) -> None:
        self.connection_config: dict[str, Any] = dict(connection_config) if connection_config else {}
        if "extra" in self.connection_config:
            extras = self.connection_config.pop("extra")
            self.connection_config.update(extras)
        self.logger = logger or self.connection_config.get("logger") or get_logger("adapters.bigquery")

    @property
    def dataset_name(self) -> Optional[str]:
        return self.connection_config.get("dataset") or self.connection_config.get("database")

    @property
    def location(self) -> Optional[str]:
        return self.connection_config.get("location")

    def client_kwargs(self) -> "dict[str, Any]":
        return {
            key: value
            for key, value in self.connection_config.items()
            if key not in NON_CLIENT_OPTIONS and value is not None
        }

    def create_client(self) -> "bigquery.Client":
        """Create a BigQuery client from the pass-through options.

        Raises:
            ImproperConfigurationError: If the client could not be created.
        """
        kwargs = self.client_kwargs()
        credentials_path = self.connection_config.get("credentials_path")
        try:
            if credentials_path:
                return bigquery.Client.from_service_account_json(credentials_path, **kwargs)
            return bigquery.Client(**kwargs)
        except Exception as e:
            project = self.connection_config.get("project", "Unknown")
            msg = f"Could not configure BigQuery connection for project '{project}'. Error: {e}"
            raise ImproperConfigurationError(msg) from e

    def create_query_job_config(self, dataset: "bigquery.Dataset") -> QueryJobConfig:
        """Query job defaults for a connection: the dataset plus cache, cost and timeout settings."""
        base = self.connection_config.get("default_query_job_config")
        job_config = QueryJobConfig.from_api_repr(base.to_api_repr()) if base is not None else QueryJobConfig()
        job_config.default_dataset = dataset.reference

        use_query_cache = self.connection_config.get("use_query_cache")
        if use_query_cache is not None:
            job_config.use_query_cache = use_query_cache

        maximum_bytes_billed = self.connection_config.get("maximum_bytes_billed")
        if maximum_bytes_billed is not None:
            job_config.maximum_bytes_billed = maximum_bytes_billed

        query_timeout_ms = self.connection_config.get("query_timeout_ms")
        if query_timeout_ms is not None:
            job_config.job_timeout_ms = query_timeout_ms

        return job_config

    def resolve_dataset(self, client: "bigquery.Client", name: str) -> "bigquery.Dataset":
        """Fetch the named dataset, creating it when it does not exist."""
        try:
            return client.get_dataset(name)
        except NotFound:
            self.logger.debug("BigQuery dataset %s does not exist; creating it", name)

        dataset = bigquery.Dataset(bigquery.DatasetReference(client.project, name))
        if self.location:
            dataset.location = self.location
        try:
            return client.create_dataset(dataset)
        except Conflict:
            return client.get_dataset(name)

    def create_connection(self) -> BigQueryConnection:
        """Create a client and resolve (or create) the configured dataset.

        Raises:
            ImproperConfigurationError: If no dataset name is configured.
        """
        name = self.dataset_name
        if not name:
            msg = "BigQuery connection requires a 'dataset' (or 'database') option"
            raise ImproperConfigurationError(msg)
        client = self.create_client()
        dataset = self.resolve_dataset(client, name)
        return BigQueryConnection(client, dataset, self.create_query_job_config(dataset))
