from sqlbq.exceptions import MissingDependencyError

try:
    import google.cloud.bigquery  # noqa: F401
except ImportError as e:
    raise MissingDependencyError(package="google-cloud-bigquery") from e

from sqlbq.adapters.bigquery.config import BigQueryConfig, BigQueryConnection, BigQueryConnectionParams  # noqa: E402
from sqlbq.adapters.bigquery.core import BufferState, StatementBuffer  # noqa: E402
from sqlbq.adapters.bigquery.database import BigQueryDatabase  # noqa: E402
from sqlbq.adapters.bigquery.dataset import BigQueryDataset  # noqa: E402

__all__ = (
    "BigQueryConfig",
    "BigQueryConnection",
    "BigQueryConnectionParams",
    "BigQueryDatabase",
    "BigQueryDataset",
    "BufferState",
    "StatementBuffer",
)
