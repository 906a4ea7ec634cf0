"""Migration version tracking.

The applied version is stored in a single-row table, ``schema_info`` by default.
"""

from typing import TYPE_CHECKING

from sqlbq.sql import Column
from sqlbq.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbq.database import Database
    from sqlbq.dataset import Dataset

__all__ = ("DEFAULT_VERSION_TABLE", "MigrationTracker")

logger = get_logger("migrations.tracker")

DEFAULT_VERSION_TABLE = "schema_info"
VERSION_COLUMN = "version"


class MigrationTracker:
    """Reads and writes the applied migration version."""

    __slots__ = ("db", "table")

    def __init__(self, db: "Database", table: str = DEFAULT_VERSION_TABLE) -> None:
        self.db = db
        self.table = table

    @property
    def dataset(self) -> "Dataset":
        return self.db[self.table]

    def ensure_tracking_table(self) -> None:
        """Create the version table if it doesn't exist."""
        self.db.create_table(
            self.table,
            Column(VERSION_COLUMN, int, default=0, null=False),
            if_not_exists=True,
        )

    def get_current_version(self) -> int:
        """Return the applied version, inserting a zero row into an empty table."""
        row = self.dataset.select(VERSION_COLUMN).first()
        if row is None:
            self.dataset.insert({VERSION_COLUMN: 0})
            return 0
        return int(next(iter(row.values())) or 0)

    def set_version(self, version: int) -> None:
        self.dataset.update({VERSION_COLUMN: version})
        logger.debug("Recorded migration version %s in %s", version, self.table)
