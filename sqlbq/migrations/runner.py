"""Migration execution engine.

Migrations are applied one at a time in version order. After each one the
version table is updated, so an interrupted run resumes from the last
successful migration.
"""

import time
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from sqlbq.exceptions import MigrationError
from sqlbq.migrations.loader import Migration, discover_migrations, load_migration
from sqlbq.migrations.tracker import DEFAULT_VERSION_TABLE, MigrationTracker
from sqlbq.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbq.database import Database

__all__ = ("Migrator",)

logger = get_logger("migrations.runner")


class Migrator:
    """Applies the migrations in a directory to a database.

    Example:
        >>> db = sqlbq.connect(adapter="bigquery", project="my-project", dataset="app")
        >>> Migrator(db, "migrations").run()
    """

    __slots__ = ("db", "directory", "tracker")

    def __init__(self, db: "Database", directory: "Union[str, Path]", table: str = DEFAULT_VERSION_TABLE) -> None:
        self.db = db
        self.directory = Path(directory)
        self.tracker = MigrationTracker(db, table)

    @classmethod
    def apply(cls, db: "Database", directory: "Union[str, Path]", target: Optional[int] = None) -> int:
        """Run migrations in ``directory`` against ``db`` up (or down) to ``target``."""
        return cls(db, directory).run(target)

    def get_migration_files(self) -> "dict[int, Path]":
        """Migration files by version.

        Raises:
            MigrationError: Versions do not run contiguously from 1.
        """
        files = discover_migrations(self.directory)
        expected = list(range(1, len(files) + 1))
        if list(files) != expected:
            missing = sorted(set(range(1, max(files, default=0) + 1)) - set(files))
            msg = f"Missing migration version(s) {missing} in {self.directory}"
            raise MigrationError(msg)
        return files

    def latest_version(self) -> int:
        return max(self.get_migration_files(), default=0)

    def current_version(self) -> int:
        self.tracker.ensure_tracking_table()
        return self.tracker.get_current_version()

    def is_current(self) -> bool:
        return self.current_version() == self.latest_version()

    def run(self, target: Optional[int] = None) -> int:
        """Migrate to ``target`` (the latest version when omitted).

        Returns:
            The version the database is at afterwards.

        Raises:
            MigrationError: The target is unknown or a migration cannot be reversed.
        """
        files = self.get_migration_files()
        latest = max(files, default=0)
        if target is None:
            target = latest
        if target < 0 or target > latest:
            msg = f"Target version {target} is outside the available range 0..{latest}"
            raise MigrationError(msg)

        current = self.current_version()
        if current > latest:
            msg = f"Database is at version {current} but the newest migration is {latest}"
            raise MigrationError(msg)

        if target > current:
            for version in range(current + 1, target + 1):
                self._apply(load_migration(version, files[version]), "up")
        elif target < current:
            for version in range(current, target, -1):
                self._apply(load_migration(version, files[version]), "down")
        else:
            logger.info("Database already at version %s", current)
        return target

    def _apply(self, migration: Migration, direction: str) -> None:
        func = migration.up if direction == "up" else migration.down
        if func is None:
            msg = f"Migration {migration.path.name} cannot be reversed: it has no down(db) function"
            raise MigrationError(msg)

        start = time.perf_counter()
        func(self.db)
        new_version = migration.version if direction == "up" else migration.version - 1
        self.tracker.set_version(new_version)
        logger.info(
            "Applied migration %s (%s) %s in %.3fs",
            migration.version,
            migration.description,
            direction,
            time.perf_counter() - start,
        )
