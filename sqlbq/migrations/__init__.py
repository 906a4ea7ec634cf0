from sqlbq.migrations.loader import Migration, discover_migrations, load_migration
from sqlbq.migrations.runner import Migrator
from sqlbq.migrations.tracker import DEFAULT_VERSION_TABLE, MigrationTracker

__all__ = (
    "DEFAULT_VERSION_TABLE",
    "Migration",
    "MigrationTracker",
    "Migrator",
    "discover_migrations",
    "load_migration",
)
