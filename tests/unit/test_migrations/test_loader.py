"""Tests for migration discovery and loading."""

from pathlib import Path
from typing import Any

import pytest

from sqlbq.exceptions import MigrationError
from sqlbq.migrations import discover_migrations, load_migration


def test_discover_migrations_orders_by_version(migrations_dir: Path) -> None:
    """Only ``<version>_<name>.py`` files are picked up, keyed by version."""
    files = discover_migrations(migrations_dir)
    assert list(files) == [1, 2]
    assert files[1].name == "001_create_people.py"


def test_discover_migrations_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(MigrationError, match="does not exist"):
        discover_migrations(tmp_path / "missing")


def test_discover_migrations_duplicate_version(migrations_dir: Path, write_migration: Any) -> None:
    write_migration(migrations_dir, "1_other.py", "SELECT 1")
    with pytest.raises(MigrationError, match="Duplicate migration version 1"):
        discover_migrations(migrations_dir)


def test_load_migration(migrations_dir: Path) -> None:
    migration = load_migration(1, migrations_dir / "001_create_people.py")
    assert migration.version == 1
    assert migration.description == "create_people"
    assert callable(migration.up)
    assert callable(migration.down)


def test_load_migration_without_down(tmp_path: Path, write_migration: Any) -> None:
    path = write_migration(tmp_path, "001_irreversible.py", "SELECT 1")
    assert load_migration(1, path).down is None


def test_load_migration_without_up(tmp_path: Path) -> None:
    path = tmp_path / "001_empty.py"
    path.write_text("VALUE = 1\n")
    with pytest.raises(MigrationError, match="does not define an up"):
        load_migration(1, path)
