"""Tests for the migration runner."""

import logging
from pathlib import Path
from typing import Any

import pytest

from sqlbq.exceptions import MigrationError
from sqlbq.migrations import Migrator


def test_current_version_initialises_tracking_table(versioned_db: Any, migrations_dir: Path) -> None:
    """A fresh database gets a schema_info table holding version 0."""
    assert Migrator(versioned_db, migrations_dir).current_version() == 0
    assert versioned_db.executed == [
        'SELECT NULL FROM "SCHEMA_INFO" LIMIT 1',
        'CREATE TABLE "SCHEMA_INFO" ("VERSION" integer DEFAULT 0 NOT NULL)',
        'SELECT "VERSION" FROM "SCHEMA_INFO" LIMIT 1',
        'INSERT INTO "SCHEMA_INFO" ("VERSION") VALUES (0)',
    ]


def test_run_applies_all_migrations(versioned_db: Any, migrations_dir: Path) -> None:
    """Migrations run in order and the version is recorded after each one."""
    assert Migrator.apply(versioned_db, migrations_dir) == 2
    statements = [sql for sql in versioned_db.executed if not sql.startswith(("SELECT", "CREATE TABLE", "INSERT"))]
    assert statements == [
        "CREATE people",
        'UPDATE "SCHEMA_INFO" SET "VERSION" = 1',
        "ALTER people ADD age",
        'UPDATE "SCHEMA_INFO" SET "VERSION" = 2',
    ]
    assert versioned_db.state["version"] == 2
    assert Migrator(versioned_db, migrations_dir).is_current()


def test_run_down_to_target(versioned_db: Any, migrations_dir: Path) -> None:
    """Migrating to a lower version runs down() in reverse order."""
    migrator = Migrator(versioned_db, migrations_dir)
    migrator.run()
    versioned_db.executed.clear()

    assert migrator.run(target=0) == 0
    statements = [sql for sql in versioned_db.executed if not sql.startswith("SELECT")]
    assert statements == [
        "ALTER people DROP age",
        'UPDATE "SCHEMA_INFO" SET "VERSION" = 1',
        "DROP people",
        'UPDATE "SCHEMA_INFO" SET "VERSION" = 0',
    ]
    assert not migrator.is_current()


def test_run_when_current_does_nothing(
    versioned_db: Any, migrations_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    migrator = Migrator(versioned_db, migrations_dir)
    migrator.run()
    versioned_db.executed.clear()

    with caplog.at_level(logging.INFO, logger="sqlbq"):
        assert migrator.run() == 2
    assert not [sql for sql in versioned_db.executed if not sql.startswith("SELECT")]
    assert "Database already at version 2" in caplog.text


@pytest.mark.parametrize("target", [-1, 3])
def test_run_rejects_unknown_target(versioned_db: Any, migrations_dir: Path, target: int) -> None:
    with pytest.raises(MigrationError, match="outside the available range"):
        Migrator(versioned_db, migrations_dir).run(target)


def test_run_rejects_gaps(versioned_db: Any, tmp_path: Path, write_migration: Any) -> None:
    """Versions must run contiguously from 1."""
    write_migration(tmp_path, "001_first.py", "SELECT 1")
    write_migration(tmp_path, "003_third.py", "SELECT 3")
    with pytest.raises(MigrationError, match=r"Missing migration version\(s\) \[2\]"):
        Migrator(versioned_db, tmp_path).run()


def test_run_rejects_database_ahead_of_migrations(versioned_db: Any, migrations_dir: Path) -> None:
    versioned_db.state.update(table=True, version=5)
    with pytest.raises(MigrationError, match="Database is at version 5"):
        Migrator(versioned_db, migrations_dir).run()


def test_irreversible_migration(versioned_db: Any, tmp_path: Path, write_migration: Any) -> None:
    """Migrating down through a migration without down() fails."""
    write_migration(tmp_path, "001_irreversible.py", "CREATE things")
    migrator = Migrator(versioned_db, tmp_path)
    migrator.run()
    with pytest.raises(MigrationError, match="cannot be reversed"):
        migrator.run(target=0)
    assert versioned_db.state["version"] == 1


def test_failed_migration_keeps_previous_version(versioned_db: Any, tmp_path: Path) -> None:
    """The version is only advanced after a migration succeeds."""
    (tmp_path / "001_ok.py").write_text("def up(db):\n    db.run('CREATE ok')\n")
    (tmp_path / "002_broken.py").write_text("def up(db):\n    raise RuntimeError('broken migration')\n")
    with pytest.raises(RuntimeError, match="broken migration"):
        Migrator(versioned_db, tmp_path).run()
    assert versioned_db.state["version"] == 1


def test_empty_migration_directory(versioned_db: Any, tmp_path: Path) -> None:
    migrator = Migrator(versioned_db, tmp_path)
    assert migrator.latest_version() == 0
    assert migrator.run() == 0
