import re
from pathlib import Path
from typing import Any, Optional

import pytest

from sqlbq.exceptions import DatabaseError

_SET_VERSION = re.compile(r'UPDATE "SCHEMA_INFO" SET "VERSION" = (\d+)')


@pytest.fixture
def versioned_db(recording_db: Any) -> Any:
    """A recording database that keeps a ``schema_info`` table in memory."""
    state: "dict[str, Any]" = {"table": False, "version": None}

    def responder(sql: str) -> "list[dict[str, Any]]":
        if sql.startswith('SELECT NULL FROM "SCHEMA_INFO"') and not state["table"]:
            msg = "Table schema_info was not found"
            raise DatabaseError(msg)
        if sql.startswith('CREATE TABLE "SCHEMA_INFO"'):
            state["table"] = True
        elif sql.startswith('SELECT "VERSION" FROM "SCHEMA_INFO"'):
            return [] if state["version"] is None else [{"VERSION": state["version"]}]
        elif sql.startswith('INSERT INTO "SCHEMA_INFO"'):
            state["version"] = 0
        else:
            match = _SET_VERSION.match(sql)
            if match:
                state["version"] = int(match.group(1))
        return []

    recording_db.responder = responder
    recording_db.state = state
    return recording_db


def write_migration(directory: Path, name: str, up: str, down: Optional[str] = None) -> Path:
    source = f"def up(db):\n    db.run({up!r})\n"
    if down is not None:
        source += f"\n\ndef down(db):\n    db.run({down!r})\n"
    path = directory / name
    path.write_text(source)
    return path


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    """Two reversible migrations."""
    write_migration(tmp_path, "001_create_people.py", "CREATE people", "DROP people")
    write_migration(tmp_path, "002_add_age.py", "ALTER people ADD age", "ALTER people DROP age")
    (tmp_path / "README.md").write_text("not a migration")
    return tmp_path


@pytest.fixture(name="write_migration")
def write_migration_fixture() -> Any:
    return write_migration
