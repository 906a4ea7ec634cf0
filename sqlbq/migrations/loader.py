"""Discovery and loading of migration files.

A migration is a Python file named ``<version>_<description>.py`` whose module
defines ``up(db)`` and optionally ``down(db)``.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Union

from sqlbq.exceptions import MigrationError
from sqlbq.utils.logging import get_logger
from sqlbq.utils.module_loader import load_module_from_path

if TYPE_CHECKING:
    from sqlbq.database import Database

__all__ = ("Migration", "discover_migrations", "load_migration")

logger = get_logger("migrations.loader")

MIGRATION_FILE = re.compile(r"^(\d+)_(\w+)\.py$")

MigrationFunc = Callable[["Database"], None]


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    path: Path
    up: MigrationFunc
    down: Optional[MigrationFunc] = None


def discover_migrations(directory: "Union[str, Path]") -> "dict[int, Path]":
    """Map version numbers to migration files in ``directory``.

    Raises:
        MigrationError: The directory is missing, or two files share a version.
    """
    path = Path(directory)
    if not path.is_dir():
        msg = f"Migration directory {str(path)!r} does not exist"
        raise MigrationError(msg)

    files: dict[int, Path] = {}
    for file_path in sorted(path.iterdir()):
        match = MIGRATION_FILE.match(file_path.name)
        if match is None:
            continue
        version = int(match.group(1))
        if version in files:
            msg = f"Duplicate migration version {version}: {files[version].name} and {file_path.name}"
            raise MigrationError(msg)
        files[version] = file_path
    return dict(sorted(files.items()))


def load_migration(version: int, path: Path) -> Migration:
    """Import a migration file.

    Raises:
        MigrationError: The file does not define a callable ``up``.
    """
    module = load_module_from_path(path, f"sqlbq_migration_{version}")
    up = getattr(module, "up", None)
    if not callable(up):
        msg = f"Migration {path.name} does not define an up(db) function"
        raise MigrationError(msg)
    down = getattr(module, "down", None)
    description = MIGRATION_FILE.match(path.name).group(2)  # type: ignore[union-attr]
    logger.debug("Loaded migration %s from %s", version, path)
    return Migration(version=version, description=description, path=path, up=up, down=down if callable(down) else None)
