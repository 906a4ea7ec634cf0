"""sqlbq: a small SQL toolkit with a Google BigQuery adapter."""

from sqlbq import exceptions, typing, utils
from sqlbq.__metadata__ import __version__
from sqlbq.database import Database, connect, register_adapter
from sqlbq.dataset import Dataset
from sqlbq.exceptions import (
    AdapterNotFoundError,
    DatabaseError,
    ImproperConfigurationError,
    MigrationError,
    SQLBQError,
    SQLBuilderError,
)
from sqlbq.migrations import Migrator
from sqlbq.sql import Column, Identifier, Raw, identifier, lit

__all__ = (
    "AdapterNotFoundError",
    "Column",
    "Database",
    "DatabaseError",
    "Dataset",
    "Identifier",
    "ImproperConfigurationError",
    "MigrationError",
    "Migrator",
    "Raw",
    "SQLBQError",
    "SQLBuilderError",
    "__version__",
    "connect",
    "exceptions",
    "identifier",
    "lit",
    "register_adapter",
    "typing",
    "utils",
)
