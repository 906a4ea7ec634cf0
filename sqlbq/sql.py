"""SQL fragments that literalise differently from plain Python values."""

from dataclasses import dataclass
from typing import Any, Optional, Union

from sqlbq.typing import Empty, EmptyType

__all__ = ("Column", "Identifier", "Raw", "identifier", "lit")


@dataclass(frozen=True)
class Identifier:
    """A column or table name, rendered quoted by the dataset's quoting rules."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Raw:
    """SQL text inserted verbatim."""

    sql: str

    def __str__(self) -> str:
        return self.sql


def identifier(name: str) -> Identifier:
    return Identifier(name)


def lit(sql: str) -> Raw:
    return Raw(sql)


@dataclass
class Column:
    """Column definition for ``Database.create_table``.

    ``type`` is either a Python type, rendered through the database's generic
    type hooks, or a string used verbatim as the SQL type.
    """

    name: str
    type: "Union[type, str]"
    size: "Optional[Union[int, tuple[int, int]]]" = None
    default: "Union[Any, EmptyType]" = Empty
    null: bool = True
    primary_key: bool = False
    text: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not Empty
