from enum import Enum
from typing import Any, Final, Literal

from typing_extensions import TypeAlias

__all__ = ("Empty", "EmptyType", "Row")


class _EmptyEnum(Enum):
    """A sentinel enum used as placeholder."""

    EMPTY = 0


EmptyType: TypeAlias = Literal[_EmptyEnum.EMPTY]
Empty: Final = _EmptyEnum.EMPTY

Row: TypeAlias = dict[str, Any]
