"""BigQuery SQL rewrites and transaction statement buffer."""

import re
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlglot.dialects.dialect import Dialect
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

if TYPE_CHECKING:
    from sqlglot.tokens import Token

__all__ = (
    "BufferState",
    "StatementBuffer",
    "is_bare_update",
    "starts_with_keyword",
    "strip_defaults",
)

# used only when the statement cannot be tokenized, and only on DDL
_DEFAULT_CLAUSE = re.compile(r"\sdefault (?:'(?:[^'\\]|\\.)*'|[^\s,()]+(?:\(\))?)", re.IGNORECASE)
_DDL_WORD = re.compile(r"^\s*(?:create|alter)\b", re.IGNORECASE)
_LEADING_WORD = re.compile(r"^\s*(\w+)")
_WHERE_WORD = re.compile(r" where ", re.IGNORECASE)

_SIGNS = frozenset({TokenType.DASH, TokenType.PLUS})
_TERMINATORS = frozenset({TokenType.COMMA, TokenType.R_PAREN, TokenType.SEMICOLON})

_dialect: Optional[Dialect] = None


def _get_dialect() -> Dialect:
    global _dialect
    if _dialect is None:
        _dialect = Dialect.get_or_raise("bigquery")
    return _dialect


def _tokenize(sql: str) -> "Optional[list[Token]]":
    try:
        return _get_dialect().tokenize(sql)
    except (TokenError, ValueError):
        return None


def _first_word(token: "Token") -> str:
    # multi-word keywords such as BEGIN TRANSACTION arrive as one token
    words = token.text.split()
    return words[0].upper() if words else ""


def _default_value_end(tokens: "list[Token]", index: int) -> int:
    """Index of the last token of the default value starting at ``index``."""
    if tokens[index].token_type in _SIGNS and index + 1 < len(tokens):
        index += 1
    if index + 1 >= len(tokens) or tokens[index + 1].token_type != TokenType.L_PAREN:
        return index
    depth = 0
    for position in range(index + 1, len(tokens)):
        if tokens[position].token_type == TokenType.L_PAREN:
            depth += 1
        elif tokens[position].token_type == TokenType.R_PAREN:
            depth -= 1
            if depth == 0:
                return position
    return len(tokens) - 1


def strip_defaults(sql: str) -> "tuple[str, int]":
    """Remove ``DEFAULT <value>`` fragments, which BigQuery DDL does not accept.

    Only ``DEFAULT`` keyword tokens are touched, so string literals and quoted
    identifiers containing the word are left alone. The value is a literal, a
    keyword or a function call; a following ``,`` or ``)`` is kept.

    Returns:
        The rewritten SQL and the number of fragments removed.
    """
    tokens = _tokenize(sql)
    if tokens is None:
        if not _DDL_WORD.match(sql):
            return sql, 0
        return _DEFAULT_CLAUSE.subn("", sql)

    spans: "list[tuple[int, int]]" = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        # a bare DEFAULT, as in VALUES (DEFAULT), has no value to remove
        if (
            token.token_type != TokenType.DEFAULT
            or index + 1 >= len(tokens)
            or tokens[index + 1].token_type in _TERMINATORS
        ):
            index += 1
            continue
        end = _default_value_end(tokens, index + 1)
        start = tokens[index - 1].end + 1 if index else token.start
        spans.append((start, tokens[end].end + 1))
        index = end + 1

    for start, stop in reversed(spans):
        sql = sql[:start] + sql[stop:]
    return sql, len(spans)


def starts_with_keyword(sql: str, keyword: str) -> bool:
    """Whether the first word of ``sql`` (ignoring comments) is ``keyword``."""
    tokens = _tokenize(sql)
    if tokens is None:
        match = _LEADING_WORD.match(sql)
        return bool(match) and match.group(1).upper() == keyword.upper()
    return bool(tokens) and _first_word(tokens[0]) == keyword.upper()


def is_bare_update(sql: str) -> bool:
    """Whether ``sql`` is an UPDATE statement without a WHERE clause."""
    tokens = _tokenize(sql)
    if tokens is None:
        return starts_with_keyword(sql, "UPDATE") and not _WHERE_WORD.search(sql)
    if not tokens or _first_word(tokens[0]) != "UPDATE":
        return False
    return not any(token.token_type == TokenType.WHERE for token in tokens)


class BufferState(Enum):
    """Whether statements are being collected for a transaction script."""

    IDLE = "idle"
    BUFFERING = "buffering"


class StatementBuffer:
    """Statements issued between BEGIN and COMMIT, submitted together as one script."""

    __slots__ = ("state", "statements")

    def __init__(self) -> None:
        self.state = BufferState.IDLE
        self.statements: "list[str]" = []

    def __len__(self) -> int:
        return len(self.statements)

    @property
    def is_buffering(self) -> bool:
        return self.state is BufferState.BUFFERING

    def begin(self) -> None:
        self.state = BufferState.BUFFERING

    def append(self, sql: str) -> None:
        self.statements.append(sql)

    def script(self) -> str:
        return ";\n".join(stmt.strip().rstrip(";") for stmt in self.statements) + ";"

    def reset(self) -> None:
        self.state = BufferState.IDLE
        self.statements = []
