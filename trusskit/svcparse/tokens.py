"""Token kinds and token groups produced by the service lexer."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Token(enum.IntEnum):
    """Kinds of tokens recognised inside a protobuf service definition."""

    ILLEGAL = 0
    EOF = enum.auto()
    WHITESPACE = enum.auto()
    COMMENT = enum.auto()
    SYMBOL = enum.auto()
    IDENT = enum.auto()
    STRING_LITERAL = enum.auto()
    OPEN_PAREN = enum.auto()
    CLOSE_PAREN = enum.auto()
    OPEN_BRACE = enum.auto()
    CLOSE_BRACE = enum.auto()

    def __str__(self) -> str:
        return self.name


def _clean(value: str) -> str:
    return value.replace("\n", "\\n").replace("\t", "\\t").replace('"', '\\"')


@dataclass(frozen=True)
class TokenGroup:
    """A token kind together with its text and the line it ends on."""

    token: Token
    value: str
    line: int

    def __str__(self) -> str:
        return (
            f'{{"token": "{self.token.name}", "value": "{_clean(self.value)}", '
            f'"line": {self.line}}},'
        )