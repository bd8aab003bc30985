"""Turns scan units into tokens, looking only at service definitions."""

from __future__ import annotations

from .scanner import SvcScanner, is_ident
from .tokens import Token, TokenGroup

_BRACKETS = {
    "(": Token.OPEN_PAREN,
    ")": Token.CLOSE_PAREN,
    "{": Token.OPEN_BRACE,
    "}": Token.CLOSE_BRACE,
}


def _is_comment(unit: str) -> bool:
    return len(unit) > 1 and unit[0] == "/"


def _collect_comment(scanner: SvcScanner, first: str) -> str:
    """Join consecutive comments, including ones on the same line."""
    parts = [first]
    while True:
        start = scanner.unit_pos
        try:
            one = scanner.read_unit()
        except EOFError:
            break
        if _is_comment(one):
            parts.append(one)
            continue
        if one[0].isspace() and "\n" not in one:
            try:
                two = scanner.read_unit()
            except EOFError:
                two = ""
            if _is_comment(two):
                parts += [one, two]
                continue
        scanner.unread_to_position(start)
        break
    return "".join(parts)


def new_token_group(scanner: SvcScanner) -> TokenGroup:
    """Read the next token from ``scanner``."""
    if scanner.brace_level == 0:
        try:
            scanner.fast_forward()
        except EOFError:
            return TokenGroup(Token.EOF, "", scanner.line_number)
    try:
        unit = scanner.read_unit()
    except EOFError:
        return TokenGroup(Token.EOF, "", scanner.line_number)

    if not unit:
        return TokenGroup(Token.ILLEGAL, "", scanner.line_number)
    head = unit[0]
    if head.isspace():
        kind = Token.WHITESPACE
    elif is_ident(head):
        kind = Token.IDENT
    elif head == '"':
        kind = Token.STRING_LITERAL
    elif head in _BRACKETS:
        kind = _BRACKETS[head]
    elif _is_comment(unit):
        text = _collect_comment(scanner, unit)
        return TokenGroup(Token.COMMENT, text, scanner.line_number)
    elif len(unit) == 1:
        kind = Token.SYMBOL
    else:
        kind = Token.ILLEGAL
    return TokenGroup(kind, unit, scanner.line_number)


class SvcLexer:
    """Buffered token stream over the service definitions of a source text."""

    def __init__(self, text: str) -> None:
        self.scanner = SvcScanner(text)
        self.groups: list[TokenGroup] = []
        while True:
            grp = new_token_group(self.scanner)
            if grp.token in (Token.ILLEGAL, Token.EOF):
                break
            self.groups.append(grp)
        self._pos = 0
        self._line_no = 0

    @property
    def position(self) -> int:
        """Index of the next token to be returned."""
        return self._pos

    @property
    def line_number(self) -> int:
        """Line of the most recently returned token."""
        return self._line_no

    def get_token(self) -> tuple[Token, str]:
        """Return the next token and its text; EOF with empty text at the end."""
        if self._pos >= len(self.groups):
            return Token.EOF, ""
        grp = self.groups[self._pos]
        self._line_no = grp.line
        self._pos += 1
        return grp.token, grp.value

    def unget_token(self) -> None:
        """Step back one token."""
        if self._pos == 0:
            raise ValueError("cannot unread when lexer is at start of input")
        self._pos -= 1
        self._line_no = self.groups[self._pos].line

    def unget_to_position(self, position: int) -> None:
        """Step back until the next token is the one at ``position``."""
        while self._pos != position:
            self.unget_token()

    def _get_token_skipping(self, *skipped: Token) -> tuple[Token, str]:
        while True:
            tok, val = self.get_token()
            if tok not in skipped:
                return tok, val

    def get_token_ignore_whitespace(self) -> tuple[Token, str]:
        """Return the next token that is not whitespace."""
        return self._get_token_skipping(Token.WHITESPACE)

    def get_token_ignore_comment_and_whitespace(self) -> tuple[Token, str]:
        """Return the next token that is neither whitespace nor a comment."""
        return self._get_token_skipping(Token.WHITESPACE, Token.COMMENT)