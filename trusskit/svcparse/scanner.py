"""Splits protobuf source into scan units and tracks service-definition state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


def is_ident(ch: str) -> bool:
    """Return True if ``ch`` may be part of an identifier."""
    return ch.isalpha() or ch.isdecimal() or ch == "_"


def _clean(value: str) -> str:
    return value.replace("\n", "\\n").replace("\t", "\\t").replace('"', '\\"')


@dataclass(frozen=True)
class ScanUnit:
    """A group of characters plus the scanner state after reading it."""

    in_rpc_definition: bool
    in_rpc_body: bool
    brace_level: int
    line_no: int
    value: str

    def __str__(self) -> str:
        return (
            f'{{"value": "{_clean(self.value)}", '
            f'"InRpcDefinition": {str(self.in_rpc_definition).lower()}, '
            f'"InRpcBody": {str(self.in_rpc_body).lower()}, '
            f'"BraceLevel": {self.brace_level}, "LineNo": {self.line_no}}},'
        )


class _EndOfInput(Exception):
    pass


class _Reader:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1

    def read(self) -> str:
        if self.pos >= len(self.text):
            raise _EndOfInput
        ch = self.text[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
        return ch

    def unread(self) -> None:
        self.pos -= 1
        if self.text[self.pos] == "\n":
            self.line -= 1


@dataclass
class _ScanState:
    in_definition: bool = False
    in_body: bool = False
    brace_level: int = 0


def _scan_comment_or_slash(reader: _Reader) -> str:
    ch = reader.read()
    if ch == "/":
        buf = ["/", "/"]
        while True:
            ch = reader.read()
            buf.append(ch)
            if ch == "\n":
                return "".join(buf)
    if ch == "*":
        buf = ["/", "*"]
        while True:
            ch = reader.read()
            buf.append(ch)
            if ch == "*":
                # The character after a '*' is consumed; it is kept only if it
                # closes the comment.
                ch = reader.read()
                if ch == "/":
                    buf.append(ch)
                    return "".join(buf)
    reader.unread()
    return "/"


def _scan_string(reader: _Reader) -> str:
    buf = ['"']
    while True:
        ch = reader.read()
        buf.append(ch)
        if ch == "\\":
            buf.append(reader.read())
        elif ch == '"':
            return "".join(buf)


def _scan_run(reader: _Reader, first: str, accept) -> tuple[str, bool]:
    """Group consecutive accepted characters; report whether input ended."""
    buf = [first]
    while True:
        try:
            ch = reader.read()
        except _EndOfInput:
            return "".join(buf), True
        if not accept(ch):
            reader.unread()
            return "".join(buf), False
        buf.append(ch)


def _scan_one(reader: _Reader, state: _ScanState) -> str:
    first = reader.read()
    if first == "/":
        return _scan_comment_or_slash(reader)
    if first == '"':
        return _scan_string(reader)
    if first.isspace():
        value, _ = _scan_run(reader, first, str.isspace)
        return value
    if is_ident(first):
        value, ended = _scan_run(reader, first, is_ident)
        if not ended and value == "service":
            state.in_definition = True
        return value
    if first == "{":
        state.brace_level += 1
        if state.in_definition:
            state.in_definition = False
            state.in_body = True
    elif first == "}":
        state.brace_level -= 1
        if state.in_body and state.brace_level == 0:
            state.in_body = False
    return first


def scan_units(text: str) -> Iterator[ScanUnit]:
    """Yield the scan units of ``text``; an unterminated unit at the end is dropped."""
    reader = _Reader(text)
    state = _ScanState()
    while True:
        try:
            value = _scan_one(reader, state)
        except _EndOfInput:
            return
        yield ScanUnit(
            in_rpc_definition=state.in_definition,
            in_rpc_body=state.in_body,
            brace_level=state.brace_level,
            line_no=reader.line,
            value=value,
        )


class SvcScanner:
    """Cursor over the scan units of a protobuf source text."""

    def __init__(self, text: str) -> None:
        self.units: list[ScanUnit] = list(scan_units(text))
        self.unit_pos = 0
        self.in_definition = False
        self.in_body = False
        self.brace_level = 0
        self._line_no = 0

    def _restore(self, unit: ScanUnit) -> None:
        self.in_body = unit.in_rpc_body
        self.in_definition = unit.in_rpc_definition
        self.brace_level = unit.brace_level
        self._line_no = unit.line_no

    def read_unit(self) -> str:
        """Return the next unit's text; raise EOFError at the end of input."""
        if self.unit_pos >= len(self.units):
            raise EOFError("end of scan units")
        unit = self.units[self.unit_pos]
        self._restore(unit)
        self.unit_pos += 1
        return unit.value

    def unread_unit(self) -> None:
        """Step back one unit, restoring the state of the unit before it."""
        if self.unit_pos == 0:
            raise ValueError("cannot unread when scanner is at start of input")
        self.unit_pos -= 1
        if self.unit_pos == 0:
            self.in_body = False
            self.in_definition = False
            self.brace_level = 0
            self._line_no = 0
        else:
            self._restore(self.units[self.unit_pos - 1])

    def unread_to_position(self, position: int) -> None:
        """Unread units until the cursor sits at ``position``."""
        while self.unit_pos != position:
            self.unread_unit()

    def fast_forward(self) -> None:
        """Move to the next 'service' unit unless already inside a service."""
        if self.in_body or self.in_definition:
            return
        while True:
            if self.read_unit() == "service":
                self.unit_pos -= 1
                return

    @property
    def line_number(self) -> int:
        """Line number at the end of the most recently read unit."""
        return self._line_no