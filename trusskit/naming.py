"""Identifier naming helpers."""

from __future__ import annotations

import re

_PIECE = re.compile(r"(_(?=[a-z]))|([0-9])|(.)([a-z]*)", re.DOTALL)


def _piece(match: re.Match) -> str:
    if match.group(1):
        return ""
    if match.group(2):
        return match.group(2)
    head = match.group(3)
    if "a" <= head <= "z":
        head = head.upper()
    return head + match.group(4)


def camel_case(name: str) -> str:
    """Return ``name`` in the CamelCase form used for generated Go identifiers.

    Underscores followed by a lower-case letter are dropped and that letter is
    capitalised; a leading underscore becomes a capital 'X'.
    """
    if not name:
        return ""
    prefix = ""
    if name[0] == "_":
        prefix, name = "X", name[1:]
    return prefix + _PIECE.sub(_piece, name)