"""Parses the service declaration of a protobuf file, keeping HTTP options.

The parser expects its input to hold exactly one service definition and
records the comments attached to methods, HTTP bindings and their fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .lexer import SvcLexer
from .tokens import Token


class ParserError(ValueError):
    """Raised when the service definition does not have the expected shape."""

    optional = False

    @classmethod
    def expected(cls, expected: str, line: int, found: str) -> "ParserError":
        return cls(f"parser expected {expected} in line '{line}', instead found '{found}'")


class OptionalParseError(ParserError):
    """Raised when an rpc lacks HTTP annotations; callers may tolerate this."""

    optional = True


@dataclass
class Field:
    """One ``key: "value"`` entry of an HTTP binding."""

    name: str = ""
    description: str = ""
    kind: str = ""
    value: str = ""


@dataclass
class HTTPBinding:
    """One HTTP binding of a method, with an optional custom verb pattern."""

    description: str = ""
    fields: list[Field] = field(default_factory=list)
    custom_http_pattern: Optional[list[Field]] = None


@dataclass
class Method:
    """An rpc method and its HTTP bindings."""

    name: str = ""
    description: str = ""
    request_type: str = ""
    response_type: str = ""
    http_bindings: list[HTTPBinding] = field(default_factory=list)


@dataclass
class Service:
    """A parsed service with its methods."""

    name: str = ""
    methods: list[Method] = field(default_factory=list)


_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}
_HEX_WIDTHS = {"x": 2, "u": 4, "U": 8}


def _unquote(text: str) -> str:
    """Decode a double-quoted string literal with its backslash escapes."""
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise ValueError("not a double-quoted string")
    body = text[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch in ('"', "\n"):
            raise ValueError(f"invalid character {ch!r} in string literal")
        if ch != "\\":
            out += ch.encode("utf-8", "surrogateescape")
            i += 1
            continue
        if i + 1 >= len(body):
            raise ValueError("dangling backslash")
        esc = body[i + 1]
        i += 2
        if esc in _SIMPLE_ESCAPES:
            out += _SIMPLE_ESCAPES[esc].encode()
        elif esc in _HEX_WIDTHS:
            width = _HEX_WIDTHS[esc]
            digits = body[i : i + width]
            if len(digits) != width or any(c not in "0123456789abcdefABCDEF" for c in digits):
                raise ValueError(f"invalid \\{esc} escape")
            code = int(digits, 16)
            i += width
            if esc == "x":
                out.append(code)
            else:
                if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                    raise ValueError(f"invalid code point {code:#x}")
                out += chr(code).encode("utf-8")
        elif esc in "01234567":
            digits = esc + body[i : i + 2]
            if len(digits) != 3 or any(c not in "01234567" for c in digits):
                raise ValueError("invalid octal escape")
            code = int(digits, 8)
            if code > 255:
                raise ValueError("octal escape out of range")
            out.append(code)
            i += 2
        else:
            raise ValueError(f"unknown escape \\{esc}")
    return out.decode("utf-8", "surrogateescape")


def _fast_forward_till(lex: SvcLexer, delim: str) -> None:
    """Advance until a token whose text is ``delim`` has been consumed."""
    while True:
        tok, val = lex.get_token_ignore_whitespace()
        if tok in (Token.EOF, Token.ILLEGAL):
            raise ParserError(
                f"in fastForwardTill found token of type '{tok.name}' and val '{val}'"
            )
        if val == delim:
            return


def parse_service(lex: SvcLexer) -> Service:
    """Parse the service definition from ``lex``.

    Raises EOFError when the input holds no service at all.
    """
    tok, val = lex.get_token_ignore_whitespace()
    if tok == Token.EOF:
        raise EOFError("unexpected EOF")
    if tok != Token.IDENT and val != "service":
        raise ParserError.expected("'service' identifier", lex.line_number, val)

    service = Service()
    tok, val = lex.get_token_ignore_whitespace()
    if tok != Token.IDENT:
        raise ParserError.expected("a string identifier", lex.line_number, val)
    service.name = val

    tok, val = lex.get_token_ignore_whitespace()
    if tok != Token.OPEN_BRACE:
        raise ParserError.expected("'{'", lex.line_number, val)

    while (method := parse_method(lex)) is not None:
        service.methods.append(method)
    return service


def _parse_type_name(lex: SvcLexer, which: str) -> str:
    """Read a possibly qualified type up to ')'; keep its last identifier."""
    tok, val = lex.get_token_ignore_whitespace()
    if val == "stream":
        tok, val = lex.get_token_ignore_whitespace()
    if tok != Token.IDENT:
        raise ParserError.expected(
            f"a string identifier in {which} to method", lex.line_number, val
        )
    name = ""
    while tok != Token.CLOSE_PAREN:
        if tok == Token.IDENT:
            name = val
        elif tok != Token.SYMBOL:
            raise ParserError.expected("')' or '.'", lex.line_number, val)
        tok, val = lex.get_token_ignore_whitespace()
    return name


def parse_method(lex: SvcLexer) -> Optional[Method]:
    """Parse one rpc; return None at the end of the service or of annotated rpcs."""
    description = ""
    tok, val = lex.get_token_ignore_whitespace()
    while tok == Token.COMMENT:
        description = val
        tok, val = lex.get_token_ignore_whitespace()

    if tok == Token.CLOSE_BRACE:
        return None
    if tok != Token.IDENT or val != "rpc":
        raise ParserError.expected("identifier 'rpc'", lex.line_number, val)

    method = Method(description=description)

    tok, val = lex.get_token_ignore_whitespace()
    if tok != Token.IDENT:
        raise ParserError.expected("a string identifier", lex.line_number, val)
    method.name = val

    tok, val = lex.get_token_ignore_whitespace()
    if tok != Token.OPEN_PAREN:
        raise ParserError.expected("'('", lex.line_number, val)
    method.request_type = _parse_type_name(lex, "first argument")

    tok, val = lex.get_token_ignore_whitespace()
    if tok != Token.IDENT or val != "returns":
        raise ParserError.expected("'returns' keyword", lex.line_number, val)

    tok, val = lex.get_token_ignore_whitespace()
    if tok != Token.OPEN_PAREN:
        raise ParserError.expected("'('", lex.line_number, val)
    method.response_type = _parse_type_name(lex, "return argument")

    tok, val = lex.get_token_ignore_whitespace()
    if val == ";":
        return None
    if tok != Token.OPEN_BRACE:
        raise ParserError.expected(
            "'{' after declaration of method signature", lex.line_number, val
        )

    bindings = parse_http_bindings(lex)
    if bindings is None:
        return None
    method.http_bindings = bindings

    tok, val = lex.get_token_ignore_comment_and_whitespace()
    if tok != Token.SYMBOL or val != ";":
        raise ParserError.expected(
            "';' after declaration of http options", lex.line_number, val + tok.name
        )

    tok, val = lex.get_token_ignore_comment_and_whitespace()
    if tok != Token.CLOSE_BRACE:
        raise ParserError.expected(
            "'}' after declaration of http options marking end of rpc declarations",
            lex.line_number,
            val + tok.name,
        )
    return method


def parse_http_bindings(lex: SvcLexer) -> Optional[list[HTTPBinding]]:
    """Parse an ``option`` or ``additional_bindings`` block.

    Returns None when the rpc body ends without options; raises
    OptionalParseError when something other than options is found.
    """
    bindings: list[HTTPBinding] = []
    binding = HTTPBinding()

    tok, val = lex.get_token_ignore_whitespace()
    while True:
        if tok == Token.COMMENT:
            binding.description = val
            tok, val = lex.get_token_ignore_whitespace()
        elif tok in (Token.EOF, Token.ILLEGAL):
            raise ParserError.expected("non-illegal input", lex.line_number, tok.name)
        else:
            break

    if val == "option":
        _fast_forward_till(lex, "{")
        binding.fields, binding.custom_http_pattern = parse_binding_fields(lex)
        good_position = lex.position
        tok, val = lex.get_token_ignore_whitespace()
        while True:
            if tok == Token.CLOSE_BRACE:
                bindings.append(binding)
                return bindings
            if tok == Token.COMMENT:
                good_position = lex.position
            elif val == "additional_bindings":
                lex.unget_to_position(good_position)
                bindings.extend(parse_http_bindings(lex) or [])
                good_position = lex.position
            elif tok in (Token.EOF, Token.ILLEGAL):
                raise ParserError.expected(
                    "legal token while parsing HttpBindings",
                    lex.line_number,
                    f"({val}) of type {tok.name}",
                )
            else:
                raise ParserError.expected(
                    "close brace or comment while parsing http bindings",
                    lex.line_number,
                    tok.name + val,
                )
            tok, val = lex.get_token_ignore_whitespace()

    if val == "additional_bindings":
        _fast_forward_till(lex, "{")
        binding.fields, binding.custom_http_pattern = parse_binding_fields(lex)
        _fast_forward_till(lex, "}")
        bindings.append(binding)
        return bindings

    if val == "}":
        return None

    raise OptionalParseError.expected(
        "'}', 'option' or 'additional_bindings' while parsing options",
        lex.line_number,
        val,
    )


def parse_binding_fields(lex: SvcLexer) -> tuple[list[Field], Optional[list[Field]]]:
    """Parse ``key: "value"`` entries up to a closing brace or more bindings.

    Returns the plain fields and the fields of a ``custom`` block, the latter
    None when there is no custom block.
    """
    fields: list[Field] = []
    custom: Optional[list[Field]] = None
    current = Field()
    while True:
        tok, val = lex.get_token_ignore_whitespace()
        while True:
            if tok == Token.COMMENT:
                current.description = val
                tok, val = lex.get_token_ignore_whitespace()
            elif tok in (Token.EOF, Token.ILLEGAL):
                raise ParserError.expected(
                    "legal token while parsing binding fields", lex.line_number, val
                )
            else:
                break

        if (tok == Token.CLOSE_BRACE and val == "}") or val == "additional_bindings":
            lex.unget_token()
            break

        if val == "custom":
            try:
                _fast_forward_till(lex, "{")
            except ParserError as err:
                raise ParserError(f"cannot fastforward till opening brace: {err}") from err
            try:
                inner, _ = parse_binding_fields(lex)
            except ParserError as err:
                raise ParserError(f"cannot parse custom binding fields: {err}") from err
            custom = inner or None
            try:
                _fast_forward_till(lex, "}")
            except ParserError as err:
                raise ParserError(f"cannot fastforward to closing brace: {err}") from err
            continue

        current.kind = val
        current.name = val

        tok, val = lex.get_token_ignore_whitespace()
        if tok != Token.SYMBOL or val != ":":
            raise ParserError.expected("symbol ':'", lex.line_number, val)

        tok, val = lex.get_token_ignore_whitespace()
        if tok != Token.STRING_LITERAL:
            raise ParserError.expected("string literal", lex.line_number, val)

        try:
            current.value = _unquote(val)
        except ValueError as err:
            raise ParserError(f"cannot unquote value {val!r}: {err}") from err

        fields.append(current)
        current = Field()

    return fields, custom