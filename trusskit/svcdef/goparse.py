"""A small parser for the declarations of Go source files.

It reads the package clause, type declarations and function signatures,
which is all that is needed to understand generated protobuf Go code.
Imports, variables, constants and function bodies are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Union


class GoSyntaxError(ValueError):
    """Raised when the Go source cannot be parsed; ``pos`` is a character offset."""

    def __init__(self, message: str, pos: int = -1) -> None:
        super().__init__(message)
        self.pos = pos


@dataclass
class Ident:
    name: str
    pos: int = field(default=0, compare=False)

    def is_exported(self) -> bool:
        """True if the name starts with an upper-case letter."""
        return bool(self.name) and self.name[0].isupper()


@dataclass
class StarExpr:
    x: "Expr"
    pos: int = field(default=0, compare=False)


@dataclass
class SelectorExpr:
    x: Ident
    sel: Ident
    pos: int = field(default=0, compare=False)


@dataclass
class ArrayType:
    """A slice, an array (``length`` set) or a variadic parameter type."""

    elt: "Expr"
    length: Optional[str] = None
    variadic: bool = False
    pos: int = field(default=0, compare=False)


@dataclass
class MapType:
    key: "Expr"
    value: "Expr"
    pos: int = field(default=0, compare=False)


@dataclass
class AstField:
    """A struct field, parameter or interface method.

    ``tag`` is the literal tag including its quotes, or None.
    """

    names: list[Ident]
    type: "Expr"
    tag: Optional[str] = None
    pos: int = field(default=0, compare=False)


@dataclass
class FuncType:
    params: list[AstField] = field(default_factory=list)
    results: list[AstField] = field(default_factory=list)
    pos: int = field(default=0, compare=False)


@dataclass
class StructType:
    fields: list[AstField] = field(default_factory=list)
    pos: int = field(default=0, compare=False)


@dataclass
class InterfaceType:
    methods: list[AstField] = field(default_factory=list)
    pos: int = field(default=0, compare=False)


Expr = Union[Ident, StarExpr, SelectorExpr, ArrayType, MapType, FuncType, StructType, InterfaceType]


@dataclass
class TypeSpec:
    name: Ident
    type: Expr
    pos: int = field(default=0, compare=False)


@dataclass
class FuncDecl:
    name: Ident
    recv: Optional[list[AstField]]
    type: FuncType
    pos: int = field(default=0, compare=False)


@dataclass
class GoFile:
    package: Ident
    decls: list[Union[TypeSpec, FuncDecl]] = field(default_factory=list)

    @property
    def type_specs(self) -> list[TypeSpec]:
        return [d for d in self.decls if isinstance(d, TypeSpec)]

    @property
    def func_decls(self) -> list[FuncDecl]:
        return [d for d in self.decls if isinstance(d, FuncDecl)]


class _Tok(NamedTuple):
    kind: str  # ident, number, string, rune, op, eof
    value: str
    pos: int


_TOKEN_RE = re.compile(
    r"""
     (?P<newline>\n)
    |(?P<space>[ \t\r\f\ufeff]+)
    |(?P<line_comment>//[^\n]*)
    |(?P<block_comment>/\*.*?(?:\*/|\Z))
    |(?P<ident>[^\W\d]\w*)
    |(?P<number>\.?\d(?:[eEpP][+-]|[\w.])*)
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<raw>`[^`]*`)
    |(?P<rune>'(?:[^'\\\n]|\\.)*')
    |(?P<op><<=|>>=|&\^=|\.\.\.|&&|\|\||<-|\+\+|--|==|!=|<=|>=|:=|\+=|-=|\*=|/=|%=|&=|\|=|\^=|<<|>>|&\^|[-+*/%&|^<>=!()\[\]{},;.:~])
    """,
    re.VERBOSE | re.DOTALL,
)

_OPENERS = {"(", "[", "{"}
_CLOSERS = {")", "]", "}"}
_TYPE_KEYWORDS = {"map", "struct", "interface", "func"}
_KEYWORDS = {
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
}


def _ends_statement(tok: _Tok) -> bool:
    if tok.kind in ("ident", "number", "string", "rune"):
        return True
    return tok.kind == "op" and tok.value in (")", "]", "}", "++", "--")


def _tokenize(source: str) -> list[_Tok]:
    toks: list[_Tok] = []

    def newline(at: int) -> None:
        if toks and _ends_statement(toks[-1]):
            toks.append(_Tok("op", ";", at))

    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            ch = source[pos]
            if ch in "\"'`":
                raise GoSyntaxError("unterminated literal", pos)
            raise GoSyntaxError(f"unexpected character {ch!r}", pos)
        kind = match.lastgroup
        text = match.group()
        if kind == "block_comment" and (len(text) < 4 or not text.endswith("*/")):
            raise GoSyntaxError("unterminated comment", pos)
        if kind == "newline" or (kind == "block_comment" and "\n" in text):
            newline(pos)
        elif kind not in ("space", "line_comment", "block_comment"):
            toks.append(_Tok("string" if kind == "raw" else kind, text, pos))
        pos = match.end()
    newline(len(source))
    toks.append(_Tok("eof", "", len(source)))
    return toks


class _Parser:
    def __init__(self, toks: list[_Tok]) -> None:
        self.toks = toks
        self.i = 0

    @property
    def tok(self) -> _Tok:
        return self.toks[self.i]

    def peek(self) -> _Tok:
        return self.toks[min(self.i + 1, len(self.toks) - 1)]

    def advance(self) -> _Tok:
        tok = self.toks[self.i]
        if tok.kind != "eof":
            self.i += 1
        return tok

    def at(self, value: str) -> bool:
        return self.tok.kind == "op" and self.tok.value == value

    def at_keyword(self, word: str) -> bool:
        return self.tok.kind == "ident" and self.tok.value == word

    def peek_is(self, *values: str) -> bool:
        nxt = self.peek()
        return nxt.kind == "op" and nxt.value in values

    def error(self, message: str) -> GoSyntaxError:
        tok = self.tok
        found = tok.value if tok.kind != "eof" else "EOF"
        return GoSyntaxError(f"{message}, found {found!r}", tok.pos)

    def expect(self, value: str) -> _Tok:
        if not self.at(value):
            raise self.error(f"expected {value!r}")
        return self.advance()

    def expect_ident(self) -> Ident:
        if self.tok.kind != "ident" or self.tok.value in _KEYWORDS:
            raise self.error("expected identifier")
        tok = self.advance()
        return Ident(tok.value, tok.pos)

    def end_of_decl(self) -> None:
        if self.tok.kind != "eof":
            self.expect(";")

    # -- declarations ---------------------------------------------------

    def file(self) -> GoFile:
        while self.at(";"):
            self.advance()
        if not self.at_keyword("package"):
            raise self.error("expected 'package' clause")
        self.advance()
        package = self.expect_ident()
        self.end_of_decl()
        decls: list[Union[TypeSpec, FuncDecl]] = []
        while self.tok.kind != "eof":
            if self.at(";"):
                self.advance()
            elif self.tok.kind == "ident" and self.tok.value in ("import", "var", "const"):
                self.advance()
                self.skip_decl_body()
            elif self.at_keyword("type"):
                self.advance()
                decls.extend(self.type_decl())
            elif self.at_keyword("func"):
                decls.append(self.func_decl())
            else:
                raise self.error("expected declaration")
        return GoFile(package, decls)

    def skip_balanced(self) -> None:
        opener = self.advance()
        depth = 1
        while depth:
            tok = self.tok
            if tok.kind == "eof":
                raise GoSyntaxError("unbalanced brackets", opener.pos)
            if tok.kind == "op":
                if tok.value in _OPENERS:
                    depth += 1
                elif tok.value in _CLOSERS:
                    depth -= 1
            self.advance()

    def skip_decl_body(self) -> None:
        if self.at("("):
            self.skip_balanced()
            return
        depth = 0
        while True:
            tok = self.tok
            if tok.kind == "eof":
                if depth:
                    raise self.error("unbalanced brackets")
                return
            if tok.kind == "op":
                if tok.value in _OPENERS:
                    depth += 1
                elif tok.value in _CLOSERS:
                    depth -= 1
                    if depth < 0:
                        raise self.error("unexpected closing bracket")
                elif tok.value == ";" and depth == 0:
                    return
            self.advance()

    def type_decl(self) -> list[TypeSpec]:
        if not self.at("("):
            spec = self.type_spec()
            self.end_of_decl()
            return [spec]
        self.advance()
        specs = []
        while not self.at(")"):
            if self.at(";"):
                self.advance()
                continue
            specs.append(self.type_spec())
            if not self.at(")"):
                self.expect(";")
        self.advance()
        self.end_of_decl()
        return specs

    def type_spec(self) -> TypeSpec:
        name = self.expect_ident()
        if self.at("="):
            self.advance()
        return TypeSpec(name, self.type_expr(), name.pos)

    def func_decl(self) -> FuncDecl:
        pos = self.advance().pos
        recv = self.param_list() if self.at("(") else None
        name = self.expect_ident()
        if self.at("["):
            self.skip_balanced()
        ftype = self.signature(pos)
        if self.at("{"):
            self.skip_balanced()
        self.end_of_decl()
        return FuncDecl(name, recv, ftype, pos)

    # -- types ----------------------------------------------------------

    def type_expr(self) -> Expr:
        tok = self.tok
        if tok.kind == "ident":
            if tok.value == "map":
                self.advance()
                self.expect("[")
                key = self.type_expr()
                self.expect("]")
                return MapType(key, self.type_expr(), tok.pos)
            if tok.value == "struct":
                return self.struct_type()
            if tok.value == "interface":
                return self.interface_type()
            if tok.value == "func":
                self.advance()
                return self.signature(tok.pos)
            ident = self.expect_ident()
            if self.at(".") and self.peek().kind == "ident":
                self.advance()
                return SelectorExpr(ident, self.expect_ident(), tok.pos)
            return ident
        if self.at("*"):
            self.advance()
            return StarExpr(self.type_expr(), tok.pos)
        if self.at("["):
            self.advance()
            if self.at("]"):
                self.advance()
                return ArrayType(self.type_expr(), pos=tok.pos)
            length = self.array_length()
            return ArrayType(self.type_expr(), length=length, pos=tok.pos)
        if self.at("("):
            self.advance()
            inner = self.type_expr()
            self.expect(")")
            return inner
        raise self.error("expected type")

    def array_length(self) -> str:
        parts = []
        depth = 0
        while not (depth == 0 and self.at("]")):
            tok = self.tok
            if tok.kind == "eof":
                raise self.error("unterminated array length")
            if tok.kind == "op":
                if tok.value in _OPENERS:
                    depth += 1
                elif tok.value in _CLOSERS:
                    depth -= 1
            parts.append(tok.value)
            self.advance()
        self.advance()
        return "".join(parts)

    def struct_type(self) -> StructType:
        pos = self.advance().pos
        self.expect("{")
        fields = []
        while not self.at("}"):
            if self.at(";"):
                self.advance()
                continue
            fields.append(self.struct_field())
            if not self.at("}"):
                self.expect(";")
        self.advance()
        return StructType(fields, pos)

    def struct_field(self) -> AstField:
        tok = self.tok
        embedded = self.at("*") or (
            tok.kind == "ident"
            and (self.peek_is(".", ";", "}") or self.peek().kind == "string")
        )
        if embedded:
            names: list[Ident] = []
        else:
            names = [self.expect_ident()]
            while self.at(","):
                self.advance()
                names.append(self.expect_ident())
        ftype = self.type_expr()
        tag = self.advance().value if self.tok.kind == "string" else None
        return AstField(names, ftype, tag, tok.pos)

    def interface_type(self) -> InterfaceType:
        pos = self.advance().pos
        self.expect("{")
        methods = []
        while not self.at("}"):
            if self.at(";"):
                self.advance()
                continue
            tok = self.tok
            if tok.kind == "ident" and self.peek_is("("):
                name = self.expect_ident()
                methods.append(AstField([name], self.signature(tok.pos), None, tok.pos))
            else:
                methods.append(AstField([], self.type_expr(), None, tok.pos))
            if not self.at("}"):
                self.expect(";")
        self.advance()
        return InterfaceType(methods, pos)

    def starts_type(self) -> bool:
        tok = self.tok
        if tok.kind == "ident":
            return tok.value not in _KEYWORDS or tok.value in _TYPE_KEYWORDS
        return tok.kind == "op" and tok.value in ("*", "[")

    def signature(self, pos: int) -> FuncType:
        params = self.param_list()
        results: list[AstField] = []
        if self.at("("):
            results = self.param_list()
        elif self.starts_type():
            start = self.tok.pos
            results = [AstField([], self.type_expr(), None, start)]
        return FuncType(params, results, pos)

    def param_list(self) -> list[AstField]:
        start = self.expect("(").pos
        items: list[tuple[Optional[Ident], Optional[Expr], int]] = []
        while not self.at(")"):
            items.append(self.param_item())
            if not self.at(")"):
                self.expect(",")
        self.advance()
        return self.group_params(items, start)

    def param_item(self) -> tuple[Optional[Ident], Optional[Expr], int]:
        tok = self.tok
        if tok.kind == "ident" and tok.value not in _KEYWORDS:
            if self.peek_is(",", ")"):
                return self.expect_ident(), None, tok.pos
            if not self.peek_is("."):
                name = self.expect_ident()
                return name, self.param_type(), tok.pos
        return None, self.param_type(), tok.pos

    def param_type(self) -> Expr:
        tok = self.tok
        if self.at("..."):
            self.advance()
            return ArrayType(self.type_expr(), variadic=True, pos=tok.pos)
        return self.type_expr()

    @staticmethod
    def group_params(items, start: int) -> list[AstField]:
        if not any(name is not None and ptype is not None for name, ptype, _ in items):
            return [
                AstField([], ptype if ptype is not None else name, None, pos)
                for name, ptype, pos in items
            ]
        fields = []
        pending: list[Ident] = []
        for name, ptype, pos in items:
            if ptype is None:
                pending.append(name)
                continue
            if name is None:
                raise GoSyntaxError("mixed named and unnamed parameters", pos)
            first = pending[0].pos if pending else pos
            fields.append(AstField(pending + [name], ptype, None, first))
            pending = []
        if pending:
            raise GoSyntaxError("mixed named and unnamed parameters", pending[0].pos)
        return fields


def parse_file(source: Union[str, bytes]) -> GoFile:
    """Parse the declarations of a Go source file."""
    if isinstance(source, bytes):
        source = source.decode("utf-8")
    return _Parser(_tokenize(source)).file()