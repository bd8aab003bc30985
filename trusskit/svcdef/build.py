"""Builds a service definition from generated Go code and .proto sources."""

from __future__ import annotations

import json
import logging
from typing import Mapping, Optional

from .consolidate_http import Source, _read_text, consolidate_http
from .goparse import (
    ArrayType,
    AstField,
    Expr,
    FuncType,
    GoSyntaxError,
    Ident,
    InterfaceType,
    MapType,
    SelectorExpr,
    StarExpr,
    StructType,
    TypeSpec,
    parse_file,
)
from .model import (
    DebugInfo,
    Enum,
    Field,
    FieldType,
    LocationError,
    Map,
    Message,
    Service,
    ServiceMethod,
    Svcdef,
)
from .resolvetypes import resolve_types

log = logging.getLogger(__name__)

Oneofs = dict[str, list[Field]]


def _is_exported_struct(spec: TypeSpec) -> bool:
    return isinstance(spec.type, StructType) and spec.name.is_exported()


def new(
    go_files: Mapping[str, Source], proto_files: Optional[Mapping[str, Source]] = None
) -> Svcdef:
    """Create a Svcdef from generated Go sources and the .proto sources."""
    sd = Svcdef()
    oneofs: Oneofs = {}

    for path, source in go_files.items():
        text = _read_text(source)
        try:
            gofile = parse_file(text)
        except GoSyntaxError as err:
            raise GoSyntaxError(
                f"cannot parse go file {path!r} to create Svcdef: {err}", err.pos
            ) from err
        info = DebugInfo(path=path, source=text)
        sd.pkg_name = gofile.package.name
        specs = gofile.type_specs

        oneof_ifaces: set[str] = set()
        for spec in specs:
            if not isinstance(spec.type, InterfaceType):
                continue
            name = spec.name.name
            if name.endswith("Server"):
                sd.service = new_service(spec, info)
            elif name.startswith("is"):
                oneof_ifaces.add(name)
            elif not name.endswith("Client"):
                log.warning("Unexpected interface %s found; skipping", name)

        oneof_types: dict[str, str] = {}
        if not oneofs:
            for decl in gofile.func_decls:
                if decl.name.name not in oneof_ifaces or not decl.recv:
                    continue
                recv = decl.recv[0].type
                if isinstance(recv, StarExpr) and isinstance(recv.x, Ident):
                    oneof_types[recv.x.name] = decl.name.name
            for spec in specs:
                if not _is_exported_struct(spec) or spec.name.name not in oneof_types:
                    continue
                msg = new_message(spec, oneofs)
                if msg.fields:
                    first = msg.fields[0]
                    first.type.message = Message(name=msg.name)
                    oneofs.setdefault(oneof_types[spec.name.name], []).append(first)

        for spec in specs:
            if isinstance(spec.type, Ident):
                if spec.type.name == "int32":
                    sd.enums.append(new_enum(spec))
            elif _is_exported_struct(spec) and spec.name.name not in oneof_types:
                sd.messages.append(new_message(spec, oneofs))

    resolve_types(sd)
    consolidate_http(sd, proto_files)
    return sd


def new_enum(spec: TypeSpec) -> Enum:
    """Return the enum declared by ``spec``."""
    return Enum(name=spec.name.name)


def new_message(spec: TypeSpec, oneofs: Optional[Oneofs] = None) -> Message:
    """Return the message declared by a struct type spec.

    Fields whose names start with ``XXX_`` and embedded fields are left out.
    """
    if not isinstance(spec.type, StructType):
        raise TypeError(f"type {spec.name.name!r} is not a struct")
    msg = Message(name=spec.name.name)
    for fld in spec.type.fields:
        if not fld.names or fld.names[0].name.startswith("XXX_"):
            continue
        msg.fields.append(new_field(fld, oneofs))
    return msg


def new_map(expr: Expr) -> Map:
    """Return a Map for a map type whose key is a plain identifier."""
    if not isinstance(expr, MapType):
        raise TypeError("expected a map type")
    if not isinstance(expr.key, Ident):
        raise TypeError("map key type must be an identifier")
    result = Map()
    result.key_type.name = expr.key.name
    value = expr.value
    while isinstance(value, StarExpr):
        result.value_type.star_expr = True
        value = value.x
    if isinstance(value, Ident):
        result.value_type.name = value.name
    return result


def _location_error(message: str, info: Optional[DebugInfo], pos: int) -> LocationError:
    if info is None:
        return LocationError(message, "", "")
    return LocationError(message, info.path, info.position(pos))


def _wrap(err: LocationError, context: str) -> LocationError:
    return LocationError(f"{context}: {err.err}", err.path, err.position)


def new_service(spec: TypeSpec, info: Optional[DebugInfo] = None) -> Service:
    """Return the service described by a ``<Name>Server`` interface."""
    if not isinstance(spec.type, InterfaceType):
        raise TypeError(f"type {spec.name.name!r} is not an interface")
    name = spec.name.name
    if name.endswith("Server"):
        name = name[: -len("Server")]
    svc = Service(name=name)
    for method in spec.type.methods:
        try:
            svc.methods.append(new_service_method(method, info))
        except LocationError as err:
            method_name = method.names[0].name if method.names else ""
            raise _wrap(
                err, f"cannot create service method {method_name!r} of service {name!r}"
            ) from err
    return svc


def _pointer_type(param: AstField, info: Optional[DebugInfo]) -> FieldType:
    if not isinstance(param.type, StarExpr):
        raise _location_error(
            "cannot create FieldType, parameter type is not a pointer", info, param.pos
        )
    target = param.type.x
    if isinstance(target, SelectorExpr):
        name = target.sel.name
    elif isinstance(target, Ident):
        name = target.name
    else:
        raise _location_error(
            "cannot create FieldType, pointer target is not an identifier or selector",
            info,
            param.type.pos,
        )
    return FieldType(name=name, star_expr=True)


def new_service_method(field: AstField, info: Optional[DebugInfo] = None) -> ServiceMethod:
    """Return the method described by an interface method ``(ctx, *Req) (*Resp, error)``."""
    name = field.names[0].name if field.names else ""
    method = ServiceMethod(name=name)
    if not isinstance(field.type, FuncType):
        raise _location_error(
            "provided field type is not a function type; cannot proceed", info, field.pos
        )
    params, results = field.type.params, field.type.results
    if len(params) < 2 or not results:
        raise _location_error(
            f"service method {name!r} must take a context and a request and return a response",
            info,
            field.pos,
        )
    try:
        method.request_type = _pointer_type(params[1], info)
    except LocationError as err:
        raise _wrap(err, f"requestType creation of service method {name!r} failed") from err
    try:
        method.response_type = _pointer_type(results[0], info)
    except LocationError as err:
        raise _wrap(err, f"responseType creation of service method {name!r} failed") from err
    return method


def _struct_tag_get(tag: str, key: str) -> str:
    """Return the value under ``key`` in a conventional struct tag."""
    while tag:
        tag = tag.lstrip(" ")
        if not tag:
            break
        i = 0
        while i < len(tag) and tag[i] > " " and tag[i] not in ':"\x7f':
            i += 1
        if i == 0 or i + 1 >= len(tag) or tag[i] != ":" or tag[i + 1] != '"':
            break
        name, tag = tag[:i], tag[i + 1 :]
        i = 1
        while i < len(tag) and tag[i] != '"':
            if tag[i] == "\\":
                i += 1
            i += 1
        if i >= len(tag):
            break
        quoted, tag = tag[: i + 1], tag[i + 1 :]
        if name == key:
            try:
                value = json.loads(quoted)
            except ValueError:
                return ""
            return value if isinstance(value, str) else ""
    return ""


def _pb_field_name(tag_literal: str) -> str:
    parts = _struct_tag_get(tag_literal[1:-1], "protobuf").split(",")
    if len(parts) < 4:
        return ""
    for part in parts[3:5]:
        _, sep, value = part.partition("=")
        if sep:
            return value
    return ""


def _follow_type(expr: Expr, result: Field, oneofs: Oneofs) -> None:
    ftype = result.type
    if isinstance(expr, Ident):
        ftype.name += expr.name
        if expr.name in oneofs:
            ftype.oneof = oneofs[expr.name]
    elif isinstance(expr, StarExpr):
        ftype.star_expr = True
        _follow_type(expr.x, result, oneofs)
    elif isinstance(expr, ArrayType):
        # Nested slices such as [][]byte keep the inner "[]" in the name.
        if ftype.array_type:
            ftype.name = "[]" + ftype.name
        ftype.array_type = True
        _follow_type(expr.elt, result, oneofs)
    elif isinstance(expr, MapType):
        ftype.map = new_map(expr)


def new_field(field: AstField, oneofs: Optional[Oneofs] = None) -> Field:
    """Return the message field described by a struct field."""
    if not field.names:
        raise ValueError("struct field has no name")
    result = Field(name=field.names[0].name)
    if field.tag is not None:
        result.pb_field_name = _pb_field_name(field.tag)
    _follow_type(field.type, result, oneofs or {})
    return result