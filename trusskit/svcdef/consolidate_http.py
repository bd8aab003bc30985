"""Adds HTTP bindings and their parameters to the methods of a service."""

from __future__ import annotations

import logging
import re
from typing import IO, Mapping, Optional, Union

from ..naming import camel_case
from ..svcparse import parser as svcparse
from ..svcparse.lexer import SvcLexer
from .model import Field, HTTPBinding, HTTPParameter, Service, ServiceMethod, Svcdef

log = logging.getLogger(__name__)

Source = Union[str, bytes, IO]

_PATH_PARAM = re.compile(r"\{(.*?)\}")
_STANDARD_VERBS = ("get", "put", "post", "delete", "patch")


def _read_text(source: Source) -> str:
    """Return the text of a string, bytes or readable object."""
    data = source.read() if hasattr(source, "read") else source
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return data


def consolidate_http(sd: Svcdef, proto_files: Optional[Mapping[str, Source]]) -> None:
    """Parse the HTTP options of each .proto source and attach them to ``sd``.

    Sources without a service are skipped. If an rpc lacks HTTP annotations a
    warning is logged and no further sources are processed.
    """
    for source in (proto_files or {}).values():
        lex = SvcLexer(_read_text(source))
        try:
            httpsvc = svcparse.parse_service(lex)
        except svcparse.OptionalParseError:
            log.warning(
                "Parser found rpc method which lacks HTTP annotations; this is "
                "allowed, but will result in HTTP transport not being generated."
            )
            return
        except EOFError:
            continue
        except svcparse.ParserError as err:
            raise svcparse.ParserError(
                f"error while parsing http options for the service definition: {err}"
            ) from err
        try:
            assemble_http_params(sd.service, httpsvc)
        except ValueError as err:
            raise ValueError(f"while assembling HTTP parameters: {err}") from err


def _new_binding(method: ServiceMethod, parsed: svcparse.HTTPBinding) -> HTTPBinding:
    msg = method.request_type.message if method.request_type is not None else None
    if msg is None:
        raise ValueError(
            f"request type of service method {method.name!r} is not a known message"
        )
    verb, path = get_verb(parsed)
    params = [
        HTTPParameter(field=fld, location=param_location(fld, parsed)) for fld in msg.fields
    ]
    return HTTPBinding(verb=verb, path=path, params=params)


def assemble_http_params(svc: Optional[Service], httpsvc: svcparse.Service) -> None:
    """Create one HTTP binding per parsed binding on the matching service method."""
    methods = svc.methods if svc is not None else []
    for parsed_method in httpsvc.methods:
        wanted = camel_case(parsed_method.name)
        method = next((m for m in methods if m.name == wanted), None)
        if method is None:
            raise ValueError(f"cannot find service method named {parsed_method.name!r}")
        for parsed in parsed_method.http_bindings:
            method.bindings.append(_new_binding(method, parsed))


def get_verb(binding: svcparse.HTTPBinding) -> tuple[str, str]:
    """Return the verb and path of a binding, or two empty strings.

    A custom pattern takes precedence over the standard verb fields.
    """
    if binding.custom_http_pattern is not None:
        verb = path = ""
        for fld in binding.custom_http_pattern:
            if fld.kind == "kind":
                verb = fld.value
            elif fld.kind == "path":
                path = fld.value
        return verb, path
    for fld in binding.fields:
        if fld.kind in _STANDARD_VERBS:
            return fld.kind, fld.value
    return "", ""


def param_location(field: Field, binding: svcparse.HTTPBinding) -> str:
    """Return "path", "body" or "query" for ``field`` under ``binding``."""
    for param in get_path_params(binding):
        if camel_case(param.split(".")[0]) == field.name:
            return "path"
    for opt in binding.fields:
        if opt.kind != "body":
            continue
        if (
            opt.value == "*"
            or opt.value == field.name
            or camel_case(opt.value.split(".")[0]) == field.name
        ):
            return "body"
    return "query"


def get_path_params(binding: svcparse.HTTPBinding) -> list[str]:
    """Return the names of the variables in the binding's path."""
    _, path = get_verb(binding)
    return [param.split("=")[0] for param in _PATH_PARAM.findall(path)]