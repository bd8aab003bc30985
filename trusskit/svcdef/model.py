"""Data model describing a gRPC service as seen through its generated Go code."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Enum:
    """A protobuf enum type."""

    name: str


@dataclass
class FieldType:
    """The type of one message field.

    ``message`` is left out of comparisons and of the repr so that messages
    which refer to themselves, directly or through other messages, can still
    be compared and printed.
    """

    name: str = ""
    enum: Optional[Enum] = None
    oneof: Optional[list[Field]] = None
    message: Optional[Message] = field(default=None, compare=False, repr=False)
    map: Optional[Map] = None
    star_expr: bool = False
    array_type: bool = False


@dataclass
class Field:
    """A field of a protobuf message.

    ``pb_field_name`` is the name as written in the .proto file, for example
    ``snake_case`` where ``name`` would be ``SnakeCase``.
    """

    name: str = ""
    pb_field_name: str = ""
    type: FieldType = field(default_factory=FieldType)


@dataclass
class Message:
    """A protobuf message, greatly simplified."""

    name: str
    fields: list[Field] = field(default_factory=list)


@dataclass
class Map:
    """A map field type; the key is always a base type."""

    key_type: FieldType = field(default_factory=FieldType)
    value_type: FieldType = field(default_factory=FieldType)


@dataclass
class HTTPParameter:
    """Where one request field is found for a given HTTP binding.

    ``location`` is one of "body", "path" or "query".
    """

    field: Field
    location: str


@dataclass
class HTTPBinding:
    """One mapping of a service method onto an HTTP verb and path."""

    verb: str = ""
    path: str = ""
    params: list[HTTPParameter] = field(default_factory=list)


@dataclass
class ServiceMethod:
    """An rpc of the service together with its HTTP bindings."""

    name: str
    request_type: Optional[FieldType] = None
    response_type: Optional[FieldType] = None
    bindings: list[HTTPBinding] = field(default_factory=list)


@dataclass
class Service:
    """The gRPC service and its methods."""

    name: str
    methods: list[ServiceMethod] = field(default_factory=list)


@dataclass
class Svcdef:
    """Top-level definition of a service.

    ``pkg_name`` is the Go package name of the last Go file analysed.
    """

    pkg_name: str = ""
    messages: list[Message] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    service: Optional[Service] = None


@dataclass
class DebugInfo:
    """Context used only to make error messages point into a source file."""

    path: str = ""
    source: str = ""

    def position(self, offset: int) -> str:
        """Return ``line:column`` for a character offset, or "-" if it is invalid."""
        if offset < 0:
            return "-"
        if offset > len(self.source):
            raise ValueError(f"offset {offset} is beyond the end of {self.path!r}")
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1) + 1
        return f"{line}:{column}"


class LocationError(Exception):
    """An error that carries the file and position where it was found."""

    def __init__(self, err: str, path: str, position: str) -> None:
        self.err = err
        self.path = path
        self.position = position
        super().__init__(
            f"{err} in file {json.dumps(path, ensure_ascii=False)} at line {position}"
        )

    @property
    def location(self) -> str:
        """The position within the file."""
        return self.position