"""Links field types to the messages and enums they name."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .model import Enum, FieldType, Message, Svcdef


@dataclass(frozen=True)
class TypeBox:
    """Holds either a message or an enum definition."""

    message: Optional[Message] = None
    enum: Optional[Enum] = None


def new_type_map(sd: Svcdef) -> dict[str, TypeBox]:
    """Map every message and enum name of ``sd`` to its definition.

    Enums are added after messages, so an enum wins over a message of the
    same name.
    """
    tmap = {msg.name: TypeBox(message=msg) for msg in sd.messages}
    tmap.update({enum.name: TypeBox(enum=enum) for enum in sd.enums})
    return tmap


def resolve_types(sd: Svcdef) -> None:
    """Attach definitions to message field types and service method types."""
    tmap = new_type_map(sd)
    for msg in sd.messages:
        for fld in msg.fields:
            set_type(fld.type, tmap)
    if sd.service is not None:
        for method in sd.service.methods:
            set_type(method.request_type, tmap)
            set_type(method.response_type, tmap)


def set_type(field_type: Optional[FieldType], tmap: dict[str, TypeBox]) -> None:
    """Set the message or enum of ``field_type`` from ``tmap``.

    For a map whose values are pointers, the value type is resolved instead.
    """
    if field_type is None:
        return
    if field_type.map is not None and field_type.map.value_type.star_expr:
        field_type = field_type.map.value_type
    entry = tmap.get(field_type.name)
    if entry is None:
        return
    if entry.enum is not None:
        field_type.enum = entry.enum
    elif entry.message is not None:
        field_type.message = entry.message