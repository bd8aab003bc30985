import pytest

from trusskit.svcdef.build import new
from trusskit.svcdef.model import (
    Enum,
    Field,
    FieldType,
    Map,
    Message,
    Service,
    ServiceMethod,
    Svcdef,
)
from trusskit.svcdef.resolvetypes import TypeBox, new_type_map, resolve_types, set_type


def test_new_type_map_holds_messages_and_enums():
    msg = Message(name="A")
    enum = Enum(name="E")
    tmap = new_type_map(Svcdef(messages=[msg], enums=[enum]))
    assert tmap["A"].message is msg
    assert tmap["A"].enum is None
    assert tmap["E"].enum is enum
    assert tmap["E"].message is None
    assert set(tmap) == {"A", "E"}


def test_enum_overrides_message_of_same_name():
    msg = Message(name="X")
    enum = Enum(name="X")
    tmap = new_type_map(Svcdef(messages=[msg], enums=[enum]))
    assert tmap["X"] == TypeBox(enum=enum)


def test_set_type_message_and_enum():
    msg = Message(name="M")
    enum = Enum(name="E")
    tmap = {"M": TypeBox(message=msg), "E": TypeBox(enum=enum)}
    mtype = FieldType(name="M", star_expr=True)
    etype = FieldType(name="E")
    set_type(mtype, tmap)
    set_type(etype, tmap)
    assert mtype.message is msg
    assert etype.enum is enum
    assert etype.message is None


def test_set_type_unknown_name_is_left_alone():
    ftype = FieldType(name="int64")
    set_type(ftype, {"M": TypeBox(message=Message(name="M"))})
    assert ftype.message is None and ftype.enum is None


def test_set_type_map_with_pointer_values_resolves_value_type():
    msg = Message(name="M")
    ftype = FieldType(
        map=Map(key_type=FieldType(name="string"), value_type=FieldType(name="M", star_expr=True))
    )
    set_type(ftype, {"M": TypeBox(message=msg)})
    assert ftype.map.value_type.message is msg
    assert ftype.message is None


def test_set_type_map_with_plain_values_is_not_resolved():
    enum = Enum(name="E")
    ftype = FieldType(map=Map(key_type=FieldType(name="string"), value_type=FieldType(name="E")))
    set_type(ftype, {"E": TypeBox(enum=enum)})
    assert ftype.map.value_type.enum is None


def test_resolve_types_covers_fields_and_service_methods():
    req = Message(name="Req", fields=[Field(name="Inner", type=FieldType(name="Inner", star_expr=True))])
    inner = Message(name="Inner")
    method = ServiceMethod(
        name="Do",
        request_type=FieldType(name="Req", star_expr=True),
        response_type=FieldType(name="Inner", star_expr=True),
    )
    sd = Svcdef(messages=[req, inner], service=Service(name="S", methods=[method]))
    resolve_types(sd)
    assert req.fields[0].type.message is inner
    assert method.request_type.message is req
    assert method.response_type.message is inner


TYPE_RESOLUTION_CODE = """
package TEST
type EnumType int32

type NestedMessageA struct {
	A *NestedMessageC
}
type NestedMessageB struct {
	A []*NestedMessageC
}
type NestedMessageC struct {
	A int64
}

type NestedTypeRequest struct {
	A *NestedMessageA
	B []*NestedMessageB
	C EnumType
}"""


@pytest.mark.parametrize(
    "name, fieldname, typename",
    [
        ("NestedMessageA", "A", "NestedMessageC"),
        ("NestedMessageB", "A", "NestedMessageC"),
        ("NestedTypeRequest", "A", "NestedMessageA"),
        ("NestedTypeRequest", "B", "NestedMessageB"),
        ("NestedTypeRequest", "C", "EnumType"),
    ],
)
def test_type_resolution(name, fieldname, typename):
    sd = new({"/tmp/notreal": TYPE_RESOLUTION_CODE}, None)
    tmap = new_type_map(sd)
    msg = tmap[name].message
    assert msg.name == name
    selected = next(f for f in msg.fields if f.name == fieldname)
    assert selected.type.name == typename
    box = tmap[typename]
    if box.enum is not None:
        assert selected.type.enum is box.enum
    else:
        assert selected.type.message is box.message