"""Type-to-schema translation.

Maps a StaticType onto the ObjectSchema tree emitted in Schema IR. Cycles
are broken by threading the display names of the object types currently
being expanded through the recursion as an immutable tuple; a name already
on the path yields an empty object stub.
"""

from __future__ import annotations

from fetchmap.config import MAX_SCHEMA_DEPTH
from fetchmap.program.types import StaticType
from fetchmap.schema_ir import (
    ANY,
    ARRAY,
    BOOLEAN,
    NUMBER,
    OBJECT,
    STRING,
    Field,
    ObjectSchema,
)


def basic_type(t: StaticType) -> str:
    """Coarse schema type name of a static type (non-primitives -> object)."""
    if t.is_string():
        return STRING
    if t.is_number():
        return NUMBER
    if t.is_boolean():
        return BOOLEAN
    if t.is_array():
        return ARRAY
    return OBJECT


def is_complex(t: StaticType) -> bool:
    """Array or object shaped data that deserves a nested schema."""
    if t.has_call_signatures():
        return False
    return t.is_array() or t.is_object()


def type_to_schema(
    t: StaticType, visited: tuple[str, ...] = ()
) -> ObjectSchema:
    """Translate a static type into an ObjectSchema.

    `visited` holds the display names of the object types on the path from
    the root. A type already on that path, or a path MAX_SCHEMA_DEPTH long,
    yields a bare {type: object} stub so recursive types terminate.
    """
    if len(visited) >= MAX_SCHEMA_DEPTH:
        return ObjectSchema(type=OBJECT)
    if t.is_string():
        return ObjectSchema(type=STRING)
    if t.is_number():
        return ObjectSchema(type=NUMBER)
    if t.is_boolean():
        return ObjectSchema(type=BOOLEAN)
    if t.is_array():
        return ObjectSchema(
            type=ARRAY, items=type_to_schema(t.array_element_type(), visited)
        )
    if t.is_object() and not t.has_call_signatures():
        name = t.display_name
        if name in visited:
            return ObjectSchema(type=OBJECT)
        path = (*visited, name)
        fields: dict[str, Field] = {}
        for prop in t.properties():
            prop_type = prop.type
            if prop_type.has_call_signatures():
                continue
            nested = None
            if is_complex(prop_type):
                nested = type_to_schema(prop_type, path)
            fields[prop.name] = Field(
                type=basic_type(prop_type),
                required=not prop.optional,
                nested=nested,
            )
        return ObjectSchema(type=OBJECT, fields=fields)
    return ObjectSchema(type=ANY)
