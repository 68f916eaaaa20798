"""Schema IR - the normalized endpoint contract records fetchmap emits.

One SchemaIR describes one inferred HTTP call: method, URL template and the
shapes of its request and response bodies. Records are identified by
(method, endpoint); duplicates are merged with a union-only policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from fetchmap.config import SCHEMA_SOURCE

# ObjectSchema.type values
STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
ARRAY = "array"
OBJECT = "object"
ANY = "any"


@dataclass
class Field:
    """A property of an object schema."""

    type: str
    required: bool
    nested: ObjectSchema | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "required": self.required}
        if self.nested is not None:
            out["nested"] = self.nested.to_dict()
        return out


@dataclass
class ObjectSchema:
    """A structural type node."""

    type: str
    fields: dict[str, Field] | None = None  # only for type == "object"
    items: ObjectSchema | None = None  # only for type == "array"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.fields is not None:
            out["fields"] = {
                name: f.to_dict() for name, f in self.fields.items()
            }
        if self.items is not None:
            out["items"] = self.items.to_dict()
        return out


@dataclass
class SchemaIR:
    """One inferred contract fact for an endpoint."""

    endpoint: str
    method: str
    request: ObjectSchema | None = None
    response: dict[int, ObjectSchema] | None = None
    source: str = SCHEMA_SOURCE

    @property
    def key(self) -> str:
        """Merge identity: METHOD:endpoint."""
        return f"{self.method}:{self.endpoint}"

    def merge(self, other: SchemaIR) -> None:
        """Fold another record with the same key into this one.

        Only fills gaps: an existing request is kept, and existing status
        codes are never overwritten.
        """
        if other.request is not None and self.request is None:
            self.request = other.request
        if other.response is not None:
            if self.response is None:
                self.response = dict(other.response)
            else:
                for code, schema in other.response.items():
                    if code not in self.response:
                        self.response[code] = schema

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "endpoint": self.endpoint,
            "method": self.method,
            "source": self.source,
        }
        if self.request is not None:
            out["request"] = self.request.to_dict()
        if self.response is not None:
            out["response"] = {
                str(code): schema.to_dict()
                for code, schema in self.response.items()
            }
        return out


def schemas_to_json_ready(schemas: list[SchemaIR]) -> list[dict[str, Any]]:
    """Convert records to plain dicts for json.dumps."""
    return [s.to_dict() for s in schemas]
