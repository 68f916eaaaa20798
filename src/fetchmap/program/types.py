"""Static type model and a best-effort type checker for TypeScript.

Types are built lazily: object members and array elements are thunks that
resolve on first access, so self-referential declarations (a User with a
`friends: User[]` field) construct in constant time and only expand as far
as a consumer walks them.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from enum import Enum
from types import MappingProxyType

import structlog
from tree_sitter import Node

from fetchmap.program import nodes
from fetchmap.program.source import Program, SourceFile
from fetchmap.program.symbols import Declaration, SymbolResolver

logger = structlog.get_logger(__name__)


class TypeKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    FUNCTION = "function"
    NULLISH = "nullish"
    ANY = "any"


class Property:
    """A declared member of an object type."""

    __slots__ = ("name", "optional", "_thunk", "_type")

    def __init__(
        self,
        name: str,
        optional: bool,
        thunk: Callable[[], StaticType],
    ):
        self.name = name
        self.optional = optional
        self._thunk = thunk
        self._type: StaticType | None = None

    @property
    def type(self) -> StaticType:
        if self._type is None:
            self._type = self._thunk()
        return self._type

    def with_optional(self, optional: bool) -> Property:
        return Property(self.name, optional, lambda: self.type)


class StaticType:
    """A resolved static type.

    Query surface: is_string / is_number / is_boolean / is_array /
    array_element_type / is_object / properties / has_call_signatures /
    display_name.
    """

    __slots__ = ("kind", "display_name", "_element", "_members", "_returns")

    def __init__(
        self,
        kind: TypeKind,
        display_name: str | None = None,
        element: Callable[[], StaticType] | None = None,
        members: Callable[[], list[Property]] | None = None,
        returns: Callable[[], StaticType] | None = None,
    ):
        self.kind = kind
        self.display_name = display_name or kind.value
        self._element = element
        self._members = members
        self._returns = returns

    def __repr__(self) -> str:
        return f"StaticType({self.kind.value}, {self.display_name!r})"

    def is_string(self) -> bool:
        return self.kind is TypeKind.STRING

    def is_number(self) -> bool:
        return self.kind is TypeKind.NUMBER

    def is_boolean(self) -> bool:
        return self.kind is TypeKind.BOOLEAN

    def is_array(self) -> bool:
        return self.kind is TypeKind.ARRAY

    def is_object(self) -> bool:
        return self.kind is TypeKind.OBJECT

    def is_any(self) -> bool:
        return self.kind in (TypeKind.ANY, TypeKind.NULLISH)

    def has_call_signatures(self) -> bool:
        return self.kind is TypeKind.FUNCTION

    def array_element_type(self) -> StaticType:
        if self._element is None:
            return ANY_TYPE
        if not isinstance(self._element, StaticType):
            self._element = self._element()
        return self._element

    def properties(self) -> list[Property]:
        if self._members is None:
            return []
        if callable(self._members):
            self._members = self._members()
        return self._members

    def property(self, name: str) -> Property | None:
        for prop in self.properties():
            if prop.name == name:
                return prop
        return None

    def return_type(self) -> StaticType:
        if self._returns is None:
            return ANY_TYPE
        if not isinstance(self._returns, StaticType):
            self._returns = self._returns()
        return self._returns


STRING_TYPE = StaticType(TypeKind.STRING)
NUMBER_TYPE = StaticType(TypeKind.NUMBER)
BOOLEAN_TYPE = StaticType(TypeKind.BOOLEAN)
NULLISH_TYPE = StaticType(TypeKind.NULLISH)
ANY_TYPE = StaticType(TypeKind.ANY)

_PRIMITIVES = {
    TypeKind.STRING: STRING_TYPE,
    TypeKind.NUMBER: NUMBER_TYPE,
    TypeKind.BOOLEAN: BOOLEAN_TYPE,
}

PREDEFINED_TYPES = {
    "string": STRING_TYPE,
    "number": NUMBER_TYPE,
    "bigint": NUMBER_TYPE,
    "boolean": BOOLEAN_TYPE,
    "null": NULLISH_TYPE,
    "undefined": NULLISH_TYPE,
    "void": NULLISH_TYPE,
    "never": NULLISH_TYPE,
    "object": StaticType(TypeKind.OBJECT, "object", members=list),
}

# library types that carry no data fields worth describing
OPAQUE_OBJECT_TYPES = frozenset(
    {"Date", "Map", "Set", "FormData", "Blob", "File", "URLSearchParams"}
)
UNWRAPPED_GENERICS = frozenset({"Promise", "PromiseLike", "Awaited"})
ARRAY_GENERICS = frozenset({"Array", "ReadonlyArray"})
BOXED_PRIMITIVES = {
    "String": STRING_TYPE,
    "Number": NUMBER_TYPE,
    "Boolean": BOOLEAN_TYPE,
}

# result types of well-known global calls
KNOWN_CALL_TYPES = {
    "JSON.stringify": STRING_TYPE,
    "String": STRING_TYPE,
    "encodeURIComponent": STRING_TYPE,
    "encodeURI": STRING_TYPE,
    "Number": NUMBER_TYPE,
    "parseInt": NUMBER_TYPE,
    "parseFloat": NUMBER_TYPE,
    "Date.now": NUMBER_TYPE,
    "Boolean": BOOLEAN_TYPE,
    "Array.isArray": BOOLEAN_TYPE,
}
STRING_METHODS = frozenset(
    {
        "toString",
        "toUpperCase",
        "toLowerCase",
        "trim",
        "join",
        "replace",
        "toISOString",
        "slice",
        "substring",
        "padStart",
        "padEnd",
    }
)
ARRAY_PRESERVING_METHODS = frozenset(
    {"filter", "slice", "concat", "sort", "reverse", "toSorted"}
)
ARRAY_ELEMENT_METHODS = frozenset({"find", "at", "pop", "shift"})

_STRING_LITERAL = re.compile(r"""["']([^"']+)["']""")

Bindings = Mapping[str, StaticType]
_NO_BINDINGS: Bindings = MappingProxyType({})


def array_of(element: StaticType) -> StaticType:
    return StaticType(
        TypeKind.ARRAY, f"{element.display_name}[]", element=lambda: element
    )


def _normalize(text: str) -> str:
    return " ".join(text.split())


class TypeChecker:
    """Answers type queries for expressions and type annotations."""

    def __init__(self, program: Program, resolver: SymbolResolver):
        self.program = program
        self.resolver = resolver
        self._active: set[tuple[str, int, int, str]] = set()

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def type_of(self, file: SourceFile, node: Node) -> StaticType:
        """Static type of an expression node."""
        key = (str(file.path), node.start_byte, node.end_byte, "expr")
        if key in self._active:
            return ANY_TYPE
        self._active.add(key)
        try:
            return self._infer(file, node)
        finally:
            self._active.discard(key)

    def _infer(self, file: SourceFile, node: Node) -> StaticType:
        kind = node.type
        if kind in ("string", "template_string"):
            return STRING_TYPE
        if kind == "number":
            return NUMBER_TYPE
        if kind in ("true", "false"):
            return BOOLEAN_TYPE
        if kind in ("null", "undefined"):
            return NULLISH_TYPE
        if kind in nodes.TRANSPARENT_KINDS:
            inner = node.named_children
            return self.type_of(file, inner[0]) if inner else ANY_TYPE
        if kind == "identifier":
            decl = self.resolver.resolve_identifier(file, node)
            return self.type_of_declaration(decl) if decl else ANY_TYPE
        if kind == "object":
            return self._object_literal(file, node)
        if kind == "array":
            return self._array_literal(file, node)
        if kind == "member_expression":
            return self._member_access(file, node)
        if kind == "subscript_expression":
            return self._subscript(file, node)
        if kind == "call_expression":
            return self._call_result(file, node)
        if kind == "new_expression":
            ctor = node.child_by_field_name("constructor")
            if ctor is None:
                return ANY_TYPE
            return self.type_of(file, ctor).return_type()
        if kind in ("as_expression", "type_assertion"):
            named = node.named_children
            if kind == "as_expression" and len(named) >= 2:
                return self.type_from_annotation(file, named[1])
            if kind == "type_assertion" and len(named) >= 2:
                return self.type_from_annotation(file, named[0].named_children[0])
            return self.type_of(file, named[0]) if named else ANY_TYPE
        if kind == "satisfies_expression":
            named = node.named_children
            return self.type_of(file, named[0]) if named else ANY_TYPE
        if kind == "ternary_expression":
            result = self._field_type(file, node, "consequence")
            if result.is_any():
                result = self._field_type(file, node, "alternative")
            return result
        if kind == "binary_expression":
            return self._binary(file, node)
        if kind == "unary_expression":
            op = nodes.text(node.child_by_field_name("operator"))
            if op == "!":
                return BOOLEAN_TYPE
            if op == "typeof":
                return STRING_TYPE
            if op in ("-", "+", "~"):
                return NUMBER_TYPE
            return ANY_TYPE
        if kind in nodes.FUNCTION_KINDS:
            return self._function_type(file, node)
        return ANY_TYPE

    def _field_type(self, file: SourceFile, node: Node, name: str) -> StaticType:
        child = node.child_by_field_name(name)
        return self.type_of(file, child) if child is not None else ANY_TYPE

    def _object_literal(self, file: SourceFile, node: Node) -> StaticType:
        def members() -> list[Property]:
            props: dict[str, Property] = {}
            for child in node.named_children:
                if child.type == "pair":
                    key = nodes.property_key(child)
                    value = child.child_by_field_name("value")
                    if key is None or value is None:
                        continue
                    props[key] = Property(
                        key, False, _bind(self.type_of, file, value)
                    )
                elif child.type == "shorthand_property_identifier":
                    key = nodes.text(child)
                    props[key] = Property(
                        key, False, _bind(self._shorthand, file, child)
                    )
                elif child.type == "method_definition":
                    key = nodes.text(child.child_by_field_name("name"))
                    props[key] = Property(
                        key, False, _bind(self._function_type, file, child)
                    )
                elif child.type == "spread_element" and child.named_children:
                    spread = self.type_of(file, child.named_children[0])
                    for prop in spread.properties():
                        props[prop.name] = prop
            return list(props.values())

        return StaticType(
            TypeKind.OBJECT, _normalize(nodes.text(node)), members=members
        )

    def _shorthand(self, file: SourceFile, node: Node) -> StaticType:
        decl = self.resolver.resolve_identifier(file, node)
        return self.type_of_declaration(decl) if decl else ANY_TYPE

    def _array_literal(self, file: SourceFile, node: Node) -> StaticType:
        elements = [c for c in node.named_children if c.type != "comment"]
        if not elements:
            return array_of(ANY_TYPE)
        first = elements[0]
        if first.type == "spread_element":
            inner = first.named_children
            spread = self.type_of(file, inner[0]) if inner else ANY_TYPE
            if spread.is_array():
                return spread
            return array_of(ANY_TYPE)
        element = self.type_of(file, first)
        return array_of(element)

    def _member_access(self, file: SourceFile, node: Node) -> StaticType:
        obj = node.child_by_field_name("object")
        name = nodes.member_name(node)
        if obj is None or name is None:
            return ANY_TYPE
        target = self.type_of(file, obj)
        if name == "length" and (target.is_array() or target.is_string()):
            return NUMBER_TYPE
        prop = target.property(name)
        if prop is None:
            return ANY_TYPE
        return prop.type

    def _subscript(self, file: SourceFile, node: Node) -> StaticType:
        obj = node.child_by_field_name("object")
        index = node.child_by_field_name("index")
        if obj is None:
            return ANY_TYPE
        target = self.type_of(file, obj)
        if target.is_array():
            return target.array_element_type()
        if index is not None and index.type == "string":
            prop = target.property(nodes.text(index)[1:-1])
            if prop is not None:
                return prop.type
        return ANY_TYPE

    def _call_result(self, file: SourceFile, node: Node) -> StaticType:
        name = nodes.callee_text(node)
        if name in KNOWN_CALL_TYPES:
            return KNOWN_CALL_TYPES[name]
        fn = nodes.callee(node)
        if fn is None:
            return ANY_TYPE
        if fn.type == "member_expression":
            method = nodes.member_name(fn) or ""
            obj = fn.child_by_field_name("object")
            receiver = self.type_of(file, obj) if obj is not None else ANY_TYPE
            if receiver.is_array():
                if method in ARRAY_PRESERVING_METHODS:
                    return receiver
                if method in ARRAY_ELEMENT_METHODS:
                    return receiver.array_element_type()
                if method == "join":
                    return STRING_TYPE
                if method in ("includes", "some", "every"):
                    return BOOLEAN_TYPE
            elif receiver.is_string() and method in STRING_METHODS:
                return STRING_TYPE
            elif method in ("toString", "toISOString", "toFixed"):
                return STRING_TYPE
        return self.type_of(file, fn).return_type()

    def _binary(self, file: SourceFile, node: Node) -> StaticType:
        op = nodes.text(node.child_by_field_name("operator"))
        if op in ("===", "!==", "==", "!=", "<", ">", "<=", ">=",
                  "instanceof", "in"):
            return BOOLEAN_TYPE
        left = self._field_type(file, node, "left")
        if op == "&&":
            return self._field_type(file, node, "right")
        if op in ("||", "??"):
            if left.is_any():
                return self._field_type(file, node, "right")
            return left
        right = self._field_type(file, node, "right")
        if op == "+":
            if left.is_string() or right.is_string():
                return STRING_TYPE
            if left.is_number() and right.is_number():
                return NUMBER_TYPE
            return ANY_TYPE
        if op in ("-", "*", "/", "%", "**", "&", "|", "^", "<<", ">>", ">>>"):
            return NUMBER_TYPE
        return ANY_TYPE

    def _function_type(self, file: SourceFile, fn: Node) -> StaticType:
        return StaticType(
            TypeKind.FUNCTION,
            "function",
            returns=_bind(self.return_type_of, file, fn),
        )

    def return_type_of(self, file: SourceFile, fn: Node) -> StaticType:
        """Declared return type, else the first typed return expression."""
        annotation = nodes.return_type_node(fn)
        if annotation is not None:
            return self.type_from_annotation(file, annotation)
        for expr in nodes.returned_expressions(fn):
            result = self.type_of(file, expr)
            if not result.is_any():
                return result
        return ANY_TYPE

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def type_of_declaration(self, decl: Declaration) -> StaticType:
        key = (str(decl.file.path), decl.node.start_byte, decl.node.end_byte,
               "decl:" + decl.name)
        if key in self._active:
            return ANY_TYPE
        self._active.add(key)
        try:
            base = self._declared_type(decl)
        finally:
            self._active.discard(key)
        return _follow_path(base, decl.path)

    def _declared_type(self, decl: Declaration) -> StaticType:
        file, node = decl.file, decl.node
        if decl.kind in ("variable", "parameter"):
            annotation = node.child_by_field_name("type")
            if annotation is not None and annotation.named_children:
                return self.type_from_annotation(
                    file, annotation.named_children[0]
                )
            value = node.child_by_field_name("value")
            if value is not None:
                return self.type_of(file, value)
            return ANY_TYPE
        if decl.kind == "function":
            return self._function_type(file, node)
        if decl.kind == "class":
            instance = self._class_type(file, node, _NO_BINDINGS, decl.name)
            return StaticType(
                TypeKind.FUNCTION, decl.name, returns=lambda: instance
            )
        if decl.kind == "enum":
            member_type = self._enum_type(node)
            body = node.child_by_field_name("body")
            members = [
                Property(name, False, lambda: member_type)
                for name in _enum_member_names(body)
            ]
            return StaticType(TypeKind.OBJECT, decl.name, members=members)
        if decl.kind == "namespace":
            return self._namespace_type(file, decl.name)
        if decl.kind == "expression":
            return self.type_of(file, node)
        return ANY_TYPE

    def _namespace_type(self, file: SourceFile, name: str) -> StaticType:
        def members() -> list[Property]:
            props = []
            for exported in file.exported_names:
                props.append(
                    Property(
                        exported,
                        False,
                        _bind(self._exported_type, file, exported),
                    )
                )
            return props

        return StaticType(TypeKind.OBJECT, name, members=members)

    def _exported_type(self, file: SourceFile, exported: str) -> StaticType:
        decl = self.resolver.resolve_name(file, exported)
        return self.type_of_declaration(decl) if decl else ANY_TYPE

    # ------------------------------------------------------------------
    # Type annotations
    # ------------------------------------------------------------------

    def type_from_annotation(
        self,
        file: SourceFile,
        node: Node,
        bindings: Bindings = _NO_BINDINGS,
    ) -> StaticType:
        """Resolve a type node (the inside of `: T` or `<T>`)."""
        kind = node.type
        if kind == "type_annotation":
            inner = node.named_children
            return (
                self.type_from_annotation(file, inner[0], bindings)
                if inner
                else ANY_TYPE
            )
        if kind == "predefined_type":
            return PREDEFINED_TYPES.get(nodes.text(node), ANY_TYPE)
        if kind == "literal_type":
            return _literal_type(node)
        if kind == "template_literal_type":
            return STRING_TYPE
        if kind in ("parenthesized_type", "readonly_type"):
            inner = node.named_children
            return (
                self.type_from_annotation(file, inner[-1], bindings)
                if inner
                else ANY_TYPE
            )
        if kind == "array_type":
            inner = node.named_children
            element = (
                self.type_from_annotation(file, inner[0], bindings)
                if inner
                else ANY_TYPE
            )
            return array_of(element)
        if kind == "tuple_type":
            members = [c for c in node.named_children if c.type != "comment"]
            if not members:
                return array_of(ANY_TYPE)
            return array_of(
                self.type_from_annotation(file, members[0], bindings)
            )
        if kind == "union_type":
            return self._union(file, node, bindings)
        if kind == "intersection_type":
            return self._intersection(file, node, bindings)
        if kind == "object_type":
            return self._object_type(
                file, node, bindings, _normalize(nodes.text(node))
            )
        if kind in ("function_type", "constructor_type"):
            return StaticType(TypeKind.FUNCTION, _normalize(nodes.text(node)))
        if kind == "type_identifier":
            name = nodes.text(node)
            if name in bindings:
                return bindings[name]
            return self._named_type(file, name, [], [])
        if kind == "nested_type_identifier":
            name = nodes.text(node.child_by_field_name("name"))
            return self._named_type(file, name, [], [])
        if kind == "generic_type":
            return self._generic(file, node, bindings)
        if kind == "type_query":
            inner = node.named_children
            return self.type_of(file, inner[0]) if inner else ANY_TYPE
        if kind == "lookup_type":
            return self._lookup(file, node, bindings)
        if kind == "index_type_query":
            return STRING_TYPE
        return ANY_TYPE

    def _union(
        self, file: SourceFile, node: Node, bindings: Bindings
    ) -> StaticType:
        members = [
            self.type_from_annotation(file, m, bindings)
            for m in _flatten_union(node)
        ]
        present = [m for m in members if m.kind is not TypeKind.NULLISH]
        if not present:
            return NULLISH_TYPE
        if len(present) == 1:
            return present[0]
        kinds = {m.kind for m in present}
        if len(kinds) == 1:
            only = kinds.pop()
            if only in _PRIMITIVES:
                return _PRIMITIVES[only]
        return ANY_TYPE

    def _intersection(
        self, file: SourceFile, node: Node, bindings: Bindings
    ) -> StaticType:
        parts = [
            self.type_from_annotation(file, m, bindings)
            for m in node.named_children
            if m.type != "comment"
        ]
        objects = [p for p in parts if p.is_object()]
        if not objects:
            return parts[0] if parts else ANY_TYPE

        def members() -> list[Property]:
            merged: dict[str, Property] = {}
            for part in objects:
                for prop in part.properties():
                    merged[prop.name] = prop
            return list(merged.values())

        return StaticType(
            TypeKind.OBJECT, _normalize(nodes.text(node)), members=members
        )

    def _lookup(
        self, file: SourceFile, node: Node, bindings: Bindings
    ) -> StaticType:
        named = node.named_children
        if len(named) < 2:
            return ANY_TYPE
        target = self.type_from_annotation(file, named[0], bindings)
        keys = _STRING_LITERAL.findall(nodes.text(named[1]))
        if len(keys) != 1:
            return ANY_TYPE
        prop = target.property(keys[0])
        return prop.type if prop is not None else ANY_TYPE

    def _generic(
        self, file: SourceFile, node: Node, bindings: Bindings
    ) -> StaticType:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return ANY_TYPE
        if name_node.type == "nested_type_identifier":
            name_node = name_node.child_by_field_name("name") or name_node
        name = nodes.text(name_node)
        targs = node.child_by_field_name("type_arguments")
        arg_nodes = (
            [a for a in targs.named_children if a.type != "comment"]
            if targs is not None
            else []
        )
        args = [self.type_from_annotation(file, a, bindings) for a in arg_nodes]
        return self._named_type(file, name, args, arg_nodes)

    def _named_type(
        self,
        file: SourceFile,
        name: str,
        args: list[StaticType],
        arg_nodes: list[Node],
    ) -> StaticType:
        located = self._locate_type(file, name)
        if located is None:
            return self._library_type(name, args, arg_nodes)

        decl_file, decl = located
        display = name
        if args:
            display += "<" + ", ".join(a.display_name for a in args) + ">"
        key = (str(decl_file.path), decl.start_byte, decl.end_byte, display)
        if key in self._active:
            return ANY_TYPE
        self._active.add(key)
        try:
            bindings = self._bind_type_parameters(decl_file, decl, args)
            if decl.type == "interface_declaration":
                return self._interface_type(decl_file, decl, bindings, display)
            if decl.type == "type_alias_declaration":
                value = decl.child_by_field_name("value")
                if value is None:
                    return ANY_TYPE
                if value.type == "object_type":
                    return self._object_type(
                        decl_file, value, bindings, display
                    )
                return self.type_from_annotation(decl_file, value, bindings)
            if decl.type in ("class_declaration", "abstract_class_declaration"):
                return self._class_type(decl_file, decl, bindings, display)
            if decl.type == "enum_declaration":
                return self._enum_type(decl)
        finally:
            self._active.discard(key)
        return ANY_TYPE

    def _locate_type(
        self, file: SourceFile, name: str
    ) -> tuple[SourceFile, Node] | None:
        if name in file.type_declarations:
            return file, file.type_declarations[name]
        binding = file.imports.get(name)
        if binding is not None:
            target = self.program.resolve_module(file, binding.module)
            if target is not None:
                imported = binding.imported
                if imported in target.type_declarations:
                    return target, target.type_declarations[imported]
        return self.program.find_type_declaration(name, prefer=file)

    def _library_type(
        self,
        name: str,
        args: list[StaticType],
        arg_nodes: list[Node],
    ) -> StaticType:
        first = args[0] if args else ANY_TYPE
        if name in UNWRAPPED_GENERICS:
            return first
        if name in ARRAY_GENERICS:
            return array_of(first)
        if name in BOXED_PRIMITIVES:
            return BOXED_PRIMITIVES[name]
        if name in ("Partial", "Required", "Readonly") and args:
            return _with_optionality(first, name)
        if name in ("Pick", "Omit") and len(args) == 2:
            keys = set(_STRING_LITERAL.findall(nodes.text(arg_nodes[1])))
            return _select_members(first, keys, keep=(name == "Pick"))
        if name == "Record" or name in OPAQUE_OBJECT_TYPES:
            display = name
            if args:
                display += (
                    "<" + ", ".join(a.display_name for a in args) + ">"
                )
            return StaticType(TypeKind.OBJECT, display, members=list)
        return ANY_TYPE

    def _bind_type_parameters(
        self, file: SourceFile, decl: Node, args: list[StaticType]
    ) -> Bindings:
        params = decl.child_by_field_name("type_parameters")
        if params is None:
            return _NO_BINDINGS
        bound: dict[str, StaticType] = {}
        for i, param in enumerate(
            p for p in params.named_children if p.type == "type_parameter"
        ):
            pname = nodes.text(param.child_by_field_name("name"))
            if i < len(args):
                bound[pname] = args[i]
                continue
            default = param.child_by_field_name("value")
            if default is not None and default.named_children:
                bound[pname] = self.type_from_annotation(
                    file, default.named_children[0], MappingProxyType(bound)
                )
            else:
                bound[pname] = ANY_TYPE
        return MappingProxyType(bound)

    # ------------------------------------------------------------------
    # Object-shaped declarations
    # ------------------------------------------------------------------

    def _object_type(
        self,
        file: SourceFile,
        body: Node,
        bindings: Bindings,
        display: str,
    ) -> StaticType:
        return StaticType(
            TypeKind.OBJECT,
            display,
            members=lambda: list(self._signature_members(file, body, bindings)),
        )

    def _interface_type(
        self,
        file: SourceFile,
        decl: Node,
        bindings: Bindings,
        display: str,
    ) -> StaticType:
        body = decl.child_by_field_name("body")
        bases = [
            base
            for clause in decl.named_children
            if clause.type == "extends_type_clause"
            for base in clause.named_children
        ]

        def members() -> list[Property]:
            merged: dict[str, Property] = {}
            for base in bases:
                base_type = self.type_from_annotation(file, base, bindings)
                for prop in base_type.properties():
                    merged[prop.name] = prop
            if body is not None:
                for prop in self._signature_members(file, body, bindings):
                    merged[prop.name] = prop
            return list(merged.values())

        return StaticType(TypeKind.OBJECT, display, members=members)

    def _signature_members(
        self, file: SourceFile, body: Node, bindings: Bindings
    ) -> Iterator[Property]:
        for member in body.named_children:
            if member.type == "property_signature":
                name = _member_name(member)
                if name is None:
                    continue
                annotation = member.child_by_field_name("type")
                thunk = (
                    _bind(self.type_from_annotation, file, annotation, bindings)
                    if annotation is not None
                    else _constant(ANY_TYPE)
                )
                yield Property(name, nodes.has_token(member, "?"), thunk)
            elif member.type == "method_signature":
                name = _member_name(member)
                if name is None:
                    continue
                yield Property(
                    name,
                    nodes.has_token(member, "?"),
                    _constant(StaticType(TypeKind.FUNCTION, name)),
                )

    def _class_type(
        self,
        file: SourceFile,
        decl: Node,
        bindings: Bindings,
        display: str,
    ) -> StaticType:
        body = decl.child_by_field_name("body")
        base_exprs = [
            expr
            for heritage in decl.named_children
            if heritage.type == "class_heritage"
            for clause in heritage.named_children
            if clause.type == "extends_clause"
            for expr in clause.named_children
            if expr.type in ("identifier", "member_expression")
        ]

        def members() -> list[Property]:
            merged: dict[str, Property] = {}
            for expr in base_exprs:
                base = self.type_of(file, expr).return_type()
                for prop in base.properties():
                    merged[prop.name] = prop
            if body is not None:
                for prop in self._class_members(file, body, bindings):
                    merged[prop.name] = prop
            return list(merged.values())

        return StaticType(TypeKind.OBJECT, display, members=members)

    def _class_members(
        self, file: SourceFile, body: Node, bindings: Bindings
    ) -> Iterator[Property]:
        for member in body.named_children:
            if _is_non_public(member) or nodes.has_token(member, "static"):
                continue
            name = _member_name(member)
            if name is None or name.startswith("#"):
                continue
            if member.type == "public_field_definition":
                annotation = member.child_by_field_name("type")
                value = member.child_by_field_name("value")
                if annotation is not None:
                    thunk = _bind(
                        self.type_from_annotation, file, annotation, bindings
                    )
                elif value is not None:
                    thunk = _bind(self.type_of, file, value)
                else:
                    thunk = _constant(ANY_TYPE)
                yield Property(name, nodes.has_token(member, "?"), thunk)
            elif member.type == "method_definition":
                if name == "constructor":
                    continue
                if nodes.has_token(member, "get"):
                    yield Property(
                        name, False, _bind(self.return_type_of, file, member)
                    )
                    continue
                yield Property(
                    name, False, _bind(self._function_type, file, member)
                )

    def _enum_type(self, decl: Node) -> StaticType:
        body = decl.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                value = member.child_by_field_name("value")
                if value is not None and value.type in (
                    "string",
                    "template_string",
                ):
                    return STRING_TYPE
        return NUMBER_TYPE


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bind(fn: Callable[..., StaticType], *args) -> Callable[[], StaticType]:
    return lambda: fn(*args)


def _constant(value: StaticType) -> Callable[[], StaticType]:
    return lambda: value


def _member_name(member: Node) -> str | None:
    name = member.child_by_field_name("name")
    if name is None:
        return None
    raw = nodes.text(name)
    if name.type == "string":
        return raw[1:-1]
    if name.type == "computed_property_name":
        return None
    return raw


def _is_non_public(member: Node) -> bool:
    for child in member.children:
        if child.type == "accessibility_modifier":
            return nodes.text(child) in ("private", "protected")
    return False


def _enum_member_names(body: Node | None) -> list[str]:
    if body is None:
        return []
    names = []
    for member in body.named_children:
        if member.type == "enum_assignment":
            names.append(nodes.text(member.child_by_field_name("name")))
        elif member.type in ("property_identifier", "string"):
            names.append(nodes.text(member).strip("\"'"))
    return names


def _literal_type(node: Node) -> StaticType:
    inner = node.named_children
    kind = inner[0].type if inner else nodes.text(node)
    if kind in ("string", "template_string"):
        return STRING_TYPE
    if kind in ("number", "unary_expression"):
        return NUMBER_TYPE
    if kind in ("true", "false"):
        return BOOLEAN_TYPE
    if kind in ("null", "undefined"):
        return NULLISH_TYPE
    return ANY_TYPE


def _flatten_union(node: Node) -> Iterator[Node]:
    for child in node.named_children:
        if child.type == "union_type":
            yield from _flatten_union(child)
        elif child.type != "comment":
            yield child


def _follow_path(base: StaticType, path: tuple) -> StaticType:
    current = base
    for step, key in path:
        if step == "prop":
            prop = current.property(str(key))
            current = prop.type if prop is not None else ANY_TYPE
        elif current.is_array():
            current = current.array_element_type()
        else:
            current = ANY_TYPE
    return current


def _with_optionality(base: StaticType, wrapper: str) -> StaticType:
    if not base.is_object():
        return base
    if wrapper == "Readonly":
        return base
    optional = wrapper == "Partial"
    return StaticType(
        TypeKind.OBJECT,
        f"{wrapper}<{base.display_name}>",
        members=lambda: [p.with_optional(optional) for p in base.properties()],
    )


def _select_members(base: StaticType, keys: set[str], keep: bool) -> StaticType:
    if not base.is_object():
        return base
    label = "Pick" if keep else "Omit"
    return StaticType(
        TypeKind.OBJECT,
        f"{label}<{base.display_name}, {' | '.join(sorted(keys))}>",
        members=lambda: [
            p for p in base.properties() if (p.name in keys) == keep
        ],
    )
