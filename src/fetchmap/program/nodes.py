"""Helpers over tree-sitter TypeScript syntax nodes."""

from __future__ import annotations

from collections.abc import Iterator

from tree_sitter import Node

FUNCTION_KINDS = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "method_definition",
    }
)
# expression wrappers that do not change the value
TRANSPARENT_KINDS = frozenset(
    {"parenthesized_expression", "non_null_expression", "await_expression"}
)


def text(node: Node | None) -> str:
    if node is None:
        return ""
    raw = node.text
    return raw.decode("utf-8", errors="replace") if raw else ""


def line_of(node: Node) -> int:
    """1-based line number of a node."""
    return node.start_point[0] + 1


def walk(node: Node) -> Iterator[Node]:
    """Pre-order (document order) traversal including the node itself."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def descendants_of_type(node: Node, kind: str) -> Iterator[Node]:
    for child in walk(node):
        if child is not node and child.type == kind:
            yield child


def has_token(node: Node, token: str) -> bool:
    """Whether an anonymous child token (e.g. '?') is present."""
    return any(c.type == token for c in node.children)


# ---------------------------------------------------------------------------
# Call expressions
# ---------------------------------------------------------------------------


def callee(call: Node) -> Node | None:
    return call.child_by_field_name("function")


def callee_text(call: Node) -> str:
    """Callee source text with optional-chaining and whitespace removed."""
    raw = text(callee(call))
    return "".join(raw.split()).replace("?.", ".")


def arguments(call: Node) -> list[Node]:
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [a for a in args.named_children if a.type != "comment"]


def type_arguments(call: Node) -> list[Node]:
    targs = call.child_by_field_name("type_arguments")
    if targs is None:
        return []
    return [t for t in targs.named_children if t.type != "comment"]


def member_name(node: Node) -> str | None:
    """Property name of a member expression, else None."""
    if node.type != "member_expression":
        return None
    prop = node.child_by_field_name("property")
    return text(prop) if prop is not None else None


def continuation_callback(call: Node) -> Node | None:
    """The callback of a `.then(...)` chained directly on a call."""
    parent = call.parent
    if parent is None or parent.type != "member_expression":
        return None
    if member_name(parent) != "then":
        return None
    outer = parent.parent
    if outer is None or outer.type != "call_expression":
        return None
    args = arguments(outer)
    if args and args[0].type in (
        "arrow_function",
        "function_expression",
        "function",
    ):
        return args[0]
    return None


# ---------------------------------------------------------------------------
# Object literals
# ---------------------------------------------------------------------------


def property_key(node: Node) -> str | None:
    key = node.child_by_field_name("key")
    if key is None:
        return None
    if key.type in ("string", "template_string"):
        return text(key)[1:-1]
    return text(key)


def object_property(obj: Node, name: str) -> Node | None:
    """Value node of a named property in an object literal.

    Shorthand properties (`{ body }`) return the identifier itself.
    """
    for child in obj.named_children:
        if child.type == "pair" and property_key(child) == name:
            return child.child_by_field_name("value")
        if child.type == "shorthand_property_identifier" and text(child) == name:
            return child
    return None


# ---------------------------------------------------------------------------
# Function declarations
# ---------------------------------------------------------------------------


def parameter_nodes(fn: Node) -> list[Node]:
    single = fn.child_by_field_name("parameter")
    if single is not None:
        return [single]
    params = fn.child_by_field_name("parameters")
    if params is None:
        return []
    return [p for p in params.named_children if p.type != "comment"]


def parameter_name(param: Node) -> str | None:
    """Bound identifier of a parameter, None for destructuring patterns."""
    if param.type == "identifier":
        return text(param)
    pattern = param.child_by_field_name("pattern")
    if pattern is not None and pattern.type == "identifier":
        return text(pattern)
    return None


def function_name(fn: Node) -> str | None:
    """Name of a function-like node.

    Arrow functions and function expressions take the name of the nearest
    enclosing variable declarator.
    """
    name = fn.child_by_field_name("name")
    if name is not None and fn.type != "function_expression":
        return text(name)
    if fn.type in ("arrow_function", "function_expression", "function"):
        ancestor = fn.parent
        while ancestor is not None:
            if ancestor.type == "variable_declarator":
                target = ancestor.child_by_field_name("name")
                if target is not None and target.type == "identifier":
                    return text(target)
                return None
            ancestor = ancestor.parent
        if name is not None:
            return text(name)
    return None


def return_type_node(fn: Node) -> Node | None:
    annotation = fn.child_by_field_name("return_type")
    if annotation is None or not annotation.named_children:
        return None
    return annotation.named_children[0]


def returned_expressions(fn: Node) -> Iterator[Node]:
    """Expressions a function returns, not descending into nested functions."""
    body = fn.child_by_field_name("body")
    if body is None:
        return
    if body.type != "statement_block":
        yield body
        return
    stack = list(reversed(body.named_children))
    while stack:
        node = stack.pop()
        if node.type in FUNCTION_KINDS:
            continue
        if node.type == "return_statement":
            if node.named_children:
                yield node.named_children[0]
            continue
        stack.extend(reversed(node.named_children))
