"""Identifier resolution - finds the declaration a name refers to.

Resolution order mirrors how TypeScript binds names, approximately:
enclosing lexical scopes (blocks, function parameters, catch and loop
bindings, the module body), then imports, then any same-named variable in
the file (hoisted `var`), then a unique project-wide export.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from tree_sitter import Node

from fetchmap.program import nodes
from fetchmap.program.source import Program, SourceFile

logger = structlog.get_logger(__name__)

SCOPE_BLOCK_KINDS = frozenset(
    {"statement_block", "program", "class_body", "switch_case"}
)
LOOP_KINDS = frozenset({"for_statement", "for_in_statement"})
# a step into a destructured value: ("prop", key) or ("index", position)
PathStep = tuple[str, str | int]


@dataclass(frozen=True)
class Declaration:
    """Where a name is declared.

    kind is one of: variable, parameter, function, class, enum, namespace,
    expression. For destructured bindings, path lists the property/index
    steps from the declared value to the bound name.
    """

    file: SourceFile
    node: Node
    kind: str
    name: str
    path: tuple[PathStep, ...] = ()


class SymbolResolver:
    """Resolves identifiers to declarations across a Program."""

    MAX_REEXPORT_DEPTH = 8

    def __init__(self, program: Program):
        self.program = program

    def resolve_identifier(
        self, file: SourceFile, ident: Node
    ) -> Declaration | None:
        name = nodes.text(ident)
        found = self._lookup_scopes(file, ident, name)
        if found is not None:
            return found
        if name in file.imports:
            return self._resolve_import(file, name)
        found = self._lookup_hoisted(file, name)
        if found is not None:
            return found
        return None

    def resolve_name(self, file: SourceFile, name: str) -> Declaration | None:
        """Resolve a name at module scope of a file."""
        node = file.top_level_declarations.get(name)
        if node is not None:
            return _declaration_for(file, node, name)
        if name in file.imports:
            return self._resolve_import(file, name)
        return None

    def variable_initializer(
        self, decl: Declaration
    ) -> tuple[SourceFile, Node] | None:
        """Initializer expression of a plain variable declaration."""
        if decl.path:
            return None
        if decl.kind == "variable":
            value = decl.node.child_by_field_name("value")
            if value is not None:
                return decl.file, value
        elif decl.kind == "expression":
            return decl.file, decl.node
        return None

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def _lookup_scopes(
        self, file: SourceFile, ident: Node, name: str
    ) -> Declaration | None:
        node = ident.parent
        while node is not None:
            if node.is_named and node.type in nodes.FUNCTION_KINDS:
                found = self._match_parameters(file, node, name)
                if found is not None:
                    return found
            elif node.type in SCOPE_BLOCK_KINDS:
                for stmt in node.named_children:
                    found = self._match_statement(file, stmt, name)
                    if found is not None:
                        return found
            elif node.type in LOOP_KINDS:
                for child in node.named_children:
                    found = self._match_statement(file, child, name)
                    if found is not None:
                        return found
            elif node.type == "catch_clause":
                param = node.child_by_field_name("parameter")
                if param is not None and nodes.text(param) == name:
                    return Declaration(file, param, "parameter", name)
            node = node.parent
        return None

    def _match_parameters(
        self, file: SourceFile, fn: Node, name: str
    ) -> Declaration | None:
        for param in nodes.parameter_nodes(fn):
            if nodes.parameter_name(param) == name:
                return Declaration(file, param, "parameter", name)
            pattern = param.child_by_field_name("pattern")
            if pattern is not None:
                path = _pattern_path(pattern, name)
                if path is not None:
                    return Declaration(file, param, "parameter", name, path)
        return None

    def _match_statement(
        self, file: SourceFile, stmt: Node, name: str
    ) -> Declaration | None:
        if stmt.type == "export_statement":
            decl = stmt.child_by_field_name("declaration")
            if decl is None:
                return None
            stmt = decl
        if stmt.type in ("lexical_declaration", "variable_declaration"):
            for declarator in stmt.named_children:
                if declarator.type != "variable_declarator":
                    continue
                target = declarator.child_by_field_name("name")
                if target is None:
                    continue
                if target.type == "identifier":
                    if nodes.text(target) == name:
                        return Declaration(file, declarator, "variable", name)
                    continue
                path = _pattern_path(target, name)
                if path is not None:
                    return Declaration(
                        file, declarator, "variable", name, path
                    )
        elif stmt.type in (
            "function_declaration",
            "generator_function_declaration",
            "class_declaration",
            "abstract_class_declaration",
            "enum_declaration",
        ):
            target = stmt.child_by_field_name("name")
            if target is not None and nodes.text(target) == name:
                return _declaration_for(file, stmt, name)
        return None

    def _lookup_hoisted(
        self, file: SourceFile, name: str
    ) -> Declaration | None:
        for node in nodes.descendants_of_type(file.root, "variable_declarator"):
            target = node.child_by_field_name("name")
            if (
                target is not None
                and target.type == "identifier"
                and nodes.text(target) == name
            ):
                return Declaration(file, node, "variable", name)
        return None

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _resolve_import(
        self, file: SourceFile, local: str
    ) -> Declaration | None:
        binding = file.imports[local]
        target = self.program.resolve_module(file, binding.module)
        if target is None:
            return self._unique_export(binding.imported, local)
        if binding.imported == "*":
            return Declaration(target, target.root, "namespace", local)
        return self._resolve_export(target, binding.imported, local, 0)

    def _resolve_export(
        self, file: SourceFile, exported: str, local: str, depth: int
    ) -> Declaration | None:
        if depth > self.MAX_REEXPORT_DEPTH:
            return None
        node = file.exported_names.get(exported)
        if node is not None:
            if node.type == "identifier":
                # export default someName;
                return self.resolve_identifier(file, node)
            return _declaration_for(file, node, local)

        for stmt in file.root.named_children:
            if stmt.type != "export_statement":
                continue
            source_node = stmt.child_by_field_name("source")
            if source_node is None:
                continue
            target = self.program.resolve_module(
                file, nodes.text(source_node)[1:-1]
            )
            if target is None:
                continue
            clause = next(
                (c for c in stmt.named_children if c.type == "export_clause"),
                None,
            )
            if clause is None:
                # export * from "./x"
                found = self._resolve_export(target, exported, local, depth + 1)
                if found is not None:
                    return found
                continue
            for spec in clause.named_children:
                name_node = spec.child_by_field_name("name")
                alias_node = spec.child_by_field_name("alias")
                original = nodes.text(name_node)
                public = nodes.text(alias_node) if alias_node else original
                if public == exported:
                    return self._resolve_export(
                        target, original, local, depth + 1
                    )
        return None

    def _unique_export(self, exported: str, local: str) -> Declaration | None:
        if exported in ("default", "*"):
            return None
        matches = self.program.find_exported(exported)
        if len(matches) != 1:
            return None
        file, node = matches[0]
        logger.debug(
            "resolved import by project-wide export",
            name=exported,
            file=file.rel_path,
        )
        return _declaration_for(file, node, local)


def _declaration_for(file: SourceFile, node: Node, name: str) -> Declaration:
    kind = {
        "variable_declarator": "variable",
        "function_declaration": "function",
        "generator_function_declaration": "function",
        "class_declaration": "class",
        "abstract_class_declaration": "class",
        "enum_declaration": "enum",
    }.get(node.type, "expression")
    return Declaration(file, node, kind, name)


def _pattern_path(pattern: Node, name: str) -> tuple[PathStep, ...] | None:
    """Steps from a destructured value to the binding called name."""
    if pattern.type == "identifier":
        return () if nodes.text(pattern) == name else None
    if pattern.type == "object_pattern":
        for child in pattern.named_children:
            if child.type == "shorthand_property_identifier_pattern":
                if nodes.text(child) == name:
                    return (("prop", name),)
            elif child.type == "pair_pattern":
                key = nodes.property_key(child) or ""
                value = child.child_by_field_name("value")
                if value is None:
                    continue
                sub = _pattern_path(value, name)
                if sub is not None:
                    return (("prop", key), *sub)
            elif child.type == "object_assignment_pattern":
                left = child.child_by_field_name("left")
                if left is not None and nodes.text(left) == name:
                    return (("prop", name),)
        return None
    if pattern.type == "array_pattern":
        for i, child in enumerate(pattern.named_children):
            target = child
            if child.type == "assignment_pattern":
                target = child.child_by_field_name("left") or child
            sub = _pattern_path(target, name)
            if sub is not None:
                return (("index", i), *sub)
        return None
    if pattern.type == "assignment_pattern":
        left = pattern.child_by_field_name("left")
        if left is not None:
            return _pattern_path(left, name)
    return None
