"""Source loading - parses a TypeScript project into tree-sitter trees.

A Program owns every parsed SourceFile for one analysis run, the tsconfig
path aliases used to follow imports, and the project-wide declaration
indexes that the symbol and type resolvers query.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

import structlog
import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser, Tree

from fetchmap.config import AnalyzerConfig
from fetchmap.errors import ProjectConfigError, SourceReadError
from fetchmap.program import nodes

logger = structlog.get_logger(__name__)

RESOLVE_EXTENSIONS = (".ts", ".tsx", ".d.ts")
TYPE_DECLARATION_KINDS = frozenset(
    {
        "interface_declaration",
        "type_alias_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "enum_declaration",
    }
)

_TS_LANGUAGE = Language(ts_typescript.language_typescript())
_TSX_LANGUAGE = Language(ts_typescript.language_tsx())


def parser_for(path: Path) -> Parser:
    """tree-sitter parser for a file suffix (.tsx gets the JSX grammar)."""
    if path.suffix.lower() in (".tsx", ".jsx"):
        return Parser(_TSX_LANGUAGE)
    return Parser(_TS_LANGUAGE)


@dataclass(frozen=True)
class FunctionDecl:
    """A named function, method or variable-bound arrow function."""

    name: str
    node: Node
    params: tuple[str | None, ...]


@dataclass(frozen=True)
class ImportBinding:
    """A local name introduced by an import statement."""

    local: str
    imported: str  # "default", "*" or the exported name
    module: str
    node: Node


@dataclass(eq=False)
class SourceFile:
    """One parsed source file."""

    path: Path
    rel_path: str
    source: bytes
    tree: Tree
    imports: dict[str, ImportBinding] = field(default_factory=dict)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def iter_calls(self) -> Iterator[Node]:
        """Every call expression in document order."""
        for node in nodes.walk(self.root):
            if node.type == "call_expression":
                yield node

    def iter_functions(self) -> Iterator[FunctionDecl]:
        """Every nameable function-like declaration in document order."""
        for node in nodes.walk(self.root):
            if not node.is_named or node.type not in nodes.FUNCTION_KINDS:
                continue
            name = nodes.function_name(node)
            if not name:
                continue
            params = tuple(
                nodes.parameter_name(p) for p in nodes.parameter_nodes(node)
            )
            yield FunctionDecl(name=name, node=node, params=params)

    @cached_property
    def top_level_declarations(self) -> dict[str, Node]:
        """Top-level value declarations: declarators, functions, classes."""
        found: dict[str, Node] = {}
        for stmt in self.root.named_children:
            decl = _unwrap_export(stmt)
            if decl is None:
                continue
            for name, node in _declared_values(decl):
                found.setdefault(name, node)
        return found

    @cached_property
    def exported_names(self) -> dict[str, Node]:
        """Exported value declarations by exported name."""
        found: dict[str, Node] = {}
        for stmt in self.root.named_children:
            if stmt.type != "export_statement":
                continue
            decl = stmt.child_by_field_name("declaration")
            if decl is not None:
                is_default = nodes.has_token(stmt, "default")
                for name, node in _declared_values(decl):
                    found.setdefault("default" if is_default else name, node)
                continue
            value = stmt.child_by_field_name("value")
            if value is not None:
                found.setdefault("default", value)
            for clause in stmt.named_children:
                if clause.type != "export_clause":
                    continue
                for spec in clause.named_children:
                    name_node = spec.child_by_field_name("name")
                    alias_node = spec.child_by_field_name("alias")
                    local = nodes.text(name_node)
                    exported = nodes.text(alias_node) if alias_node else local
                    target = self.top_level_declarations.get(local)
                    if target is not None:
                        found.setdefault(exported, target)
        return found

    @cached_property
    def type_declarations(self) -> dict[str, Node]:
        """Interfaces, type aliases, classes and enums declared anywhere."""
        found: dict[str, Node] = {}
        for node in nodes.walk(self.root):
            if node.type in TYPE_DECLARATION_KINDS:
                name = node.child_by_field_name("name")
                if name is not None:
                    found.setdefault(nodes.text(name), node)
        return found


def _unwrap_export(stmt: Node) -> Node | None:
    if stmt.type == "export_statement":
        return stmt.child_by_field_name("declaration")
    return stmt


def _declared_values(decl: Node) -> Iterator[tuple[str, Node]]:
    if decl.type in ("lexical_declaration", "variable_declaration"):
        for declarator in decl.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                yield nodes.text(name), declarator
    elif decl.type in (
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "enum_declaration",
    ):
        name = decl.child_by_field_name("name")
        if name is not None:
            yield nodes.text(name), decl


def _collect_imports(root: Node) -> dict[str, ImportBinding]:
    imports: dict[str, ImportBinding] = {}
    for stmt in root.named_children:
        if stmt.type != "import_statement":
            continue
        source_node = stmt.child_by_field_name("source")
        if source_node is None:
            continue
        module = nodes.text(source_node)[1:-1]
        clause = next(
            (c for c in stmt.named_children if c.type == "import_clause"),
            None,
        )
        if clause is None:
            continue
        for child in clause.named_children:
            if child.type == "identifier":
                local = nodes.text(child)
                imports[local] = ImportBinding(local, "default", module, child)
            elif child.type == "namespace_import":
                ident = next(
                    (c for c in child.named_children if c.type == "identifier"),
                    None,
                )
                if ident is not None:
                    local = nodes.text(ident)
                    imports[local] = ImportBinding(local, "*", module, ident)
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name_node = spec.child_by_field_name("name")
                    alias_node = spec.child_by_field_name("alias")
                    imported = nodes.text(name_node)
                    local = nodes.text(alias_node) if alias_node else imported
                    imports[local] = ImportBinding(
                        local, imported, module, spec
                    )
    return imports


# ---------------------------------------------------------------------------
# tsconfig
# ---------------------------------------------------------------------------

_JSONC_TOKEN = re.compile(
    r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/|,(?=\s*[}\]])',
    re.DOTALL,
)


def strip_jsonc(raw: str) -> str:
    """Remove comments and trailing commas from JSON-with-comments."""

    def replace(match: re.Match[str]) -> str:
        token = match.group(0)
        return token if token.startswith('"') else ""

    return _JSONC_TOKEN.sub(replace, raw)


@dataclass(frozen=True)
class PathAliases:
    """compilerOptions.baseUrl / paths from tsconfig.json."""

    base_dir: Path
    paths: tuple[tuple[str, tuple[str, ...]], ...] = ()

    def candidates(self, specifier: str) -> Iterator[Path]:
        for pattern, targets in self.paths:
            if "*" in pattern:
                prefix, _, suffix = pattern.partition("*")
                if not (
                    specifier.startswith(prefix)
                    and specifier.endswith(suffix)
                    and len(specifier) >= len(prefix) + len(suffix)
                ):
                    continue
                star = specifier[len(prefix) : len(specifier) - len(suffix)]
                for target in targets:
                    yield self.base_dir / target.replace("*", star)
            elif specifier == pattern:
                for target in targets:
                    yield self.base_dir / target
        if not specifier.startswith("."):
            yield self.base_dir / specifier


def load_tsconfig(root: Path, name: str = "tsconfig.json") -> PathAliases:
    """Read path aliases; a missing tsconfig means no aliases."""
    path = root / name
    if not path.exists():
        return PathAliases(base_dir=root)
    try:
        data = json.loads(strip_jsonc(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError) as e:
        raise ProjectConfigError(f"invalid {name}: {e}", path=path) from e
    if not isinstance(data, dict):
        raise ProjectConfigError(f"invalid {name}: not an object", path=path)

    options = data.get("compilerOptions") or {}
    base_dir = root / options.get("baseUrl", ".")
    raw_paths = options.get("paths") or {}
    paths = tuple(
        (pattern, tuple(targets))
        for pattern, targets in raw_paths.items()
        if isinstance(targets, list)
    )
    return PathAliases(base_dir=base_dir, paths=paths)


# ---------------------------------------------------------------------------
# Program
# ---------------------------------------------------------------------------


class Program:
    """All parsed source files of a project plus cross-file lookups."""

    def __init__(
        self,
        root: Path,
        files: list[SourceFile],
        aliases: PathAliases | None = None,
    ):
        self.root = root
        self.files = files
        self.aliases = aliases or PathAliases(base_dir=root)
        self._by_path = {f.path.resolve(): f for f in files}

    @classmethod
    def load(
        cls,
        root: Path,
        config: AnalyzerConfig | None = None,
    ) -> Program:
        """Enumerate and parse every source file below the project root.

        Raises:
            ProjectConfigError: root is missing, not a directory, or its
                tsconfig cannot be parsed.
        """
        config = config or AnalyzerConfig()
        root = root.resolve()
        if not root.exists():
            raise ProjectConfigError(
                f"project path does not exist: {root}", path=root
            )
        if not root.is_dir():
            raise ProjectConfigError(
                f"project path is not a directory: {root}", path=root
            )

        aliases = load_tsconfig(root, config.tsconfig_name)
        files: list[SourceFile] = []
        for path in enumerate_sources(root, config):
            try:
                files.append(parse_file(path, root))
            except SourceReadError as e:
                logger.warning("skipping unreadable file", error=str(e))

        logger.debug("loaded source files", root=str(root), count=len(files))
        return cls(root, files, aliases)

    @classmethod
    def from_sources(cls, root: Path, sources: dict[str, str]) -> Program:
        """Build a program from in-memory sources keyed by relative path."""
        files = [
            parse_source(root / rel, root, content.encode("utf-8"))
            for rel, content in sources.items()
        ]
        return cls(root, files)

    def file_at(self, path: Path) -> SourceFile | None:
        return self._by_path.get(path.resolve())

    def resolve_module(
        self, importer: SourceFile, specifier: str
    ) -> SourceFile | None:
        """Find the file a module specifier points to."""
        if specifier.startswith("."):
            bases: list[Path] = [importer.path.parent / specifier]
        else:
            bases = list(self.aliases.candidates(specifier))
        for base in bases:
            for candidate in _module_candidates(base):
                found = self.file_at(candidate)
                if found is not None:
                    return found
        return None

    def find_exported(self, name: str) -> list[tuple[SourceFile, Node]]:
        """Every file exporting a value under this name."""
        return [
            (f, f.exported_names[name])
            for f in self.files
            if name in f.exported_names
        ]

    def find_type_declaration(
        self, name: str, prefer: SourceFile | None = None
    ) -> tuple[SourceFile, Node] | None:
        """Locate a named type, preferring the given file's own declaration."""
        if prefer is not None and name in prefer.type_declarations:
            return prefer, prefer.type_declarations[name]
        for f in self.files:
            if name in f.type_declarations:
                return f, f.type_declarations[name]
        return None


def _module_candidates(base: Path) -> Iterator[Path]:
    yield base
    for ext in RESOLVE_EXTENSIONS:
        yield base.with_name(base.name + ext)
    for ext in RESOLVE_EXTENSIONS:
        yield base / f"index{ext}"


def enumerate_sources(root: Path, config: AnalyzerConfig) -> list[Path]:
    """Source files matching the configured globs, deduplicated, in order."""
    seen: set[Path] = set()
    ordered: list[Path] = []
    for pattern in config.source_globs():
        for path in sorted(root.glob(pattern)):
            if not path.is_file():
                continue
            rel_parts = path.relative_to(root).parts
            if any(part in config.exclude_dirs for part in rel_parts):
                continue
            resolved = path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            ordered.append(path)
    return ordered


def parse_file(path: Path, root: Path) -> SourceFile:
    try:
        source = path.read_bytes()
    except OSError as e:
        raise SourceReadError(path, str(e)) from e
    return parse_source(path, root, source)


def parse_source(path: Path, root: Path, source: bytes) -> SourceFile:
    tree = parser_for(path).parse(source)
    try:
        rel_path = str(path.relative_to(root))
    except ValueError:
        rel_path = str(path)
    return SourceFile(
        path=path,
        rel_path=rel_path,
        source=source,
        tree=tree,
        imports=_collect_imports(tree.root_node),
    )
