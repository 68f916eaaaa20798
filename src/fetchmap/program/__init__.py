from fetchmap.program.source import (
    FunctionDecl,
    ImportBinding,
    PathAliases,
    Program,
    SourceFile,
    load_tsconfig,
)
from fetchmap.program.symbols import Declaration, SymbolResolver
from fetchmap.program.types import (
    Property,
    StaticType,
    TypeChecker,
    TypeKind,
)

__all__ = [
    "Declaration",
    "FunctionDecl",
    "ImportBinding",
    "PathAliases",
    "Program",
    "Property",
    "SourceFile",
    "StaticType",
    "SymbolResolver",
    "TypeChecker",
    "TypeKind",
    "load_tsconfig",
]
