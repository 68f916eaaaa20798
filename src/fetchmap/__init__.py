from fetchmap.analyzer import FrontendAnalyzer
from fetchmap.config import AnalyzerConfig
from fetchmap.discovery import FetcherInfo, FetcherRegistry, discover_fetchers
from fetchmap.errors import FetchmapError, ProjectConfigError, SourceReadError
from fetchmap.schema_ir import Field, ObjectSchema, SchemaIR

__all__ = [
    "AnalyzerConfig",
    "FetcherInfo",
    "FetcherRegistry",
    "FetchmapError",
    "Field",
    "FrontendAnalyzer",
    "ObjectSchema",
    "ProjectConfigError",
    "SchemaIR",
    "SourceReadError",
    "discover_fetchers",
]
