"""
Schema generation for openapi-mcp.

This module turns OpenAPI operations and component schemas into tool
definitions: a reference resolver, a schema converter, a ``$defs`` closure
builder, the per-operation compiler and the document-level builder.
"""

from .closure import build_selective_defs, compute_closure, get_component_schemas
from .context import ConversionContext
from .converter import ConversionMode, convert_raw_schema, convert_schema
from .diagnostics import DiagnosticsCollector, DiagnosticsSink
from .exceptions import DocumentLoadError, OpenAPIMCPError
from .operation_compiler import OperationCompiler
from .resolver import resolve_object, resolve_pointer
from .toolset_builder import ToolSetBuilder

__all__ = [
    "ConversionContext",
    "ConversionMode",
    "DiagnosticsCollector",
    "DiagnosticsSink",
    "DocumentLoadError",
    "OpenAPIMCPError",
    "OperationCompiler",
    "ToolSetBuilder",
    "build_selective_defs",
    "compute_closure",
    "convert_raw_schema",
    "convert_schema",
    "get_component_schemas",
    "resolve_object",
    "resolve_pointer",
]
