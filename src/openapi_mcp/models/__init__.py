"""
Pydantic models for openapi-mcp.
"""
from .common import (
    BasePydanticModel,
    ConversionIssue,
    HttpMethod,
    IssueCode,
    ValidationSeverity,
)
from .schema import (
    ConcreteSchema,
    SchemaNode,
    SchemaReference,
    parse_schema_node,
)
from .tools import (
    MAX_TOOL_NAME_LENGTH,
    CompiledOperation,
    OperationRef,
    ToolMethod,
    ToolPairing,
    ToolRegistry,
    ToolSet,
)

__all__ = [
    "BasePydanticModel",
    "CompiledOperation",
    "ConcreteSchema",
    "ConversionIssue",
    "HttpMethod",
    "IssueCode",
    "MAX_TOOL_NAME_LENGTH",
    "OperationRef",
    "SchemaNode",
    "SchemaReference",
    "ToolMethod",
    "ToolPairing",
    "ToolRegistry",
    "ToolSet",
    "ValidationSeverity",
    "parse_schema_node",
]
