"""openapi-mcp - turns OpenAPI operations into tool-calling schemas.

Each operation in an OpenAPI 3.x document becomes one tool with a flat input
schema, a description that lists its error responses, and a return schema.
Shared component schemas are carried per tool in a minimal ``$defs`` block.
"""

__version__ = "0.3.0"

from .config import Config
from .schema_gen import ToolSetBuilder

__all__ = ["Config", "ToolSetBuilder"]
