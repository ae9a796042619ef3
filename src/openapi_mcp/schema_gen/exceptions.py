"""
Custom exceptions for openapi-mcp.

Conversion itself does not raise for problems inside a document; those are
reported as diagnostics. These cover failures around the conversion.
"""
from pathlib import Path
from typing import Optional

class OpenAPIMCPError(Exception):
    """Base class for all openapi-mcp errors."""
    pass

class DocumentLoadError(OpenAPIMCPError):
    """Raised when an OpenAPI document cannot be read or is not a JSON object."""
    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path
