"""Configuration management for openapi-mcp."""

import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ToolFilterConfig(BaseModel): # Nested under Config (BaseSettings)
    """Which operations become tools. Patterns are shell-style globs (fnmatch), matched case-sensitively."""

    include_operations: List[str] = Field(default_factory=list, description="Operation id patterns to keep. Empty keeps all.")
    exclude_operations: List[str] = Field(default_factory=list, description="Operation id patterns to drop. Wins over include_operations.")
    include_paths: List[str] = Field(default_factory=list, description="Path patterns to keep (e.g. '/v1/pages*'). Empty keeps all.")
    exclude_paths: List[str] = Field(default_factory=list, description="Path patterns to drop. Wins over include_paths.")

    @property
    def is_empty(self) -> bool:
        return not (self.include_operations or self.exclude_operations or self.include_paths or self.exclude_paths)

class ConversionConfig(BaseModel):
    """Settings for turning a document into tools."""

    api_name: str = Field(default="API", description="Group name used in the registry and in '<api>-<tool>' lookup keys.")
    brand_labels: Dict[str, str] = Field(
        default_factory=lambda: {"Notion API": "Notion"},
        description="info.title -> label. Matching documents get '<label> | ' prepended to every tool description.",
    )

class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format ('json' or 'console')")
    file: Optional[Path] = Field(default=None, description="Log file path")


class Config(BaseSettings):
    """Main configuration for openapi-mcp. Loads from environment variables prefixed with OPENAPI_MCP_."""

    model_config = SettingsConfigDict(
        env_prefix='OPENAPI_MCP_',
        env_nested_delimiter='__', # e.g., OPENAPI_MCP_FILTER__EXCLUDE_OPERATIONS='["delete-*"]'
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    filter: ToolFilterConfig = Field(default_factory=ToolFilterConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)

    @classmethod
    def from_file(cls, file_path: Path) -> "Config":
        """Create configuration strictly from a JSON file.
        Note: This does not layer with environment variables.
        """
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)
