"""Compiled tool records and the projections built from them."""
from typing import Any

from pydantic import Field

from .common import BasePydanticModel, ConversionIssue
from .schema import ConcreteSchema, SchemaReference

MAX_TOOL_NAME_LENGTH = 64


class ToolMethod(BasePydanticModel):
    """One callable tool compiled from a single OpenAPI operation."""
    model_config = {"frozen": True}

    name: str = Field(..., max_length=MAX_TOOL_NAME_LENGTH, description="Tool name, unique within one conversion run.")
    description: str = Field(..., description="Summary or description, followed by any error responses.")
    input_schema: ConcreteSchema = Field(..., description="Object schema for the tool arguments, with its own $defs.")
    return_schema: ConcreteSchema | SchemaReference | None = Field(None, description="Schema of the success response, with its own $defs.")

    def input_json_schema(self) -> dict[str, Any]:
        return self.input_schema.to_json_schema()

    def return_json_schema(self) -> dict[str, Any] | None:
        return self.return_schema.to_json_schema() if self.return_schema is not None else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_json_schema(),
        }
        if self.return_schema is not None:
            data["returnSchema"] = self.return_json_schema()
        return data


class OperationRef(BasePydanticModel):
    """Points a compiled tool back at the operation it came from."""
    model_config = {"frozen": True}

    method: str
    path: str
    operation: dict[str, Any] = Field(default_factory=dict, description="The raw operation object, unmodified.")


class ToolPairing(BasePydanticModel):
    operation: OperationRef
    tool: ToolMethod


class ToolRegistry(BasePydanticModel):
    """Provider-neutral view: tools grouped by API plus lookups keyed by '<api>-<tool name>'."""
    tools_by_api: dict[str, list[ToolMethod]] = Field(default_factory=dict)
    operation_lookup: dict[str, OperationRef] = Field(default_factory=dict)
    pairing: dict[str, ToolPairing] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tools": {
                api_name: {"methods": [tool.to_dict() for tool in tools]}
                for api_name, tools in self.tools_by_api.items()
            },
            "openApiLookup": {
                key: _operation_dict(ref)
                for key, ref in self.operation_lookup.items()
            },
            "pairing": {
                key: {"operation": _operation_dict(pair.operation), "tool": pair.tool.to_dict()}
                for key, pair in self.pairing.items()
            },
        }


def _operation_dict(ref: OperationRef) -> dict[str, Any]:
    return {**ref.operation, "method": ref.method, "path": ref.path}


class CompiledOperation(BasePydanticModel):
    key: str
    operation: OperationRef
    tool: ToolMethod


class ToolSet(BasePydanticModel):
    """
    Result of one conversion run. Every output format is projected from
    ``entries`` so names, descriptions and schemas stay identical across them.
    """
    api_name: str
    entries: list[CompiledOperation] = Field(default_factory=list)
    issues: list[ConversionIssue] = Field(default_factory=list)

    @property
    def tools(self) -> list[ToolMethod]:
        return [entry.tool for entry in self.entries]

    def to_registry(self) -> ToolRegistry:
        return ToolRegistry(
            tools_by_api={self.api_name: self.tools},
            operation_lookup={entry.key: entry.operation for entry in self.entries},
            pairing={entry.key: ToolPairing(operation=entry.operation, tool=entry.tool) for entry in self.entries},
        )

    def to_openai_tools(self) -> list[dict[str, Any]]:
        """Chat-completions function tools: ``{"type": "function", "function": {...}}``."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_json_schema(),
                },
            }
            for tool in self.tools
        ]

    def to_anthropic_tools(self) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.input_json_schema(),
            }
            for tool in self.tools
        ]
