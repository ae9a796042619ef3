"""
Normalized schema nodes.

A schema node is either a reference (``$ref`` plus an optional description) or
a concrete schema. Raw OpenAPI schema objects are parsed leniently into these
models: unknown keywords are ignored and keywords with the wrong JSON type are
dropped before validation, so vendor extensions and sloppy documents do not
abort a conversion.
"""
from typing import Annotated, Any, Union

from pydantic import BaseModel, Discriminator, Field, Tag, TypeAdapter, model_validator

from .common import BasePydanticModel

COMPOSITION_KEYWORDS = ("oneOf", "anyOf", "allOf")


def _is_schema_like(value: Any) -> bool:
    return isinstance(value, (dict, BaseModel))


def _clean_schema_map(value: Any) -> dict[str, Any] | None:
    if not isinstance(value, dict):
        return None
    return {name: sub for name, sub in value.items() if _is_schema_like(sub)}


def _clean_schema_list(value: Any) -> list[Any] | None:
    if not isinstance(value, list):
        return None
    return [sub for sub in value if _is_schema_like(sub)]


class _SchemaModel(BasePydanticModel):
    model_config = {
        "extra": "ignore",
        "frozen": True,
    }

    def to_json_schema(self) -> dict[str, Any]:
        """Serialize using JSON Schema keyword names, emitting only fields that were set."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class SchemaReference(_SchemaModel):
    ref: str = Field(..., alias="$ref")
    description: str | None = None
    # Only populated on a root-level return schema that is itself a reference.
    defs: dict[str, "SchemaNode"] | None = Field(None, alias="$defs")

    @model_validator(mode="before")
    @classmethod
    def _drop_malformed_keywords(cls, data: Any) -> Any:
        if isinstance(data, dict) and "description" in data and not isinstance(data["description"], str):
            data = {key: value for key, value in data.items() if key != "description"}
        return data


class ConcreteSchema(_SchemaModel):
    type: str | list[str] | None = None
    format: str | None = None
    description: str | None = None
    enum: list[Any] | None = None
    default: Any = None
    properties: dict[str, "SchemaNode"] | None = None
    required: list[str] | None = None
    additional_properties: Union[bool, "SchemaNode", None] = Field(None, alias="additionalProperties")
    items: Union["SchemaNode", list["SchemaNode"], None] = None
    one_of: list["SchemaNode"] | None = Field(None, alias="oneOf")
    any_of: list["SchemaNode"] | None = Field(None, alias="anyOf")
    all_of: list["SchemaNode"] | None = Field(None, alias="allOf")
    defs: dict[str, "SchemaNode"] | None = Field(None, alias="$defs")

    @model_validator(mode="before")
    @classmethod
    def _drop_malformed_keywords(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)

        raw_type = cleaned.get("type")
        if raw_type is not None and not (
            isinstance(raw_type, str)
            or (isinstance(raw_type, list) and all(isinstance(t, str) for t in raw_type))
        ):
            cleaned.pop("type")
        for key in ("format", "description"):
            if key in cleaned and not isinstance(cleaned[key], str):
                cleaned.pop(key)
        if "enum" in cleaned and not isinstance(cleaned["enum"], list):
            cleaned.pop("enum")
        if "required" in cleaned:
            if isinstance(cleaned["required"], list):
                cleaned["required"] = [name for name in cleaned["required"] if isinstance(name, str)]
            else:
                cleaned.pop("required")

        for key in ("properties", "$defs"):
            if key in cleaned:
                schema_map = _clean_schema_map(cleaned[key])
                if schema_map is None:
                    cleaned.pop(key)
                else:
                    cleaned[key] = schema_map

        additional = cleaned.get("additionalProperties")
        if "additionalProperties" in cleaned and not (isinstance(additional, bool) or _is_schema_like(additional)):
            cleaned.pop("additionalProperties")

        if "items" in cleaned:
            items = cleaned["items"]
            if isinstance(items, list):
                cleaned["items"] = _clean_schema_list(items)
            elif not _is_schema_like(items):
                cleaned.pop("items")

        for key in COMPOSITION_KEYWORDS:
            if key in cleaned:
                branches = _clean_schema_list(cleaned[key])
                if branches is None:
                    cleaned.pop(key)
                else:
                    cleaned[key] = branches
        return cleaned

    def has_type(self, name: str) -> bool:
        if isinstance(self.type, list):
            return name in self.type
        return self.type == name

    @property
    def is_object(self) -> bool:
        if self.type is None:
            return self.properties is not None or self.additional_properties is not None
        return self.has_type("object")

    @property
    def is_array(self) -> bool:
        if self.type is None:
            return self.items is not None
        return self.has_type("array")


def _schema_node_tag(value: Any) -> str:
    if isinstance(value, dict):
        return "reference" if "$ref" in value else "concrete"
    return "reference" if isinstance(value, SchemaReference) else "concrete"


SchemaNode = Annotated[
    Union[
        Annotated[SchemaReference, Tag("reference")],
        Annotated[ConcreteSchema, Tag("concrete")],
    ],
    Discriminator(_schema_node_tag),
]

SchemaReference.model_rebuild()
ConcreteSchema.model_rebuild()

_schema_node_adapter: TypeAdapter[SchemaNode] = TypeAdapter(SchemaNode)


def parse_schema_node(raw: Any) -> SchemaReference | ConcreteSchema:
    """Parse a raw OpenAPI schema object. Raises ``pydantic.ValidationError`` if it is unusable."""
    return _schema_node_adapter.validate_python(raw)


def schema_to_json(node: SchemaReference | ConcreteSchema | None) -> dict[str, Any] | None:
    return node.to_json_schema() if node is not None else None
