"""
Conversion of OpenAPI schema objects into normalized schema nodes.

Two modes are supported:

* ``LOCAL`` rewrites ``#/components/schemas/X`` into ``#/$defs/X`` without
  inlining anything. Tool input and return schemas are built this way and get
  their own ``$defs`` block from the closure builder afterwards.
* ``RESOLVED`` dereferences every pointer, converts the target and caches it
  by pointer in the run context. A pointer that is already on the current
  descent path is left as a pointer, so cyclic component graphs terminate.

Conversion never raises. Anything that cannot be resolved becomes a
pointer-shaped placeholder and a diagnostic.
"""
from enum import Enum
from typing import Any, Dict, Optional, Set

import structlog
from pydantic import ValidationError

from ..models.common import IssueCode, ValidationSeverity
from ..models.schema import ConcreteSchema, SchemaReference, parse_schema_node
from .context import ConversionContext
from .resolver import resolve_pointer
from .traversal import SchemaNodeT, map_children

logger = structlog.get_logger(__name__)

COMPONENT_SCHEMA_PREFIX = "#/components/schemas/"
LOCAL_DEFS_PREFIX = "#/$defs/"
BINARY_FILE_NOTE = "absolute paths to local files"


class ConversionMode(str, Enum):
    LOCAL = "local"
    RESOLVED = "resolved"


def component_name(pointer: str) -> Optional[str]:
    """'#/components/schemas/Page' -> 'Page'; None for any other pointer, including deeper ones."""
    if not pointer.startswith(COMPONENT_SCHEMA_PREFIX):
        return None
    name = pointer[len(COMPONENT_SCHEMA_PREFIX):]
    return name if name and "/" not in name else None


def to_local_pointer(pointer: str) -> str:
    if pointer.startswith(COMPONENT_SCHEMA_PREFIX):
        return LOCAL_DEFS_PREFIX + pointer[len(COMPONENT_SCHEMA_PREFIX):]
    return pointer


def local_pointer_name(pointer: str) -> Optional[str]:
    """'#/$defs/Page' -> 'Page'; None for anything that is not a local pointer."""
    if pointer.startswith(LOCAL_DEFS_PREFIX):
        return pointer[len(LOCAL_DEFS_PREFIX):]
    return None


def with_description(node: SchemaNodeT, description: str) -> SchemaNodeT:
    return node.model_copy(update={"description": description})


def convert_raw_schema(
    raw: Any,
    context: ConversionContext,
    visited: Set[str],
    mode: ConversionMode = ConversionMode.LOCAL,
    location: Optional[str] = None,
) -> SchemaNodeT:
    """Parse a raw schema mapping and convert it. Unparseable input becomes ``{}``."""
    try:
        node = parse_schema_node(raw)
    except ValidationError as e:
        context.report(
            IssueCode.MALFORMED_SCHEMA,
            f"Schema could not be parsed and was replaced by an empty schema: {e.error_count()} error(s).",
            location=location,
        )
        return ConcreteSchema()
    return convert_schema(node, context, visited, mode, location)


def convert_schema(
    node: SchemaNodeT,
    context: ConversionContext,
    visited: Set[str],
    mode: ConversionMode = ConversionMode.LOCAL,
    location: Optional[str] = None,
) -> SchemaNodeT:
    if isinstance(node, SchemaReference):
        return _convert_reference(node, context, visited, mode, location)
    return _convert_concrete(node, context, visited, mode, location)


def _convert_reference(
    node: SchemaReference,
    context: ConversionContext,
    visited: Set[str],
    mode: ConversionMode,
    location: Optional[str],
) -> SchemaNodeT:
    pointer = node.ref
    if mode == ConversionMode.LOCAL:
        if component_name(pointer) is not None:
            fields: Dict[str, Any] = {"ref": to_local_pointer(pointer)}
            if node.description is not None:
                fields["description"] = node.description
            return SchemaReference(**fields)
        logger.debug("Reference is not a component schema, resolving it in place.", pointer=pointer, location=location)
    else:
        cached = context.schema_cache.get(pointer)
        if cached is not None:
            return cached

    on_current_path = pointer in visited
    resolved = resolve_pointer(context.document, pointer, visited)
    if resolved is None:
        if on_current_path:
            context.report(
                IssueCode.CYCLIC_REFERENCE,
                "Reference cycle left as a pointer.",
                severity=ValidationSeverity.INFO,
                pointer=pointer,
                location=location,
            )
        else:
            context.report(
                IssueCode.UNRESOLVABLE_REFERENCE,
                "Reference could not be resolved in the document.",
                pointer=pointer,
                location=location,
            )
        return SchemaReference(ref=to_local_pointer(pointer), description=node.description or "")

    try:
        converted = convert_raw_schema(resolved, context, visited, mode, location)
    finally:
        # Leaving this subtree; siblings may use the same pointer.
        visited.discard(pointer)
    if mode == ConversionMode.RESOLVED:
        context.schema_cache[pointer] = converted
    return converted


def _convert_concrete(
    node: ConcreteSchema,
    context: ConversionContext,
    visited: Set[str],
    mode: ConversionMode,
    location: Optional[str],
) -> ConcreteSchema:
    fields: Dict[str, Any] = {}
    is_object = node.is_object
    is_array = node.is_array

    if node.type is not None:
        fields["type"] = node.type
    elif is_object:
        fields["type"] = "object"
    elif is_array:
        fields["type"] = "array"

    # Files cannot travel through a tool call, so binary payloads are taken as
    # local file paths. Every other format is dropped.
    if node.format == "binary":
        fields["format"] = "uri-reference"
        fields["description"] = f"{node.description} ({BINARY_FILE_NOTE})" if node.description else BINARY_FILE_NOTE
    elif node.description is not None:
        fields["description"] = node.description

    if node.enum is not None:
        fields["enum"] = node.enum
    if "default" in node.model_fields_set:
        fields["default"] = node.default

    # Only descend into the slots that survive for this kind of node.
    pruned = node.model_copy(update={
        "properties": node.properties if is_object else None,
        "additional_properties": node.additional_properties if is_object else None,
        "items": node.items if is_array else None,
    })

    def visit(child: SchemaNodeT) -> SchemaNodeT:
        return convert_schema(child, context, visited, mode, location)

    children = map_children(pruned, visit)

    if is_object:
        if "properties" in children:
            fields["properties"] = children["properties"]
        if node.required:
            fields["required"] = list(node.required)
        # additionalProperties: true is the default and is left out.
        if node.additional_properties is False:
            fields["additional_properties"] = False
        elif "additional_properties" in children:
            fields["additional_properties"] = children["additional_properties"]

    if is_array and "items" in children:
        fields["items"] = children["items"]

    for field_name in ("one_of", "any_of", "all_of"):
        if field_name in children:
            fields[field_name] = children[field_name]

    return ConcreteSchema(**fields)
