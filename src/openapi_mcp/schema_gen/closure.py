"""
Minimal ``$defs`` blocks for compiled schemas.

A tool schema built in LOCAL mode points at components through
``#/$defs/<name>``. The closure of those names, followed transitively through
the component table, is exactly what the schema's own ``$defs`` has to carry.
"""
from typing import Dict, List, Optional, Set

import structlog

from ..models.common import IssueCode
from ..models.schema import ConcreteSchema, SchemaReference
from .context import ConversionContext
from .converter import ConversionMode, LOCAL_DEFS_PREFIX, convert_raw_schema, local_pointer_name
from .traversal import SchemaNodeT, iter_children

logger = structlog.get_logger(__name__)


def get_component_schemas(context: ConversionContext) -> Dict[str, SchemaNodeT]:
    """Convert every entry of ``components.schemas`` once per run, in LOCAL mode."""
    if context.component_schemas is None:
        components = context.document.get("components")
        raw_schemas = components.get("schemas") if isinstance(components, dict) else None
        if not isinstance(raw_schemas, dict):
            raw_schemas = {}
        table: Dict[str, SchemaNodeT] = {}
        for name, raw in raw_schemas.items():
            table[name] = convert_raw_schema(
                raw, context, set(), ConversionMode.LOCAL, location=f"components.schemas.{name}"
            )
        context.component_schemas = table
        logger.debug("Component schemas converted.", count=len(table))
    return context.component_schemas


def compute_closure(schema: SchemaNodeT, context: ConversionContext) -> List[str]:
    """
    Every component name reachable from ``schema`` through local pointers, in
    discovery order. A name's converted body is walked the first time the name
    is seen, so the result is transitive; the seen-set makes cycles terminate.
    """
    components = get_component_schemas(context)
    seen: Set[str] = set()
    ordered: List[str] = []

    def walk(node: SchemaNodeT) -> None:
        if isinstance(node, SchemaReference):
            name = local_pointer_name(node.ref)
            if name is None or name in seen:
                return
            seen.add(name)
            ordered.append(name)
            target = components.get(name)
            if target is not None:
                walk(target)
            return
        if isinstance(node, ConcreteSchema):
            for child in iter_children(node):
                walk(child)

    walk(schema)
    return ordered


def build_selective_defs(
    schema: SchemaNodeT,
    context: ConversionContext,
    location: Optional[str] = None,
) -> Optional[Dict[str, SchemaNodeT]]:
    """
    The closure of ``schema`` restricted to known components, or None when
    nothing is referenced so callers leave ``$defs`` off entirely.
    """
    components = get_component_schemas(context)
    defs: Dict[str, SchemaNodeT] = {}
    for name in compute_closure(schema, context):
        if name in components:
            defs[name] = components[name]
        else:
            context.report(
                IssueCode.UNRESOLVABLE_REFERENCE,
                "Local pointer names a component that does not exist; it is left dangling.",
                pointer=LOCAL_DEFS_PREFIX + name,
                location=location,
            )
    return defs or None
