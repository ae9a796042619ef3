"""
The single table of subschema slots on a ``ConcreteSchema``.

Both the converter (which rebuilds children) and the closure builder (which
only walks them) go through ``map_children`` so they always agree on where
nested schemas can appear.
"""
from typing import Any, Callable, Dict, Iterator, List, TypeVar

from pydantic import BaseModel

from ..models.schema import ConcreteSchema, SchemaReference

T = TypeVar("T")

SchemaNodeT = ConcreteSchema | SchemaReference

COMPOSITION_FIELDS = ("one_of", "any_of", "all_of")


def map_children(node: ConcreteSchema, visit: Callable[[SchemaNodeT], T]) -> Dict[str, Any]:
    """
    Apply ``visit`` to every subschema of ``node`` and return the results as a
    field-name -> value mapping shaped like the original slots, suitable for
    ``ConcreteSchema(**...)`` or ``model_copy(update=...)``. Slots that are
    absent on ``node`` are absent from the result.
    """
    updates: Dict[str, Any] = {}

    if node.properties is not None:
        updates["properties"] = {name: visit(child) for name, child in node.properties.items()}

    if isinstance(node.items, list):
        updates["items"] = [visit(child) for child in node.items]
    elif node.items is not None:
        updates["items"] = visit(node.items)

    if isinstance(node.additional_properties, BaseModel):
        updates["additional_properties"] = visit(node.additional_properties)

    for field_name in COMPOSITION_FIELDS:
        branches = getattr(node, field_name)
        if branches is not None:
            updates[field_name] = [visit(child) for child in branches]

    return updates


def iter_children(node: ConcreteSchema) -> Iterator[SchemaNodeT]:
    """Yield the direct subschemas of ``node`` in slot order."""
    children: List[SchemaNodeT] = []
    map_children(node, children.append)
    return iter(children)
