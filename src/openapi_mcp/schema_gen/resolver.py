"""
Resolution of internal document pointers (``#/components/...``).

The ``visited`` set passed in belongs to one recursive descent. A pointer that
is already on the current path resolves to ``None`` so self-referencing
schemas terminate; unrelated top-level calls start with their own set and may
resolve the same pointer again.
"""
from typing import Any, Dict, Optional, Set
from urllib.parse import unquote

DOCUMENT_ROOT_PREFIX = "#/"


def _unescape_segment(segment: str) -> str:
    return unquote(segment).replace("~1", "/").replace("~0", "~")


def resolve_pointer(document: Dict[str, Any], pointer: str, visited: Set[str]) -> Optional[Dict[str, Any]]:
    """Walk ``document`` along ``pointer``. Returns the target mapping, or None."""
    if not isinstance(pointer, str) or not pointer.startswith(DOCUMENT_ROOT_PREFIX):
        return None
    if pointer in visited:
        return None

    current: Any = document
    for raw_segment in pointer[len(DOCUMENT_ROOT_PREFIX):].split("/"):
        segment = _unescape_segment(raw_segment)
        if isinstance(current, dict):
            current = current.get(segment)
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return None
        if current is None:
            return None

    if not isinstance(current, dict):
        return None
    visited.add(pointer)
    return current


def resolve_object(document: Dict[str, Any], obj: Any, visited: Optional[Set[str]] = None) -> Optional[Dict[str, Any]]:
    """
    Follow ``$ref`` objects (parameters, request bodies, responses) until a
    concrete mapping is reached. Returns None for a broken or cyclic chain.
    """
    visited = visited if visited is not None else set()
    current = obj
    while isinstance(current, dict) and "$ref" in current:
        current = resolve_pointer(document, current["$ref"], visited)
    return current if isinstance(current, dict) else None
