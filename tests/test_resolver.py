"""
Unit tests for document pointer resolution.
"""
import pytest

from openapi_mcp.schema_gen.resolver import resolve_object, resolve_pointer


@pytest.fixture
def document() -> dict:
    return {
        "paths": {
            "/pages/{id}": {
                "get": {
                    "operationId": "retrieve-page",
                    "parameters": [{"name": "id", "in": "path", "schema": {"type": "string"}}],
                }
            }
        },
        "components": {
            "schemas": {
                "Page": {"type": "object", "properties": {"id": {"type": "string"}}},
                "Empty": {},
                "a~b/c": {"type": "string"},
            },
            "parameters": {
                "PageId": {"$ref": "#/components/parameters/PageIdInner"},
                "PageIdInner": {"name": "page_id", "in": "path", "schema": {"type": "string"}},
                "LoopA": {"$ref": "#/components/parameters/LoopB"},
                "LoopB": {"$ref": "#/components/parameters/LoopA"},
            },
        },
    }


def test_resolves_component_schema_and_marks_visited(document: dict) -> None:
    visited: set = set()
    resolved = resolve_pointer(document, "#/components/schemas/Page", visited)
    assert resolved == {"type": "object", "properties": {"id": {"type": "string"}}}
    assert visited == {"#/components/schemas/Page"}


def test_empty_schema_is_a_valid_target(document: dict) -> None:
    assert resolve_pointer(document, "#/components/schemas/Empty", set()) == {}


@pytest.mark.parametrize("pointer", [
    "other.yaml#/components/schemas/Page",
    "https://example.com/openapi.json#/components/schemas/Page",
    "components/schemas/Page",
    "#components/schemas/Page",
])
def test_pointers_outside_the_document_are_rejected(document: dict, pointer: str) -> None:
    visited: set = set()
    assert resolve_pointer(document, pointer, visited) is None
    assert visited == set()


def test_missing_segment_returns_none_without_marking(document: dict) -> None:
    visited: set = set()
    assert resolve_pointer(document, "#/components/schemas/Missing", visited) is None
    assert resolve_pointer(document, "#/components/schemas/Page/properties/nope", visited) is None
    assert visited == set()


def test_pointer_already_on_path_is_cut(document: dict) -> None:
    visited = {"#/components/schemas/Page"}
    assert resolve_pointer(document, "#/components/schemas/Page", visited) is None


def test_independent_calls_each_resolve_the_same_pointer(document: dict) -> None:
    pointer = "#/components/schemas/Page"
    assert resolve_pointer(document, pointer, set()) is not None
    assert resolve_pointer(document, pointer, set()) is not None


def test_escaped_segments_and_list_indexes(document: dict) -> None:
    operation = resolve_pointer(document, "#/paths/~1pages~1{id}/get", set())
    assert operation is not None and operation["operationId"] == "retrieve-page"

    param = resolve_pointer(document, "#/paths/~1pages~1%7Bid%7D/get/parameters/0", set())
    assert param == {"name": "id", "in": "path", "schema": {"type": "string"}}

    assert resolve_pointer(document, "#/components/schemas/a~0b~1c", set()) == {"type": "string"}
    assert resolve_pointer(document, "#/paths/~1pages~1{id}/get/parameters/3", set()) is None


def test_non_mapping_target_returns_none(document: dict) -> None:
    assert resolve_pointer(document, "#/paths/~1pages~1{id}/get/operationId", set()) is None


def test_resolve_object_follows_reference_chains(document: dict) -> None:
    resolved = resolve_object(document, {"$ref": "#/components/parameters/PageId"})
    assert resolved == {"name": "page_id", "in": "path", "schema": {"type": "string"}}


def test_resolve_object_passes_inline_objects_through(document: dict) -> None:
    inline = {"name": "q", "in": "query"}
    assert resolve_object(document, inline) is inline
    assert resolve_object(document, "not-an-object") is None


def test_resolve_object_stops_on_cycles(document: dict) -> None:
    assert resolve_object(document, {"$ref": "#/components/parameters/LoopA"}) is None
