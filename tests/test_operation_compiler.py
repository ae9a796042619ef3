"""
Unit tests for compiling single operations into tools.
"""
from typing import Any, Dict, Optional

import pytest

from openapi_mcp.config import ConversionConfig
from openapi_mcp.models.common import IssueCode
from openapi_mcp.schema_gen.context import ConversionContext
from openapi_mcp.schema_gen.converter import BINARY_FILE_NOTE
from openapi_mcp.schema_gen.diagnostics import DiagnosticsCollector
from openapi_mcp.schema_gen.operation_compiler import OperationCompiler


def json_response(schema: Dict[str, Any], description: str = "") -> Dict[str, Any]:
    return {"description": description, "content": {"application/json": {"schema": schema}}}


@pytest.fixture
def document() -> Dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "info": {"title": "Pages API", "version": "1.0.0"},
        "paths": {},
        "components": {
            "schemas": {
                "Page": {"type": "object", "properties": {"title": {"type": "string"}}},
                "Parent": {"type": "object", "properties": {"page_id": {"type": "string", "format": "uuid"}}},
                "CreatePage": {
                    "type": "object",
                    "properties": {
                        "parent": {"$ref": "#/components/schemas/Parent"},
                        "title": {"type": "string"},
                    },
                    "required": ["parent"],
                },
                "Unrelated": {"type": "integer"},
            },
            "parameters": {
                "PageSize": {
                    "name": "page_size",
                    "in": "query",
                    "description": "Items per page",
                    "schema": {"type": "integer", "format": "int32"},
                },
            },
            "responses": {
                "NotFound": {"description": "Not found"},
            },
        },
    }


@pytest.fixture
def collector() -> DiagnosticsCollector:
    return DiagnosticsCollector()


def make_compiler(
    document: Dict[str, Any],
    collector: DiagnosticsCollector,
    config: Optional[ConversionConfig] = None,
) -> OperationCompiler:
    return OperationCompiler(ConversionContext(document, diagnostics=collector), config)


@pytest.fixture
def compiler(document: Dict[str, Any], collector: DiagnosticsCollector) -> OperationCompiler:
    return make_compiler(document, collector)


# --- Whole operations ---

def test_retrieve_page_example(compiler: OperationCompiler) -> None:
    """A GET with one required path parameter and a JSON object response."""
    operation = {
        "operationId": "retrieve-page",
        "summary": "Retrieve a page",
        "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
        "responses": {"200": json_response({"type": "object", "properties": {"title": {"type": "string"}}})},
    }
    tool = compiler.compile(operation, "get", "/pages/{id}")

    assert tool is not None
    assert tool.name == "retrieve-page"
    assert tool.description == "Retrieve a page"
    assert tool.input_json_schema() == {
        "type": "object",
        "properties": {"id": {"type": "string"}},
        "required": ["id"],
    }
    assert tool.return_json_schema() == {"type": "object", "properties": {"title": {"type": "string"}}}


def test_missing_operation_id_is_skipped(compiler: OperationCompiler, collector: DiagnosticsCollector) -> None:
    assert compiler.compile({"summary": "No id", "responses": {}}, "get", "/anonymous") is None
    issues = collector.by_code(IssueCode.MISSING_OPERATION_ID)
    assert len(issues) == 1
    assert issues[0].location == "GET /anonymous"


# --- Parameters ---

def test_parameter_reference_and_description(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "list-pages",
        "parameters": [{"$ref": "#/components/parameters/PageSize"}],
        "responses": {},
    }
    tool = compiler.compile(operation, "get", "/pages")
    assert tool is not None
    assert tool.input_json_schema() == {
        "type": "object",
        "properties": {"page_size": {"type": "integer", "description": "Items per page"}},
    }


def test_operation_parameter_overrides_path_parameter(compiler: OperationCompiler) -> None:
    path_parameters = [
        {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}, "description": "Path level"},
        {"name": "trace", "in": "header", "schema": {"type": "boolean"}},
    ]
    operation = {
        "operationId": "get-block",
        "parameters": [
            {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}, "description": "Block id"},
        ],
        "responses": {},
    }
    tool = compiler.compile(operation, "get", "/blocks/{id}", path_parameters)
    assert tool is not None
    schema = tool.input_json_schema()
    assert schema["properties"]["id"] == {"type": "string", "description": "Block id"}
    assert schema["properties"]["trace"] == {"type": "boolean"}
    assert schema["required"] == ["id"]


def test_parameters_without_schema_are_ignored(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "odd-params",
        "parameters": [{"name": "q", "in": "query"}, {"in": "query", "schema": {"type": "string"}}],
        "responses": {},
    }
    tool = compiler.compile(operation, "get", "/odd")
    assert tool is not None
    assert tool.input_json_schema() == {"type": "object", "properties": {}}


# --- Request bodies ---

def test_json_object_body_is_flattened(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "update-page",
        "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
        "requestBody": {
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {"archived": {"type": "boolean"}, "id": {"type": "string"}},
                        "required": ["archived", "id"],
                    }
                }
            }
        },
        "responses": {},
    }
    tool = compiler.compile(operation, "patch", "/pages/{id}")
    assert tool is not None
    assert tool.input_json_schema() == {
        "type": "object",
        "properties": {"id": {"type": "string"}, "archived": {"type": "boolean"}},
        "required": ["id", "archived"],
    }


def test_component_body_is_flattened_with_minimal_defs(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "create-page",
        "requestBody": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/CreatePage"}}}},
        "responses": {},
    }
    tool = compiler.compile(operation, "post", "/pages")
    assert tool is not None
    assert tool.input_json_schema() == {
        "type": "object",
        "properties": {"parent": {"$ref": "#/$defs/Parent"}, "title": {"type": "string"}},
        "required": ["parent"],
        "$defs": {"Parent": {"type": "object", "properties": {"page_id": {"type": "string"}}}},
    }


def test_non_object_json_body_is_nested(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "append-tags",
        "requestBody": {
            "content": {"application/json": {"schema": {"type": "array", "items": {"type": "string"}}}}
        },
        "responses": {},
    }
    tool = compiler.compile(operation, "post", "/tags")
    assert tool is not None
    assert tool.input_json_schema() == {
        "type": "object",
        "properties": {"body": {"type": "array", "items": {"type": "string"}}},
        "required": ["body"],
    }


def test_vendor_json_media_type_is_accepted(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "patch-merge",
        "requestBody": {
            "content": {
                "application/merge-patch+json": {
                    "schema": {"type": "object", "properties": {"title": {"type": "string"}}}
                }
            }
        },
        "responses": {},
    }
    tool = compiler.compile(operation, "patch", "/pages")
    assert tool is not None
    assert tool.input_json_schema()["properties"] == {"title": {"type": "string"}}


def test_multipart_body_takes_file_paths(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "upload-file",
        "requestBody": {
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "file": {"type": "string", "format": "binary"},
                            "name": {"type": "string"},
                        },
                        "required": ["file"],
                    }
                }
            }
        },
        "responses": {},
    }
    tool = compiler.compile(operation, "post", "/files")
    assert tool is not None
    assert tool.input_json_schema() == {
        "type": "object",
        "properties": {
            "file": {"type": "string", "format": "uri-reference", "description": BINARY_FILE_NOTE},
            "name": {"type": "string"},
        },
        "required": ["file"],
    }


def test_unsupported_body_is_reported(compiler: OperationCompiler, collector: DiagnosticsCollector) -> None:
    operation = {
        "operationId": "import-xml",
        "requestBody": {"content": {"application/xml": {"schema": {"type": "string"}}}},
        "responses": {},
    }
    tool = compiler.compile(operation, "post", "/import")
    assert tool is not None
    assert tool.input_json_schema() == {"type": "object", "properties": {}}
    assert [issue.code for issue in collector.issues] == [IssueCode.UNSUPPORTED_BODY]


# --- Descriptions ---

def test_description_lists_error_responses(compiler: OperationCompiler) -> None:
    operation = {
        "operationId": "retrieve-page",
        "summary": "Retrieve a page",
        "description": "Longer text that loses to the summary",
        "responses": {
            "200": json_response({"type": "object"}),
            "400": {"description": "Bad request"},
            "404": {"$ref": "#/components/responses/NotFound"},
        },
    }
    tool = compiler.compile(operation, "get", "/pages/{id}")
    assert tool is not None
    assert tool.description == "Retrieve a page\nError Responses:\n400: Bad request\n404: Not found"


def test_description_falls_back_to_description_then_empty(compiler: OperationCompiler) -> None:
    assert compiler.build_description({"description": "Only a description"}, "GET /x") == "Only a description"
    assert compiler.build_description({}, "GET /x") == ""


def test_brand_label_is_prepended(document: Dict[str, Any], collector: DiagnosticsCollector) -> None:
    document["info"]["title"] = "Notion API"
    compiler = make_compiler(document, collector)
    tool = compiler.compile({"operationId": "search", "summary": "Search", "responses": {}}, "post", "/search")
    assert tool is not None
    assert tool.description == "Notion | Search"


def test_brand_labels_are_configurable(document: Dict[str, Any], collector: DiagnosticsCollector) -> None:
    compiler = make_compiler(document, collector, ConversionConfig(brand_labels={"Pages API": "Pages"}))
    tool = compiler.compile({"operationId": "search", "summary": "Search", "responses": {}}, "post", "/search")
    assert tool is not None
    assert tool.description == "Pages | Search"


# --- Return schemas ---

def test_return_schema_prefers_first_success_code(compiler: OperationCompiler) -> None:
    responses = {
        "204": {"description": "Nothing"},
        "201": json_response({"type": "object", "properties": {"id": {"type": "string"}}}, "Created"),
        "default": json_response({"type": "string"}),
    }
    assert compiler.extract_return_schema(responses, "POST /pages").to_json_schema() == {
        "type": "object",
        "properties": {"id": {"type": "string"}},
        "description": "Created",
    }


def test_return_schema_keeps_own_description(compiler: OperationCompiler) -> None:
    responses = {"200": json_response({"type": "string", "description": "The name"}, "OK")}
    assert compiler.extract_return_schema(responses, "GET /name").to_json_schema() == {
        "type": "string",
        "description": "The name",
    }


def test_return_schema_reference_carries_defs(compiler: OperationCompiler) -> None:
    responses = {"200": json_response({"$ref": "#/components/schemas/Page"}, "OK")}
    assert compiler.extract_return_schema(responses, "GET /pages/{id}").to_json_schema() == {
        "$ref": "#/$defs/Page",
        "description": "OK",
        "$defs": {"Page": {"type": "object", "properties": {"title": {"type": "string"}}}},
    }


def test_image_response_is_binary_string(compiler: OperationCompiler) -> None:
    responses = {"200": {"description": "A PNG", "content": {"image/png": {}}}}
    assert compiler.extract_return_schema(responses, "GET /avatar").to_json_schema() == {
        "type": "string",
        "format": "binary",
        "description": "A PNG",
    }


def test_other_response_content_is_string(compiler: OperationCompiler) -> None:
    responses = {"200": {"description": "Plain text", "content": {"text/plain": {"schema": {"type": "string"}}}}}
    assert compiler.extract_return_schema(responses, "GET /readme").to_json_schema() == {
        "type": "string",
        "description": "Plain text",
    }


@pytest.mark.parametrize("responses", [
    None,
    {},
    {"204": {"description": "No content"}},
    {"400": json_response({"type": "object"})},
])
def test_no_return_schema(compiler: OperationCompiler, responses: Any) -> None:
    assert compiler.extract_return_schema(responses, "DELETE /pages/{id}") is None


def test_empty_success_response_still_takes_precedence(compiler: OperationCompiler) -> None:
    """A 200 that is present but empty stops the search, so no later code is used."""
    responses = {"200": {}, "201": json_response({"type": "integer"}, "created")}
    assert compiler.extract_return_schema(responses, "POST /counters") is None


def test_integer_status_codes_are_recognised(compiler: OperationCompiler) -> None:
    responses = {200: json_response({"type": "boolean"})}
    assert compiler.extract_return_schema(responses, "GET /flag").to_json_schema() == {"type": "boolean"}


# --- Names ---

def test_long_names_are_truncated_with_counter(compiler: OperationCompiler) -> None:
    long_id = "a" * 80
    first = compiler.compile({"operationId": long_id, "responses": {}}, "get", "/one")
    second = compiler.compile({"operationId": long_id, "responses": {}}, "get", "/two")

    assert first is not None and second is not None
    assert first.name == "a" * 59 + "-0001"
    assert second.name == "a" * 59 + "-0002"
    assert len(first.name) == len(second.name) == 64


def test_duplicate_names_are_made_unique(compiler: OperationCompiler) -> None:
    first = compiler.compile({"operationId": "list-pages", "responses": {}}, "get", "/pages")
    second = compiler.compile({"operationId": "list-pages", "responses": {}}, "get", "/v2/pages")
    assert first is not None and second is not None
    assert first.name == "list-pages"
    assert second.name == "list-pages-0001"


def test_duplicate_and_overlong_names_share_the_counter(compiler: OperationCompiler) -> None:
    compiler.compile({"operationId": "search", "responses": {}}, "get", "/search")
    duplicate = compiler.compile({"operationId": "search", "responses": {}}, "post", "/search")
    overlong = compiler.compile({"operationId": "b" * 80, "responses": {}}, "get", "/long")

    assert duplicate is not None and overlong is not None
    assert duplicate.name == "search-0001"
    assert overlong.name == "b" * 59 + "-0002"
