"""
Compiles one OpenAPI operation (path + method) into a ``ToolMethod``.

The input schema is always a single flat object: parameters and request-body
fields sit side by side as properties. The description carries the error
responses so a caller can see failure modes without the document.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import structlog

from ..config import ConversionConfig
from ..models.common import IssueCode
from ..models.schema import ConcreteSchema, SchemaReference
from ..models.tools import ToolMethod
from .closure import build_selective_defs, get_component_schemas
from .context import ConversionContext
from .converter import ConversionMode, convert_raw_schema, local_pointer_name, with_description
from .resolver import resolve_object
from .traversal import SchemaNodeT

logger = structlog.get_logger(__name__)

SUCCESS_STATUS_CODES = ("200", "201", "202", "204")
JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "multipart/form-data"
BODY_PROPERTY = "body"


def _find_json_media(content: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """application/json first, then any '+json' or parameterised JSON media type."""
    media = content.get(JSON_CONTENT_TYPE)
    if isinstance(media, dict):
        return media
    for content_type, media in content.items():
        base_type = str(content_type).split(";", 1)[0].strip().lower()
        if (base_type == JSON_CONTENT_TYPE or base_type.endswith("+json")) and isinstance(media, dict):
            return media
    return None


def _get_response(responses: Dict[Any, Any], status_code: str) -> Any:
    # YAML loaders turn unquoted status codes into ints.
    if status_code in responses:
        return responses[status_code]
    return responses.get(int(status_code))


class OperationCompiler:
    """Builds tools for one conversion run; holds the run's context, nothing else."""

    def __init__(self, context: ConversionContext, config: Optional[ConversionConfig] = None):
        self.context = context
        self.config = config or ConversionConfig()
        self.logger = logger.bind(component="OperationCompiler")

    def compile(
        self,
        operation: Dict[str, Any],
        method: str,
        path: str,
        path_parameters: Optional[Iterable[Any]] = None,
    ) -> Optional[ToolMethod]:
        """
        Returns the compiled tool, or None when the operation has no
        ``operationId`` (reported as a diagnostic).
        """
        location = f"{method.upper()} {path}"
        operation_id = operation.get("operationId")
        if not isinstance(operation_id, str) or not operation_id:
            self.context.report(
                IssueCode.MISSING_OPERATION_ID,
                "Operation has no operationId and was skipped.",
                location=location,
            )
            return None

        input_schema = self.build_input_schema(operation, location, path_parameters)
        description = self.build_description(operation, location)
        return_schema = self.extract_return_schema(operation.get("responses"), location)
        name = self.context.unique_name(operation_id)

        self.logger.debug("Operation compiled.", operation_id=operation_id, tool_name=name, location=location)
        return ToolMethod(
            name=name,
            description=self.apply_brand_label(description),
            input_schema=input_schema,
            return_schema=return_schema,
        )

    # --- Input schema ---

    def build_input_schema(
        self,
        operation: Dict[str, Any],
        location: str,
        path_parameters: Optional[Iterable[Any]] = None,
    ) -> ConcreteSchema:
        properties: Dict[str, SchemaNodeT] = {}
        required: List[str] = []

        def mark_required(name: str) -> None:
            if name not in required:
                required.append(name)

        for param in self._merge_parameters(path_parameters, operation.get("parameters"), location):
            name = param.get("name")
            raw_schema = param.get("schema")
            if not isinstance(name, str) or raw_schema is None:
                self.logger.debug("Parameter without name or schema ignored.", location=location, parameter=name)
                continue
            schema = convert_raw_schema(raw_schema, self.context, set(), ConversionMode.LOCAL, location)
            param_description = param.get("description")
            if isinstance(param_description, str) and param_description:
                schema = with_description(schema, param_description)
            properties[name] = schema
            if param.get("required") is True:
                mark_required(name)

        request_body = operation.get("requestBody")
        if request_body is not None:
            self._merge_request_body(request_body, properties, mark_required, location)

        fields: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            fields["required"] = required
        input_schema = ConcreteSchema(**fields)

        defs = build_selective_defs(input_schema, self.context, location)
        if defs:
            input_schema = input_schema.model_copy(update={"defs": defs})
        return input_schema

    def _merge_parameters(
        self,
        path_parameters: Optional[Iterable[Any]],
        operation_parameters: Optional[Iterable[Any]],
        location: str,
    ) -> List[Dict[str, Any]]:
        """Path-item parameters first; an operation parameter with the same (name, in) replaces one."""
        merged: Dict[Tuple[Any, Any], Dict[str, Any]] = {}
        for raw_params in (path_parameters, operation_parameters):
            if not isinstance(raw_params, list):
                continue
            for raw_param in raw_params:
                param = self._resolve(raw_param, location)
                if param is None:
                    continue
                merged[(param.get("name"), param.get("in"))] = param
        return list(merged.values())

    def _merge_request_body(self, raw_body: Any, properties: Dict[str, SchemaNodeT], mark_required: Callable[[str], None], location: str) -> None:
        body = self._resolve(raw_body, location)
        if body is None:
            return
        content = body.get("content")
        if not isinstance(content, dict) or not content:
            return

        # Uploaded files arrive as local file paths (format: binary is rewritten by the converter).
        form_media = content.get(FORM_CONTENT_TYPE)
        if isinstance(form_media, dict) and form_media.get("schema") is not None:
            form_schema = convert_raw_schema(form_media["schema"], self.context, set(), ConversionMode.LOCAL, location)
            flat = self._as_flat_object(form_schema)
            if flat is None:
                self.context.report(
                    IssueCode.UNSUPPORTED_BODY,
                    "multipart/form-data body is not an object with properties; its fields were dropped.",
                    location=location,
                )
                return
            self._merge_object(flat, properties, mark_required)
            return

        json_media = _find_json_media(content)
        if json_media is not None and json_media.get("schema") is not None:
            body_schema = convert_raw_schema(json_media["schema"], self.context, set(), ConversionMode.LOCAL, location)
            flat = self._as_flat_object(body_schema)
            if flat is not None:
                self._merge_object(flat, properties, mark_required)
            else:
                # Arrays and scalars cannot be flattened into the argument object.
                properties[BODY_PROPERTY] = body_schema
                mark_required(BODY_PROPERTY)
            return

        self.context.report(
            IssueCode.UNSUPPORTED_BODY,
            f"Request body content types not supported: {', '.join(sorted(str(ct) for ct in content))}.",
            location=location,
        )

    def _as_flat_object(self, schema: SchemaNodeT) -> Optional[ConcreteSchema]:
        """The object schema whose properties can be merged, following top-level component pointers."""
        components = get_component_schemas(self.context)
        seen = set()
        node: Optional[SchemaNodeT] = schema
        while isinstance(node, SchemaReference):
            name = local_pointer_name(node.ref)
            if name is None or name in seen:
                return None
            seen.add(name)
            node = components.get(name)
        if isinstance(node, ConcreteSchema) and node.is_object and node.properties is not None:
            return node
        return None

    @staticmethod
    def _merge_object(flat: ConcreteSchema, properties: Dict[str, SchemaNodeT], mark_required: Callable[[str], None]) -> None:
        for name, prop_schema in (flat.properties or {}).items():
            properties[name] = prop_schema
        for name in flat.required or []:
            mark_required(name)

    # --- Description ---

    def build_description(self, operation: Dict[str, Any], location: str) -> str:
        description = operation.get("summary") or operation.get("description") or ""
        if not isinstance(description, str):
            description = str(description)

        responses = operation.get("responses")
        if isinstance(responses, dict):
            error_lines = []
            for code, raw_response in responses.items():
                code = str(code)
                if not code.startswith(("4", "5")):
                    continue
                response = self._resolve(raw_response, location) or {}
                error_lines.append(f"{code}: {response.get('description') or ''}")
            if error_lines:
                description += "\nError Responses:\n" + "\n".join(error_lines)
        return description

    def apply_brand_label(self, description: str) -> str:
        info = self.context.document.get("info")
        title = info.get("title") if isinstance(info, dict) else None
        label = self.config.brand_labels.get(title) if isinstance(title, str) else None
        return f"{label} | {description}" if label else description

    # --- Return schema ---

    def extract_return_schema(self, responses: Any, location: str) -> Optional[SchemaNodeT]:
        if not isinstance(responses, dict):
            return None
        raw_response = None
        for status_code in SUCCESS_STATUS_CODES:
            raw_response = _get_response(responses, status_code)
            # Presence decides; an empty response object still wins.
            if raw_response is not None:
                break
        if raw_response is None:
            return None

        response = self._resolve(raw_response, location)
        if response is None:
            return None
        content = response.get("content")
        if not isinstance(content, dict) or not content:
            return None
        response_description = response.get("description")
        if not isinstance(response_description, str):
            response_description = ""

        json_media = _find_json_media(content)
        if json_media is not None and json_media.get("schema") is not None:
            return_schema = convert_raw_schema(json_media["schema"], self.context, set(), ConversionMode.LOCAL, location)
            updates: Dict[str, Any] = {}
            defs = build_selective_defs(return_schema, self.context, location)
            if defs:
                updates["defs"] = defs
            if response_description and not return_schema.description:
                updates["description"] = response_description
            return return_schema.model_copy(update=updates) if updates else return_schema

        if any(str(content_type).lower().startswith("image/") for content_type in content):
            return ConcreteSchema(type="string", format="binary", description=response_description)
        return ConcreteSchema(type="string", description=response_description)

    def _resolve(self, obj: Any, location: str) -> Optional[Dict[str, Any]]:
        resolved = resolve_object(self.context.document, obj)
        if resolved is None and isinstance(obj, dict) and "$ref" in obj:
            self.context.report(
                IssueCode.UNRESOLVABLE_REFERENCE,
                "Referenced object could not be resolved.",
                pointer=str(obj["$ref"]),
                location=location,
            )
        return resolved
