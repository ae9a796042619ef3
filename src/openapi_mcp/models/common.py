from enum import Enum

from pydantic import BaseModel


class BasePydanticModel(BaseModel):
    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "use_enum_values": True,
    }

class HttpMethod(str, Enum):
    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"

class ValidationSeverity(str, Enum):
    """Severity of an issue found during conversion."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

class IssueCode(str, Enum):
    UNRESOLVABLE_REFERENCE = "unresolvable_reference"
    CYCLIC_REFERENCE = "cyclic_reference"
    MISSING_OPERATION_ID = "missing_operation_id"
    UNSUPPORTED_BODY = "unsupported_body"
    MALFORMED_SCHEMA = "malformed_schema"

class ConversionIssue(BasePydanticModel):
    """A non-fatal anomaly reported while converting a document."""
    severity: ValidationSeverity
    code: IssueCode
    message: str
    pointer: str | None = None # The $ref involved, if any
    location: str | None = None # e.g. "GET /pages/{id}" or "components.schemas.Page"
