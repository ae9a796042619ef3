"""
Run-scoped state for one document conversion.

A ``ConversionContext`` is created by ``ToolSetBuilder.build`` and passed
explicitly through every resolver, converter and closure call. It must not be
reused for a second document or shared between concurrent conversions.
"""
from typing import Any, Dict, Optional, Set

import structlog

from ..models.common import ConversionIssue, IssueCode, ValidationSeverity
from ..models.schema import ConcreteSchema, SchemaReference
from ..models.tools import MAX_TOOL_NAME_LENGTH
from .diagnostics import DiagnosticsCollector, DiagnosticsSink

logger = structlog.get_logger(__name__)

NAME_SUFFIX_DIGITS = 4


class ConversionContext:
    def __init__(self, document: Dict[str, Any], diagnostics: Optional[DiagnosticsSink] = None):
        self.document = document if isinstance(document, dict) else {}
        self.diagnostics: DiagnosticsSink = diagnostics if diagnostics is not None else DiagnosticsCollector()
        # Pointer -> converted node, filled in RESOLVED mode.
        self.schema_cache: Dict[str, ConcreteSchema | SchemaReference] = {}
        # Component name -> LOCAL-mode conversion; built once on first use.
        self.component_schemas: Optional[Dict[str, ConcreteSchema | SchemaReference]] = None
        self.name_counter = 0
        self.used_names: Set[str] = set()

    def report(
        self,
        code: IssueCode,
        message: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
        pointer: Optional[str] = None,
        location: Optional[str] = None,
    ) -> None:
        self.diagnostics.emit(
            ConversionIssue(severity=severity, code=code, message=message, pointer=pointer, location=location)
        )

    def unique_name(self, name: str) -> str:
        """
        Returns ``name`` if it fits and is unused in this run. Otherwise
        truncates it and appends ``-NNNN`` from the run-wide counter so the
        result is at most 64 characters and distinct from every earlier name.

        Overlong and duplicate names draw from the same counter, in the order
        operations are compiled: a duplicate seen first takes ``-0001`` and the
        next overlong name gets ``-0002``.
        """
        if len(name) <= MAX_TOOL_NAME_LENGTH and name not in self.used_names:
            self.used_names.add(name)
            return name

        while True:
            self.name_counter += 1
            suffix = str(self.name_counter).zfill(NAME_SUFFIX_DIGITS)
            candidate = f"{name[:MAX_TOOL_NAME_LENGTH - len(suffix) - 1]}-{suffix}"
            if candidate not in self.used_names:
                break
        logger.debug("Tool name adjusted.", original_name=name, tool_name=candidate)
        self.used_names.add(candidate)
        return candidate
