"""
Diagnostics sink for non-fatal conversion anomalies.

The converter never raises for problems in the document itself. It hands a
``ConversionIssue`` to whatever sink the caller supplied and carries on.
"""
from typing import List, Protocol

import structlog

from ..models.common import ConversionIssue, IssueCode, ValidationSeverity

logger = structlog.get_logger(__name__)


class DiagnosticsSink(Protocol):
    def emit(self, issue: ConversionIssue) -> None:
        ...


class DiagnosticsCollector:
    """Default sink: logs each issue and keeps it for the run summary."""

    def __init__(self) -> None:
        self.issues: List[ConversionIssue] = []
        self.logger = logger.bind(component="DiagnosticsCollector")

    def emit(self, issue: ConversionIssue) -> None:
        self.issues.append(issue)
        if issue.severity == ValidationSeverity.ERROR:
            log_method = self.logger.error
        elif issue.severity == ValidationSeverity.WARNING:
            log_method = self.logger.warning
        else:
            log_method = self.logger.debug
        log_method(issue.message, code=issue.code, pointer=issue.pointer, location=issue.location)

    def by_code(self, code: IssueCode) -> List[ConversionIssue]:
        return [issue for issue in self.issues if issue.code == code]

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == ValidationSeverity.ERROR for issue in self.issues)
