"""
Service that turns a whole OpenAPI document into a ``ToolSet``.

Each ``build`` call creates its own ``ConversionContext`` (reference cache,
name counter, component table) and drops it when done, so one builder can
convert any number of documents and converting the same document twice gives
identical output.
"""
from typing import Any, Dict, Optional

import structlog

from ..config import Config, ConversionConfig, ToolFilterConfig
from ..filtering import OperationFilter, should_include_operation
from ..models.common import HttpMethod
from ..models.tools import CompiledOperation, OperationRef, ToolSet
from .context import ConversionContext
from .diagnostics import DiagnosticsCollector, DiagnosticsSink
from .operation_compiler import OperationCompiler

logger = structlog.get_logger(__name__)

SUPPORTED_METHODS = frozenset(method.value for method in HttpMethod)


def is_operation(method: Any, operation: Any) -> bool:
    return isinstance(method, str) and method.lower() in SUPPORTED_METHODS and isinstance(operation, dict)


class ToolSetBuilder:
    """
    Iterates every path x method, applies the operation filter, compiles the
    survivors and collects them into one ``ToolSet``.
    """

    def __init__(
        self,
        conversion_config: Optional[ConversionConfig] = None,
        filter_config: Optional[ToolFilterConfig] = None,
        filter_predicate: OperationFilter = should_include_operation,
        diagnostics: Optional[DiagnosticsSink] = None,
    ):
        self.conversion_config = conversion_config or ConversionConfig()
        self.filter_config = filter_config
        self.filter_predicate = filter_predicate
        self.diagnostics = diagnostics
        self.logger = logger.bind(service="ToolSetBuilder")

    @classmethod
    def from_config(cls, app_config: Config, diagnostics: Optional[DiagnosticsSink] = None) -> "ToolSetBuilder":
        return cls(
            conversion_config=app_config.conversion,
            filter_config=app_config.filter,
            diagnostics=diagnostics,
        )

    def build(self, document: Dict[str, Any]) -> ToolSet:
        # A caller-supplied sink receives the issues; the ToolSet always gets its own copy.
        collector = DiagnosticsCollector()
        sink = _Tee(collector, self.diagnostics) if self.diagnostics is not None else collector
        context = ConversionContext(document, diagnostics=sink)
        compiler = OperationCompiler(context, self.conversion_config)
        api_name = self.conversion_config.api_name

        entries = []
        skipped_by_filter = 0
        paths = context.document.get("paths")
        for path, path_item in (paths.items() if isinstance(paths, dict) else ()):
            if not isinstance(path_item, dict):
                continue
            for method, operation in path_item.items():
                if not is_operation(method, operation):
                    continue

                operation_id = operation.get("operationId")
                if operation_id and not self.filter_predicate(operation_id, path, self.filter_config):
                    skipped_by_filter += 1
                    continue

                tool = compiler.compile(operation, method, path, path_item.get("parameters"))
                if tool is None:
                    continue
                entries.append(
                    CompiledOperation(
                        key=f"{api_name}-{tool.name}",
                        operation=OperationRef(method=method.lower(), path=path, operation=operation),
                        tool=tool,
                    )
                )

        self.logger.info(
            "Document converted to tools.",
            tool_count=len(entries),
            skipped_by_filter=skipped_by_filter,
            issue_count=len(collector.issues),
        )
        return ToolSet(api_name=api_name, entries=entries, issues=collector.issues)


class _Tee:
    def __init__(self, *sinks: DiagnosticsSink):
        self.sinks = sinks

    def emit(self, issue: Any) -> None:
        for sink in self.sinks:
            sink.emit(issue)
