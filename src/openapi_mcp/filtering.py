"""Operation inclusion policy."""
from fnmatch import fnmatchcase
from typing import Callable, Iterable, Optional

from .config import ToolFilterConfig

OperationFilter = Callable[[str, str, Optional[ToolFilterConfig]], bool]


def _matches_any(value: str, patterns: Iterable[str]) -> bool:
    return any(fnmatchcase(value, pattern) for pattern in patterns)


def should_include_operation(operation_id: str, path: str, config: Optional[ToolFilterConfig] = None) -> bool:
    """
    Decide whether an operation becomes a tool. No config, or an empty one,
    includes everything. Exclusions are checked first and always win.
    """
    if config is None or config.is_empty:
        return True

    if _matches_any(operation_id, config.exclude_operations) or _matches_any(path, config.exclude_paths):
        return False
    if config.include_operations and not _matches_any(operation_id, config.include_operations):
        return False
    if config.include_paths and not _matches_any(path, config.include_paths):
        return False
    return True
