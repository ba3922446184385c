from .sanitizer import sanitize, ScanState
from .validator import (
    FORBIDDEN_KEYWORDS,
    SqlValidator,
    ValidationResult,
    validate_read_only_sql,
)
from .limits import MAX_SQL_ROWS, SQL_TIMEOUT_MS, wrap_with_limit

__all__ = [
    "sanitize",
    "ScanState",
    "FORBIDDEN_KEYWORDS",
    "SqlValidator",
    "ValidationResult",
    "validate_read_only_sql",
    "MAX_SQL_ROWS",
    "SQL_TIMEOUT_MS",
    "wrap_with_limit",
]
