from .contracts import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    execution_result_adapter,
)
from .database import ReadDatabase, create_read_engine, normalize_database_url
from .executor import GuardedExecutor, classify_db_error

__all__ = [
    "ExecutionFailure",
    "ExecutionResult",
    "ExecutionSuccess",
    "execution_result_adapter",
    "ReadDatabase",
    "create_read_engine",
    "normalize_database_url",
    "GuardedExecutor",
    "classify_db_error",
]
