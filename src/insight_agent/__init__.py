# insight_agent package

from .sql import (
    FORBIDDEN_KEYWORDS,
    MAX_SQL_ROWS,
    SQL_TIMEOUT_MS,
    SqlValidator,
    ValidationResult,
    sanitize,
    validate_read_only_sql,
    wrap_with_limit,
)
from .execution import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    GuardedExecutor,
    ReadDatabase,
    create_read_engine,
)
from .agent import (
    DbSubAgent,
    SubAgentResult,
    build_query_web3_data_tool,
    build_run_sql_tool,
    build_sub_agent,
)

# Also expose error enums
from .common.errors import ErrorCode, ErrorSeverity, InsightAgentError, ConfigurationError

__all__ = [
    "FORBIDDEN_KEYWORDS",
    "MAX_SQL_ROWS",
    "SQL_TIMEOUT_MS",
    "SqlValidator",
    "ValidationResult",
    "sanitize",
    "validate_read_only_sql",
    "wrap_with_limit",
    "ExecutionFailure",
    "ExecutionResult",
    "ExecutionSuccess",
    "GuardedExecutor",
    "ReadDatabase",
    "create_read_engine",
    "DbSubAgent",
    "SubAgentResult",
    "build_query_web3_data_tool",
    "build_run_sql_tool",
    "build_sub_agent",
    "ErrorCode",
    "ErrorSeverity",
    "InsightAgentError",
    "ConfigurationError",
]
