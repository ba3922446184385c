from enum import Enum


class ErrorSeverity(str, Enum):
    """Severity levels for sub-agent errors."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCode(str, Enum):
    """Standardized error codes for the SQL gate and the sub-agent loop."""
    EMPTY_QUERY = "EMPTY_QUERY"
    MULTIPLE_STATEMENTS = "MULTIPLE_STATEMENTS"
    FORBIDDEN_KEYWORD = "FORBIDDEN_KEYWORD"
    NOT_A_SELECT = "NOT_A_SELECT"
    DB_EXECUTION_ERROR = "DB_EXECUTION_ERROR"
    EXECUTION_TIMEOUT = "EXECUTION_TIMEOUT"
    READ_ONLY_VIOLATION = "READ_ONLY_VIOLATION"
    ORCHESTRATION_EXHAUSTED = "ORCHESTRATION_EXHAUSTED"
    LLM_FAILURE = "LLM_FAILURE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


VALIDATION_ERRORS = {
    ErrorCode.EMPTY_QUERY,
    ErrorCode.MULTIPLE_STATEMENTS,
    ErrorCode.FORBIDDEN_KEYWORD,
    ErrorCode.NOT_A_SELECT,
}

SEVERITY_BY_CODE = {
    ErrorCode.FORBIDDEN_KEYWORD: ErrorSeverity.CRITICAL,
    ErrorCode.MULTIPLE_STATEMENTS: ErrorSeverity.CRITICAL,
    ErrorCode.READ_ONLY_VIOLATION: ErrorSeverity.CRITICAL,
    ErrorCode.ORCHESTRATION_EXHAUSTED: ErrorSeverity.WARNING,
}


def severity_for(code: ErrorCode) -> ErrorSeverity:
    """Returns the severity used when logging an error of the given code."""
    return SEVERITY_BY_CODE.get(code, ErrorSeverity.ERROR)


class InsightAgentError(Exception):
    """Base class for faults that are not reported back to the model.

    Validation and execution problems never raise; they come back as data.
    Exceptions are kept for wiring mistakes such as missing configuration.
    """


class ConfigurationError(InsightAgentError):
    """Raised when a required setting (database URL, API key) is missing."""
