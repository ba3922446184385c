"""Read-only validation of LLM-generated SQL.

Two checks work as a pair. The keyword denylist stops write/DDL/DCL verbs
anywhere in the statement; the SELECT/WITH allowlist stops statement types the
denylist does not name. Neither alone is enough.
"""
from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from insight_agent.common.errors import ErrorCode
from insight_agent.sql.sanitizer import sanitize

# Checked as whole words: "description" contains "crip", "datasets" contains
# "set", neither may match.
FORBIDDEN_KEYWORDS: Tuple[str, ...] = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "GRANT",
    "REVOKE",
    "MERGE",
    "UPSERT",
    "REPLACE",
    "EXEC",
    "EXECUTE",
    "CALL",
    "COPY",
    "VACUUM",
    "REINDEX",
    "CLUSTER",
    "LOCK",
    "UNLOCK",
    "NOTIFY",
    "LISTEN",
    "SET",
    "RESET",
    "DISCARD",
    "COMMENT",
    "SECURITY",
    "REASSIGN",
    "REFRESH",
)

_TRAILING_SEMICOLON = re.compile(r";\s*$")
_LEADING_KEYWORD = re.compile(r"^(SELECT|WITH)\b", re.IGNORECASE)
_KEYWORD_SHAPE = re.compile(r"^[A-Z_][A-Z0-9_]*$")


class ValidationResult(BaseModel):
    """Outcome of validating one raw query."""
    model_config = ConfigDict(frozen=True)

    valid: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def reject(cls, error: str, code: ErrorCode) -> "ValidationResult":
        return cls(valid=False, error=error, error_code=code)


def strip_trailing_semicolon(sql: str) -> str:
    """Removes one trailing semicolon and any whitespace after it."""
    return _TRAILING_SEMICOLON.sub("", sql, count=1)


class SqlValidator:
    """Validates that a query is a single read-only SELECT/WITH statement.

    Attributes:
        keywords (Tuple[str, ...]): The effective denylist, built-ins first.
    """

    def __init__(self, extra_keywords: Optional[Iterable[str]] = None):
        """Initializes the validator.

        Args:
            extra_keywords: Additional keywords to forbid on top of
                ``FORBIDDEN_KEYWORDS`` (case-insensitive, whole words).

        Raises:
            ValueError: If an extra keyword is not a plain SQL word.
        """
        keywords = list(FORBIDDEN_KEYWORDS)
        for kw in extra_keywords or ():
            normalized = kw.strip().upper()
            if not _KEYWORD_SHAPE.match(normalized):
                raise ValueError(f"Invalid forbidden keyword: {kw!r}")
            if normalized not in keywords:
                keywords.append(normalized)
        self.keywords: Tuple[str, ...] = tuple(keywords)
        self._forbidden_pattern = re.compile(
            r"\b(" + "|".join(self.keywords) + r")\b", re.IGNORECASE
        )

    def validate(self, raw: str) -> ValidationResult:
        """Validates a raw SQL string.

        Args:
            raw (str): The SQL text produced by the model.

        Returns:
            ValidationResult: ``valid=True`` or the first rule the query broke.
        """
        if not raw or not raw.strip():
            return ValidationResult.reject("Empty query", ErrorCode.EMPTY_QUERY)

        cleaned = sanitize(raw)

        # Anything left after dropping the trailing ';' means a second statement.
        if ";" in strip_trailing_semicolon(cleaned):
            return ValidationResult.reject(
                "Multiple SQL statements are not allowed", ErrorCode.MULTIPLE_STATEMENTS
            )

        match = self._forbidden_pattern.search(cleaned)
        if match:
            return ValidationResult.reject(
                f"Forbidden SQL keyword: {match.group(1).upper()}",
                ErrorCode.FORBIDDEN_KEYWORD,
            )

        if not _LEADING_KEYWORD.match(cleaned.strip()):
            return ValidationResult.reject(
                "Query must start with SELECT or WITH (CTE)", ErrorCode.NOT_A_SELECT
            )

        return ValidationResult.ok()


_default_validator = SqlValidator()


def validate_read_only_sql(raw: str) -> ValidationResult:
    """Validates ``raw`` against the built-in denylist."""
    return _default_validator.validate(raw)
