from __future__ import annotations

import time
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from insight_agent.common.errors import ErrorCode, severity_for
from insight_agent.common.event_logger import EventLogger, event_logger as default_event_logger
from insight_agent.common.logger import get_logger
from insight_agent.execution.contracts import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
)
from insight_agent.sql.limits import MAX_SQL_ROWS, SQL_TIMEOUT_MS, wrap_with_limit
from insight_agent.sql.validator import SqlValidator

logger = get_logger("executor")


def _error_message(exc: Exception) -> str:
    # DBAPIError.__str__ appends the SQL and a docs link; the driver message is enough.
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc) or type(exc).__name__


def classify_db_error(message: str) -> ErrorCode:
    """Maps a database error message to an ErrorCode."""
    lowered = message.lower()
    if "statement timeout" in lowered or "canceling statement" in lowered:
        return ErrorCode.EXECUTION_TIMEOUT
    if "read-only transaction" in lowered:
        return ErrorCode.READ_ONLY_VIOLATION
    return ErrorCode.DB_EXECUTION_ERROR


class GuardedExecutor:
    """Runs model-generated SQL against Postgres behind three guards.

    1. ``SqlValidator`` rejects anything but a single SELECT/WITH statement.
    2. ``wrap_with_limit`` caps the result at ``max_rows``.
    3. The query runs in a transaction marked READ ONLY with a
       transaction-scoped ``statement_timeout``.

    Every outcome comes back as an ``ExecutionResult``; nothing raises past
    this class, because the caller is a model that can only read tool output.

    Attributes:
        engine (AsyncEngine): Pooled engine for the analytics database.
        max_rows (int): Row cap applied to every query.
        timeout_ms (int): Statement timeout in milliseconds.
        validator (SqlValidator): Read-only validator.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        max_rows: int = MAX_SQL_ROWS,
        timeout_ms: int = SQL_TIMEOUT_MS,
        validator: Optional[SqlValidator] = None,
        audit: Optional[EventLogger] = None,
    ):
        if max_rows <= 0:
            raise ValueError(f"max_rows must be positive, got {max_rows}")
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
        self.engine = engine
        self.max_rows = max_rows
        self.timeout_ms = int(timeout_ms)
        self.validator = validator or SqlValidator()
        self.audit = audit or default_event_logger

    async def run_sql(self, query: str) -> ExecutionResult:
        """Validates, wraps and executes one model-supplied query.

        Args:
            query (str): Raw SQL from the tool call.

        Returns:
            ExecutionResult: Rows on success; the validation or database error
            otherwise. A rejected query never reaches the database.
        """
        validation = self.validator.validate(query)
        if not validation.valid:
            code = validation.error_code or ErrorCode.UNKNOWN_ERROR
            logger.warning(f"Rejected SQL ({code.value}): {validation.error}")
            self.audit.log_event(
                "sql_rejected",
                {
                    "error_code": code.value,
                    "severity": severity_for(code).value,
                    "error": validation.error,
                    "sql": query,
                },
            )
            return ExecutionFailure(
                error=f"SQL validation failed: {validation.error}",
                error_code=code,
            )

        return await self.execute(wrap_with_limit(query, self.max_rows))

    async def execute(self, wrapped_query: str) -> ExecutionResult:
        """Executes an already validated and wrapped query.

        ``engine.begin()`` commits on success and rolls back on any exception;
        in both cases the connection goes back to the pool. ``SET LOCAL``
        keeps the timeout from leaking to the next user of the connection.

        Args:
            wrapped_query (str): Output of ``wrap_with_limit``.

        Returns:
            ExecutionResult: ``ExecutionSuccess`` or ``ExecutionFailure``.
        """
        start = time.perf_counter()
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text(f"SET LOCAL statement_timeout = {self.timeout_ms}"))
                await conn.execute(text("SET TRANSACTION READ ONLY"))
                # exec_driver_sql skips bind parsing so ':' inside literals survives.
                result = await conn.exec_driver_sql(wrapped_query)
                rows = [dict(row) for row in result.mappings().all()]
        except Exception as exc:
            message = _error_message(exc)
            code = classify_db_error(message)
            duration = (time.perf_counter() - start) * 1000
            logger.error(f"Query execution failed after {duration:.1f}ms ({code.value}): {message}")
            self.audit.log_event(
                "sql_execution_failed",
                {
                    "error_code": code.value,
                    "severity": severity_for(code).value,
                    "error": message,
                    "sql": wrapped_query,
                    "duration_ms": duration,
                },
            )
            return ExecutionFailure(
                error=f"Query execution failed: {message}",
                error_code=code,
            )

        columns = list(rows[0].keys()) if rows else []
        row_count = len(rows)
        duration = (time.perf_counter() - start) * 1000
        logger.info(f"Executed query in {duration:.1f}ms. Rows: {row_count}.")
        return ExecutionSuccess(
            columns=columns,
            rows=rows,
            row_count=row_count,
            # Reaching the cap is read as "there may be more".
            truncated=row_count >= self.max_rows,
        )
