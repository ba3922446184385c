import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from insight_agent.common.errors import ErrorCode
from insight_agent.execution.contracts import ExecutionFailure, ExecutionSuccess
from insight_agent.execution.executor import GuardedExecutor, classify_db_error
from insight_agent.sql.validator import SqlValidator

ROWS = [
    {"repo_name": "ethereum/go-ethereum", "stars": 46000},
    {"repo_name": "foundry-rs/foundry", "stars": 8000},
]


@pytest.mark.asyncio
async def test_successful_query_returns_rows(make_engine, mock_audit):
    engine = make_engine([ROWS])
    executor = GuardedExecutor(engine, max_rows=500, timeout_ms=15000, audit=mock_audit)

    result = await executor.run_sql("SELECT repo_name, stars FROM data.repos ORDER BY stars DESC;")

    assert isinstance(result, ExecutionSuccess)
    assert result.ok
    assert result.columns == ["repo_name", "stars"]
    assert result.rows == ROWS
    assert result.row_count == 2
    assert result.truncated is False
    mock_audit.log_event.assert_not_called()


@pytest.mark.asyncio
async def test_statements_run_in_order_inside_one_transaction(make_engine, mock_audit):
    engine = make_engine([ROWS])
    executor = GuardedExecutor(engine, max_rows=50, timeout_ms=2000, audit=mock_audit)

    await executor.run_sql("SELECT 1")

    assert engine.statements == [
        "SET LOCAL statement_timeout = 2000",
        "SET TRANSACTION READ ONLY",
        "SELECT * FROM (SELECT 1\n) AS _q LIMIT 50",
    ]
    assert engine.begin_calls == 1
    assert engine.commits == 1
    assert engine.rollbacks == 0


@pytest.mark.asyncio
async def test_empty_result(make_engine, mock_audit):
    executor = GuardedExecutor(make_engine([[]]), audit=mock_audit)

    result = await executor.run_sql("SELECT * FROM data.repos WHERE false")

    assert isinstance(result, ExecutionSuccess)
    assert result.columns == []
    assert result.rows == []
    assert result.row_count == 0
    assert result.truncated is False


@pytest.mark.asyncio
async def test_reaching_the_cap_marks_truncated(make_engine, mock_audit):
    rows = [{"n": i} for i in range(3)]
    executor = GuardedExecutor(make_engine([rows]), max_rows=3, audit=mock_audit)

    result = await executor.run_sql("SELECT n FROM generate_series(1, 1000) AS n")

    assert result.row_count == 3
    assert result.truncated is True


@pytest.mark.asyncio
async def test_rejected_query_never_reaches_the_database(make_engine, mock_audit):
    engine = make_engine([ROWS])
    executor = GuardedExecutor(engine, audit=mock_audit)

    result = await executor.run_sql("DELETE FROM data.repos")

    assert isinstance(result, ExecutionFailure)
    assert result.error == "SQL validation failed: Forbidden SQL keyword: DELETE"
    assert result.error_code == ErrorCode.FORBIDDEN_KEYWORD
    assert engine.begin_calls == 0
    assert engine.statements == []
    event_type, payload = mock_audit.log_event.call_args.args
    assert event_type == "sql_rejected"
    assert payload["error_code"] == "FORBIDDEN_KEYWORD"
    assert payload["sql"] == "DELETE FROM data.repos"


@pytest.mark.asyncio
async def test_multiple_statements_rejected(make_engine, mock_audit):
    executor = GuardedExecutor(make_engine(), audit=mock_audit)

    result = await executor.run_sql("SELECT 1; DROP TABLE x")

    assert result.error == "SQL validation failed: Multiple SQL statements are not allowed"


@pytest.mark.asyncio
async def test_custom_validator_is_used(make_engine, mock_audit):
    executor = GuardedExecutor(
        make_engine([ROWS]),
        validator=SqlValidator(extra_keywords=["pg_sleep"]),
        audit=mock_audit,
    )

    result = await executor.run_sql("SELECT pg_sleep(30)")

    assert result.error == "SQL validation failed: Forbidden SQL keyword: PG_SLEEP"


@pytest.mark.asyncio
async def test_database_error_becomes_failure(make_engine, mock_audit):
    engine = make_engine([RuntimeError('relation "data.nope" does not exist')])
    executor = GuardedExecutor(engine, audit=mock_audit)

    result = await executor.run_sql("SELECT * FROM data.nope")

    assert isinstance(result, ExecutionFailure)
    assert result.error == 'Query execution failed: relation "data.nope" does not exist'
    assert result.error_code == ErrorCode.DB_EXECUTION_ERROR
    assert engine.rollbacks == 1
    assert engine.commits == 0
    event_type, payload = mock_audit.log_event.call_args.args
    assert event_type == "sql_execution_failed"
    assert payload["sql"] == "SELECT * FROM (SELECT * FROM data.nope\n) AS _q LIMIT 500"


@pytest.mark.asyncio
async def test_dbapi_error_uses_driver_message(make_engine, mock_audit):
    orig = Exception("canceling statement due to statement timeout")
    engine = make_engine([OperationalError("SELECT ...", {}, orig)])
    executor = GuardedExecutor(engine, audit=mock_audit)

    result = await executor.run_sql("SELECT pg_sleep_for('1 minute')")

    assert result.error == "Query execution failed: canceling statement due to statement timeout"
    assert result.error_code == ErrorCode.EXECUTION_TIMEOUT


@pytest.mark.asyncio
async def test_write_attempt_past_the_validator_is_stopped_by_transaction(make_engine, mock_audit):
    orig = Exception("cannot execute nextval() in a read-only transaction")
    executor = GuardedExecutor(make_engine([DBAPIError("SELECT", {}, orig)]), audit=mock_audit)

    result = await executor.run_sql("SELECT nextval('repo_id_seq')")

    assert result.error_code == ErrorCode.READ_ONLY_VIOLATION


@pytest.mark.asyncio
async def test_execute_skips_validation(make_engine, mock_audit):
    engine = make_engine([[{"x": 1}]])
    executor = GuardedExecutor(engine, audit=mock_audit)

    result = await executor.execute("SELECT * FROM (SELECT 1 AS x) AS _q LIMIT 1")

    assert result.rows == [{"x": 1}]
    assert engine.statements[-1] == "SELECT * FROM (SELECT 1 AS x) AS _q LIMIT 1"


@pytest.mark.parametrize(
    "message, code",
    [
        ("canceling statement due to statement timeout", ErrorCode.EXECUTION_TIMEOUT),
        ("ERROR: Statement Timeout", ErrorCode.EXECUTION_TIMEOUT),
        ("cannot execute INSERT in a read-only transaction", ErrorCode.READ_ONLY_VIOLATION),
        ('column "foo" does not exist', ErrorCode.DB_EXECUTION_ERROR),
    ],
)
def test_classify_db_error(message, code):
    assert classify_db_error(message) == code


@pytest.mark.parametrize("kwargs", [{"max_rows": 0}, {"max_rows": -5}, {"timeout_ms": 0}])
def test_rejects_non_positive_limits(make_engine, kwargs):
    with pytest.raises(ValueError):
        GuardedExecutor(make_engine(), **kwargs)


def test_payload_shapes():
    success = ExecutionSuccess(columns=["a"], rows=[{"a": 1}], row_count=1, truncated=False)
    assert success.to_payload() == {
        "columns": ["a"],
        "rows": [{"a": 1}],
        "rowCount": 1,
        "truncated": False,
    }
    failure = ExecutionFailure(error="boom", error_code=ErrorCode.DB_EXECUTION_ERROR)
    assert failure.to_payload() == {
        "error": "boom",
        "columns": [],
        "rows": [],
        "rowCount": 0,
        "truncated": False,
    }
