from insight_agent.sql.validator import strip_trailing_semicolon

MAX_SQL_ROWS = 500
SQL_TIMEOUT_MS = 15_000


def wrap_with_limit(query: str, max_rows: int = MAX_SQL_ROWS) -> str:
    """Wraps a validated query in an outer subquery capped at ``max_rows``.

    The outer LIMIT applies whatever the inner query does: no LIMIT, a larger
    LIMIT, ORDER BY, or a CTE.

    Args:
        query (str): A query that already passed validation.
        max_rows (int): The row cap.

    Returns:
        str: ``SELECT * FROM (<query>) AS _q LIMIT <max_rows>``, with the
        closing parenthesis on its own line.

    Raises:
        ValueError: If ``max_rows`` is not a positive integer.
    """
    if isinstance(max_rows, bool) or not isinstance(max_rows, int) or max_rows <= 0:
        raise ValueError(f"max_rows must be a positive integer, got {max_rows!r}")
    inner = strip_trailing_semicolon(query.strip())
    # A trailing "--" comment in the query ends at the newline, not at the cap.
    return f"SELECT * FROM ({inner}\n) AS _q LIMIT {max_rows}"
