from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Tuple

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from insight_agent.execution.contracts import ExecutionResult
from insight_agent.execution.executor import GuardedExecutor

if TYPE_CHECKING:
    from insight_agent.agent.sub_agent import DbSubAgent, SubAgentResult

RUN_SQL_TOOL_NAME = "run_sql"
QUERY_WEB3_DATA_TOOL_NAME = "queryWeb3Data"


class RunSqlInput(BaseModel):
    query: str = Field(description="The SQL SELECT query to execute")
    explanation: str = Field(description="Brief explanation of what this query does and why")


class QueryWeb3DataInput(BaseModel):
    context: str = Field(description="Brief conversation context for the sub-agent")
    question: str = Field(description="The specific data question to answer")


def to_tool_content(payload: Dict[str, Any]) -> str:
    """Serializes a tool payload for the model; dates and decimals become strings."""
    return json.dumps(payload, default=str)


def build_run_sql_tool(executor: GuardedExecutor) -> StructuredTool:
    """Wraps the guarded executor as the ``run_sql`` tool.

    The model receives the JSON payload as the tool message content. The typed
    ``ExecutionResult`` rides along as the message artifact so the sub-agent
    can pick out successful results without re-parsing JSON.

    Args:
        executor (GuardedExecutor): The executor bound to the analytics database.

    Returns:
        StructuredTool: The ``run_sql`` tool.
    """

    async def run_sql(query: str, explanation: str) -> Tuple[str, ExecutionResult]:
        # explanation is for the model's own bookkeeping; it does not affect execution.
        result = await executor.run_sql(query)
        return to_tool_content(result.to_payload()), result

    return StructuredTool.from_function(
        coroutine=run_sql,
        name=RUN_SQL_TOOL_NAME,
        description=(
            "Execute a read-only SQL query against the Web3Insight PostgreSQL database. "
            "Only SELECT statements are allowed. "
            f"Results are capped at {executor.max_rows} rows."
        ),
        args_schema=RunSqlInput,
        response_format="content_and_artifact",
        handle_validation_error=True,
    )


def build_query_web3_data_tool(sub_agent: DbSubAgent) -> StructuredTool:
    """Exposes the whole DB sub-agent as a single tool for a parent copilot agent."""

    async def query_web3_data(context: str, question: str) -> Tuple[str, SubAgentResult]:
        result = await sub_agent.answer(question=question, context=context)
        return to_tool_content(result.to_payload()), result

    return StructuredTool.from_function(
        coroutine=query_web3_data,
        name=QUERY_WEB3_DATA_TOOL_NAME,
        description=(
            "Query the Web3Insight analytics database directly for custom data analysis. "
            "Use for: custom time ranges, cross-ecosystem comparisons, event type breakdowns, "
            "developer activity patterns, JSONB field analysis, ad-hoc aggregations. "
            "Not for queries the other specific tools can answer."
        ),
        args_schema=QueryWeb3DataInput,
        response_format="content_and_artifact",
        handle_validation_error=True,
    )
