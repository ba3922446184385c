from .prompts import get_db_schema_prompt
from .tools import (
    QUERY_WEB3_DATA_TOOL_NAME,
    RUN_SQL_TOOL_NAME,
    build_query_web3_data_tool,
    build_run_sql_tool,
)
from .sub_agent import DbSubAgent, SubAgentResult, compose_user_message
from .factory import build_executor, build_sub_agent, build_validator

__all__ = [
    "get_db_schema_prompt",
    "QUERY_WEB3_DATA_TOOL_NAME",
    "RUN_SQL_TOOL_NAME",
    "build_query_web3_data_tool",
    "build_run_sql_tool",
    "DbSubAgent",
    "SubAgentResult",
    "compose_user_message",
    "build_executor",
    "build_validator",
    "build_sub_agent",
]
