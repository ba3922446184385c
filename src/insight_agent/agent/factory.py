from typing import Optional

from langchain_core.language_models import BaseChatModel
from sqlalchemy.ext.asyncio import AsyncEngine

from insight_agent.agent.llm import build_chat_model
from insight_agent.agent.sub_agent import DbSubAgent
from insight_agent.common.errors import ConfigurationError
from insight_agent.common.settings import Settings
from insight_agent.execution.executor import GuardedExecutor
from insight_agent.sql.validator import SqlValidator


def build_validator(settings: Settings) -> SqlValidator:
    """Builds the validator with the configured extra keywords.

    Raises:
        ConfigurationError: If SQL_EXTRA_FORBIDDEN_KEYWORDS holds a non-word entry.
    """
    try:
        return SqlValidator(extra_keywords=settings.extra_forbidden_keywords)
    except ValueError as exc:
        raise ConfigurationError(f"SQL_EXTRA_FORBIDDEN_KEYWORDS: {exc}") from exc


def build_executor(settings: Settings, engine: AsyncEngine) -> GuardedExecutor:
    """Builds the guarded executor from settings and an injected engine."""
    return GuardedExecutor(
        engine,
        max_rows=settings.sql_max_rows,
        timeout_ms=settings.sql_timeout_ms,
        validator=build_validator(settings),
    )


def build_sub_agent(
    settings: Settings,
    engine: AsyncEngine,
    llm: Optional[BaseChatModel] = None,
) -> DbSubAgent:
    """Wires settings, the read engine and a chat model into a DbSubAgent.

    Args:
        settings (Settings): Loaded settings.
        engine (AsyncEngine): The read engine, owned by the caller.
        llm (Optional[BaseChatModel]): Chat model override; built from
            settings when omitted.
    """
    return DbSubAgent(
        llm=llm if llm is not None else build_chat_model(settings),
        executor=build_executor(settings, engine),
        max_steps=settings.sub_agent_max_steps,
    )
