from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from insight_agent.common.event_logger import EventLogger


class FakeResult:
    def __init__(self, rows: List[Dict[str, Any]]):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)


class FakeConnection:
    """Records statements; the driver-level query returns the next queued outcome."""

    def __init__(self, engine: "FakeAsyncEngine"):
        self.engine = engine

    async def execute(self, statement, *args, **kwargs):
        self.engine.statements.append(str(statement))

    async def exec_driver_sql(self, sql: str, *args, **kwargs):
        self.engine.statements.append(sql)
        outcome = self.engine.outcomes.pop(0) if self.engine.outcomes else []
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResult(outcome)


class FakeTransaction:
    def __init__(self, engine: "FakeAsyncEngine"):
        self.engine = engine

    async def __aenter__(self):
        self.engine.begin_calls += 1
        return FakeConnection(self.engine)

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.engine.commits += 1
        else:
            self.engine.rollbacks += 1
        return False


class FakeAsyncEngine:
    """Stands in for sqlalchemy's AsyncEngine.

    Each item in ``outcomes`` is either a list of row dicts or an exception
    to raise, consumed one per query.
    """

    def __init__(self, outcomes: Optional[List[Any]] = None):
        self.outcomes = list(outcomes or [])
        self.statements: List[str] = []
        self.begin_calls = 0
        self.commits = 0
        self.rollbacks = 0

    def begin(self):
        return FakeTransaction(self)


class ScriptedChatModel(BaseChatModel):
    """Chat model that replays a fixed list of AI messages.

    Once the script runs out, the last message is repeated.
    """

    script: List[AIMessage] = Field(default_factory=list)
    error: Optional[Exception] = None
    received: List[List[BaseMessage]] = Field(default_factory=list)
    calls: int = 0

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.received.append(list(messages))
        self.calls += 1
        if self.error is not None:
            raise self.error
        template = self.script[min(self.calls, len(self.script)) - 1]
        message = template.model_copy(update={"id": None}, deep=True)
        return ChatResult(generations=[ChatGeneration(message=message)])


def tool_call_message(query: str, call_id: str = "call_1", content: str = "") -> AIMessage:
    return AIMessage(
        content=content,
        tool_calls=[{
            "name": "run_sql",
            "args": {"query": query, "explanation": "test"},
            "id": call_id,
        }],
    )


@pytest.fixture
def make_engine():
    """Factory for FakeAsyncEngine with queued query outcomes."""
    return FakeAsyncEngine


@pytest.fixture
def make_model():
    """Factory for ScriptedChatModel."""
    def _make(*script, error=None):
        return ScriptedChatModel(script=list(script), error=error)
    return _make


@pytest.fixture
def run_sql_call():
    """Builds an AIMessage that calls run_sql with the given query."""
    return tool_call_message


@pytest.fixture
def mock_audit():
    """EventLogger stand-in so tests never write audit files."""
    return MagicMock(spec=EventLogger)
