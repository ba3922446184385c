import pytest
from langchain_core.messages import AIMessage

from insight_agent.agent.factory import build_executor, build_sub_agent, build_validator
from insight_agent.agent.llm import build_chat_model
from insight_agent.common.errors import ConfigurationError
from insight_agent.common.settings import Settings


@pytest.fixture
def settings(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "SQL_EXTRA_FORBIDDEN_KEYWORDS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SQL_MAX_ROWS", "50")
    monkeypatch.setenv("SQL_TIMEOUT_MS", "3000")
    monkeypatch.setenv("SUB_AGENT_MAX_STEPS", "3")
    return Settings(_env_file=None)


def test_chat_model_requires_api_key(settings):
    with pytest.raises(ConfigurationError):
        build_chat_model(settings)


def test_chat_model_uses_configured_model(settings):
    settings.openai_api_key = "sk-test"
    settings.model_name = "gpt-4o"
    settings.temperature = 0.0

    model = build_chat_model(settings)

    assert model.model_name == "gpt-4o"
    assert model.temperature == 0.0
    assert "db_sub_agent" in model.tags


def test_executor_takes_limits_from_settings(settings, make_engine):
    settings.sql_extra_forbidden_keywords = "pg_sleep"

    executor = build_executor(settings, make_engine())

    assert executor.max_rows == 50
    assert executor.timeout_ms == 3000
    assert "PG_SLEEP" in executor.validator.keywords


def test_invalid_extra_keyword_is_a_configuration_error(settings, make_engine):
    settings.sql_extra_forbidden_keywords = "pg_sleep,DROP;--"

    with pytest.raises(ConfigurationError, match="SQL_EXTRA_FORBIDDEN_KEYWORDS"):
        build_validator(settings)
    with pytest.raises(ConfigurationError):
        build_executor(settings, make_engine())


def test_sub_agent_wiring(settings, make_engine, make_model):
    model = make_model(AIMessage(content="ok"))

    agent = build_sub_agent(settings, make_engine(), llm=model)

    assert agent.llm is model
    assert agent.max_steps == 3
    assert agent.executor.max_rows == 50
