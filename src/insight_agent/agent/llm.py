from langchain_openai import ChatOpenAI

from insight_agent.common.errors import ConfigurationError
from insight_agent.common.settings import Settings


def build_chat_model(settings: Settings) -> ChatOpenAI:
    """Builds the chat model the DB sub-agent runs on.

    Args:
        settings (Settings): Loaded settings (model, temperature, credentials).

    Returns:
        ChatOpenAI: The configured client.

    Raises:
        ConfigurationError: If no OpenAI API key is configured.
    """
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not configured.")

    kwargs = {}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url

    return ChatOpenAI(
        model=settings.model_name,
        api_key=settings.openai_api_key,
        temperature=settings.temperature,
        tags=["db_sub_agent"],
        **kwargs,
    )
