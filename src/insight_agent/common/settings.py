from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Sub-agent configuration backed by environment variables."""

    database_url: Optional[str] = Field(
        default=None,
        validation_alias="COPILOT_DATABASE_URL",
        description="Postgres URL of the analytics database (read-only account expected)."
    )
    openai_api_key: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(default=None, validation_alias="OPENAI_BASE_URL")

    model_name: str = Field(
        default="gpt-4o-mini",
        validation_alias="COPILOT_MODEL",
        description="Chat model the DB sub-agent runs on."
    )
    temperature: float = Field(default=0.2, validation_alias="COPILOT_TEMPERATURE")

    sql_max_rows: int = Field(
        default=500,
        gt=0,
        validation_alias="SQL_MAX_ROWS",
        description="Outer LIMIT applied to every tool query."
    )
    sql_timeout_ms: int = Field(
        default=15000,
        gt=0,
        validation_alias="SQL_TIMEOUT_MS",
        description="Per-transaction statement_timeout in milliseconds."
    )
    sub_agent_max_steps: int = Field(
        default=5,
        gt=0,
        validation_alias="SUB_AGENT_MAX_STEPS",
        description="Maximum model steps (model call plus its tool calls) per question."
    )
    sql_extra_forbidden_keywords: str = Field(
        default="",
        validation_alias="SQL_EXTRA_FORBIDDEN_KEYWORDS",
        description="Comma separated keywords added to the built-in denylist."
    )

    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, validation_alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=1800, validation_alias="DB_POOL_RECYCLE")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")
    audit_log_path: str = Field(
        default="logs/audit_events.log",
        validation_alias="AUDIT_LOG_PATH",
        description="Path to the persistent audit log file."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    @property
    def extra_forbidden_keywords(self) -> List[str]:
        """Parsed form of SQL_EXTRA_FORBIDDEN_KEYWORDS."""
        return [
            kw.strip().upper()
            for kw in self.sql_extra_forbidden_keywords.split(",")
            if kw.strip()
        ]


settings = Settings()
