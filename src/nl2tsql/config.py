import os

from pydantic import BaseModel


class Settings(BaseModel):
    service_name: str = "nl2tsql"
    environment: str = os.getenv("NL2TSQL_ENV", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # LLM call limits
    llm_timeout_seconds: float = 30.0
    sql_max_tokens: int = 400             # SQL generation reply cap
    narrative_max_tokens: int = 250       # Narrative summary reply cap

    # Conversation memory
    redis_url: str | None = os.getenv("REDIS_URL")
    history_max_messages: int = 20        # Oldest messages dropped beyond this
    history_ttl_seconds: int = 86400      # Redis expiry after last message (24h)
    history_prompt_messages: int = 6      # Recent messages sent with each question


settings = Settings()
