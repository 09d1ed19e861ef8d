from pydantic_settings import BaseSettings
from typing import List, Literal, Optional
from functools import lru_cache

class Settings(BaseSettings):
    database_url: str = "sqlite:///tutor.db"
    window_backend: Literal["memory", "sqlite"] = "sqlite"
    window_db_path: str = "tutor_messages.db"
    window_capacity: int = 50
    recap_size: int = 10
    quote_limit: int = 150
    prompt_template_path: Optional[str] = None
    cors_origins: List[str] = ["http://localhost:3000"]
    llm_provider: Literal["anthropic", "openai"] = "anthropic"
    llm_model: str = "claude-3-5-haiku-20241022"
    temperature: float = 0.7
    max_tokens: int = 1024
    completion_timeout: float = 60.0
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
