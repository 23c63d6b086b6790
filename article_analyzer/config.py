from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    openai_api_key: str
    openai_model: str = "gpt-4.1-mini"
    database_url: str = "sqlite:///./article_analyzer.db"
    db_pool_size: int = 2
    allowed_origins: str = "*"
    storage_path: str = "./storage"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    max_file_size_mb: int = 10
    analysis_timeout_seconds: int = 30
    session_ttl_days: int = 30
    cookie_secure: bool = True

    class Config:
        env_file = ".env"

    @field_validator("max_file_size_mb", "analysis_timeout_seconds", "session_ttl_days", "db_pool_size")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, v):
        if not v.strip():
            raise ValueError("OPENAI_API_KEY must not be blank")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        return v.upper()

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
