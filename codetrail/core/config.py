from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
import json


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "CodeTrail"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # CORS origins (JSON list string in env)
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:8080"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return json.loads(v)
        return v

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "codetrail"
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    DB_ECHO: bool = False

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v, values):
        if isinstance(v, str) and v:
            return v
        return (
            f"postgresql+asyncpg://{values.data.get('POSTGRES_USER')}:"
            f"{values.data.get('POSTGRES_PASSWORD')}@"
            f"{values.data.get('POSTGRES_SERVER')}:5432/"
            f"{values.data.get('POSTGRES_DB')}"
        )

    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    DASHBOARD_CACHE_TTL: int = 900
    COACH_CACHE_TTL: int = 600
    ANALYTICS_CACHE_TTL: int = 600

    # Platform collectors
    LEETCODE_GRAPHQL_URL: str = "https://leetcode.com/graphql"
    CODEFORCES_API_URL: str = "https://codeforces.com/api"
    HTTP_TIMEOUT: int = 15
    CODEFORCES_SYNC_LIMIT: int = 500
    LEETCODE_RECENT_LIMIT: int = 20

    # Calendar cache older than this is re-fetched from LeetCode
    CALENDAR_STALE_MINUTES: int = 60

    SECRET_KEY: str = "change-this-to-a-secure-random-string-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


settings = Settings()
