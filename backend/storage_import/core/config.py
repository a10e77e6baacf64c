"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database ──────────────────────────────
    POSTGRES_USER: str = "storage_import_user"
    POSTGRES_PASSWORD: str = "storage_import_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "crm_db"

    # Full async URL; wins over the POSTGRES_* parts when set (e.g. sqlite+aiosqlite for local runs)
    DATABASE_URL_OVERRIDE: str = ""

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg)."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ── Redis / Celery ────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── LLM Provider ─────────────────────────
    ANTHROPIC_API_KEY: str = ""
    LLM_MODEL: str = "claude-sonnet-4-20250514"
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_TOKENS: int = 2000
    ANALYZER_MAX_INPUT_CHARS: int = 12000

    # ── LangSmith Tracing ────────────────────
    LANGSMITH_API_KEY: str = ""
    LANGSMITH_ENDPOINT: str = "https://api.smith.langchain.com"
    LANGSMITH_PROJECT: str = "storage-import"
    LANGSMITH_TRACING: bool = False

    # ── Internal services ─────────────────────
    DEAL_HEALTH_API_BASE_URL: str = "http://localhost:8100/api/v1"
    ACTIONS_API_BASE_URL: str = "http://localhost:8200/api/v1"
    TOKEN_SERVICE_BASE_URL: str = "http://localhost:8300/api/v1"
    SERVICE_API_KEY: str = ""
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # ── Storage providers ─────────────────────
    MICROSOFT_GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0"
    GOOGLE_DRIVE_BASE_URL: str = "https://www.googleapis.com/drive/v3"
    MAX_FILE_SIZE_BYTES: int = 10 * 1024 * 1024
    BATCH_PROCESS_LIMIT: int = 20

    # 0 disables the per-stage deadline
    STAGE_TIMEOUT_SECONDS: float = 0

    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    CORS_ORIGINS: list[str] = ["*"]

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
