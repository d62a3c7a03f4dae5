from typing import List
from decouple import config, Csv


class Settings:
    # --- Database ---
    # DATABASE_URL wins over the DB_* parts when set (sqlite:// in tests)
    DATABASE_URL_OVERRIDE: str = config("DATABASE_URL", default="")
    DB_USER: str = config("DB_USER", default="postgres")
    DB_PASSWORD: str = config("DB_PASSWORD", default="postgres")
    DB_NAME: str = config("DB_NAME", default="portfolio_tracker")
    DB_HOST: str = config("DB_HOST", default="localhost")
    DB_PORT: int = config("DB_PORT", default=5432, cast=int)
    SQL_ECHO: bool = config("SQL_ECHO", default=False, cast=bool)

    @property
    def DATABASE_URL(self) -> str:
        return self.DATABASE_URL_OVERRIDE or (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # --- Redis ---
    REDIS_HOST: str = config("REDIS_HOST", default="localhost")
    REDIS_PORT: int = config("REDIS_PORT", default=6379, cast=int)
    REDIS_DB: int = config("REDIS_DB", default=0, cast=int)
    REDIS_PASSWORD: str = config("REDIS_PASSWORD", default="")
    REDIS_USE_TLS: bool = config("REDIS_USE_TLS", default=False, cast=bool)

    def redis_url(self, db: int) -> str:
        scheme = "rediss" if self.REDIS_USE_TLS else "redis"
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"{scheme}://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{db}"

    @property
    def REDIS_URL(self) -> str:
        return self.redis_url(self.REDIS_DB)

    # --- Celery ---
    CELERY_BROKER_URL_OVERRIDE: str = config("CELERY_BROKER_URL", default="")
    CELERY_RESULT_BACKEND_OVERRIDE: str = config("CELERY_RESULT_BACKEND", default="")
    CELERY_TIMEZONE: str = config("CELERY_TIMEZONE", default="UTC")
    CELERY_WORKER_CONCURRENCY: int = config("CELERY_WORKER_CONCURRENCY", default=1, cast=int)
    # refreshes run on demand unless beat is switched on
    CELERY_BEAT_ENABLED: bool = config("CELERY_BEAT_ENABLED", default=False, cast=bool)
    REFRESH_MINUTE: str = config("REFRESH_MINUTE", default="5")

    @property
    def CELERY_BROKER_URL(self) -> str:
        return self.CELERY_BROKER_URL_OVERRIDE or self.redis_url(self.REDIS_DB + 1)

    @property
    def CELERY_RESULT_BACKEND(self) -> str:
        return self.CELERY_RESULT_BACKEND_OVERRIDE or self.redis_url(self.REDIS_DB + 2)

    # --- Market data ---
    QUOTE_CACHE_TTL_SECONDS: int = config("QUOTE_CACHE_TTL_SECONDS", default=3600, cast=int)
    PROVIDER_SLEEP_SECONDS: float = config("PROVIDER_SLEEP_SECONDS", default=0.0, cast=float)
    DEFAULT_CURRENCY: str = config("DEFAULT_CURRENCY", default="USD").upper()

    # --- API ---
    API_CACHE_TTL_SECONDS: int = config("API_CACHE_TTL_SECONDS", default=300, cast=int)
    CORS_ORIGINS: List[str] = config(
        "CORS_ORIGINS",
        default="http://localhost:3000,http://127.0.0.1:3000",
        cast=Csv(),
    )

    # --- Logging ---
    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO").upper()
    SQL_LOG_LEVEL: str = config("SQL_LOG_LEVEL", default="WARNING").upper()
    UVICORN_LOG_LEVEL: str = config("UVICORN_LOG_LEVEL", default="info").upper()
    LOG_TO_FILE: bool = config("LOG_TO_FILE", default=True, cast=bool)
    LOG_DIR: str = config("LOG_DIR", default="logs")
    LOG_FILE_MAX_BYTES: int = config("LOG_FILE_MAX_BYTES", default=5_000_000, cast=int)
    LOG_FILE_BACKUPS: int = config("LOG_FILE_BACKUPS", default=5, cast=int)


settings = Settings()
