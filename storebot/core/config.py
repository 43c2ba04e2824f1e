from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    OPENAI_API_KEY: str | None = None

    OPENAI_MODEL_CLASSIFY: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE_CLASSIFY: float = 0.1
    OPENAI_MAX_TOKENS_CLASSIFY: int = 500
    OPENAI_TIMEOUT_SECONDS: float = 20.0
    OPENAI_COST_INPUT_PER_1K: float = 0.00015
    OPENAI_COST_OUTPUT_PER_1K: float = 0.0006

    BUSINESS_TIMEZONE: str = "America/Los_Angeles"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SHEETS_API_URL: str | None = None
    SHEETS_API_KEY: str | None = None
    SHEETS_TIMEOUT_SECONDS: float = 5.0

    # "memory", "database", "tiered" or "none"
    CACHE_STRATEGY: str = "tiered"
    MEMORY_CACHE_TTL_SECONDS: int = 300
    DATABASE_CACHE_TTL_SECONDS: int = 3600
    CACHE_DATABASE_URL: str = "sqlite:///./data/sheet_cache.db"
    CACHE_SINGLE_FLIGHT: bool = True

    # "fixed" or "hours"
    SLOT_STRATEGY: str = "fixed"
    BOOKING_SLOT_DAYS: int = 7

    HISTORY_TURNS: int = 6
    DEBUG_MAX_REQUESTS: int = 100
    DEBUG_QUEUE_SIZE: int = 1000


settings = Settings()
