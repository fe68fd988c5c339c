from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_TIMEZONE: str = "America/Los_Angeles"

    RESERVATION_STORE_URL: str | None = None
    DIRECTORY_URL: str | None = None
    HTTP_TIMEOUT_SECONDS: float = 10.0

    WIZARD_CACHE_BACKEND: str | None = None
    WIZARD_CACHE_DIR: str = "./data/wizard"

    MORNING_CUTOFF_HOUR: int = 12
    DEFAULT_BASE_RATE: int = 100


settings = Settings()
