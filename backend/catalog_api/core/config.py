from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Catalog Admin Backend"

    # Database
    DATABASE_URL: str = "sqlite:///./catalog.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = None
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 10

    # Admin guard (open when unset)
    ADMIN_API_TOKEN: str | None = None

    # Zone used for "YYYY-MM-DDTHH:MM" promo window inputs
    PROMO_TIMEZONE: str = "UTC"

    # Pagination
    PAGE_SIZE_DEFAULT: int = 20
    PAGE_SIZE_MAX: int = 100

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow"
    )


settings = Settings()
