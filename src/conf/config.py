from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database settings
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "contacts_api"
    mongodb_timeout_ms: int = 5000

    # Server settings
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    log_level: str = "INFO"


settings = Settings()
