from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # In-memory SQLite unless DATABASE_URL points somewhere durable.
    database_url: str = Field(default="sqlite://")
    app_name: str = "User Management"
    log_level: str = Field(default="INFO")
    log_owner: str = Field(default="Admin")
    seed_on_startup: bool = True
    default_page_size: int = Field(default=20, gt=0)


settings = Settings()
