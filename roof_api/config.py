"""App configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./validations.db"
    database_echo: bool = False

    # Model catalog YAML; selection is disabled when unset
    catalog_path: str | None = None

    # Inference contract
    enforce_palette: bool = True  # reject responses whose color is outside allowedColors

    # Record store defaults
    pending_upload_limit: int = 100
    recent_limit: int = 20

    # CORS
    cors_origins: list[str] = ["*"]

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "ROOFAPI_", "env_file": ".env"}


settings = Settings()
