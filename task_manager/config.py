"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    app_name: str = Field(default="Task Manager", description="Application name")
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=8000, description="FastAPI port")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Directory for rotating log files")
    log_to_file: bool = Field(default=True, description="Write app.log and error.log")

    # API Configuration
    default_user_id: int = Field(default=1, gt=0, description="User the REST API acts on behalf of")
    default_page_size: int = Field(default=10, ge=1, description="Tasks per page when no limit is given")
    max_page_size: int = Field(default=100, ge=1, description="Upper bound for the page size")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
