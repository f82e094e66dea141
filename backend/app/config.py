"""
Application settings
Read from environment variables (or a local .env file)
"""
import os
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Hotel Ops"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./hotel_ops.db"

    # Hotels without an explicit timezone are evaluated in this zone
    DEFAULT_HOTEL_TIMEZONE: str = os.environ.get("DEFAULT_HOTEL_TIMEZONE", "America/Chicago")

    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # CORS (comma separated)
    CORS_ALLOW_ORIGINS: str = "*"

    model_config = ConfigDict(env_file=".env", case_sensitive=True)

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


# Global settings instance
settings = Settings()
