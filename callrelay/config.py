"""
Configuration management for callrelay.
"""
from typing import List
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

from callrelay import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment and .env file."""

    # Application
    app_name: str = "callrelay"
    app_version: str = __version__
    debug: bool = False
    log_level: str = Field("INFO", description="Ignored when DEBUG is true")
    log_retention_days: int = 7

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    public_base_url: str = Field(
        "",
        description="Base URL used when listing webhook endpoints (empty = derive from request)"
    )

    # Flat-file persistence
    data_dir: str = Field("./data", description="Directory holding webhooks, archive and changelog JSON")

    # GoTo Connect credentials
    goto_client_id: str = ""
    goto_client_secret: str = ""
    goto_phone_number: str = Field("", description="Sender number owned by the GoTo account")
    my_phone_number: str = Field("", description="Fallback recipient for test messages and the seeded config")
    goto_token_url: str = "https://authentication.logmeininc.com/oauth/token"
    goto_sms_api_url: str = "https://api.goto.com/messaging/v1/messages"

    # Management API behaviour
    allow_overwrite_on_create: bool = Field(
        True,
        description="Let POST /api/webhooks replace an existing active config of the same name"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    def missing_credentials(self) -> List[str]:
        """Names of required environment variables that are not set."""
        required = {
            "GOTO_CLIENT_ID": self.goto_client_id,
            "GOTO_CLIENT_SECRET": self.goto_client_secret,
            "GOTO_PHONE_NUMBER": self.goto_phone_number,
            "MY_PHONE_NUMBER": self.my_phone_number,
        }
        return [name for name, value in required.items() if not value]


# Global settings instance
settings = Settings()
