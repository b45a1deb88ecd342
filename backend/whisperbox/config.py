"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./whisperbox.db", alias="DATABASE_URL"
    )
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    access_token_expires_minutes: int = Field(default=60 * 24 * 30)
    verify_code_expires_minutes: int = Field(default=60)

    # SMTP transport used for verification codes
    smtp_host: str = Field(default="smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(default=465, alias="SMTP_PORT")
    smtp_username: str = Field(default="", alias="SMTP_USERNAME")
    smtp_password: str = Field(default="", alias="SMTP_PASSWORD")
    mail_from: str = Field(default="", alias="MAIL_FROM")

    # Generative AI provider
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", alias="GEMINI_MODEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


def _env_overrides() -> dict[str, str]:
    """Collect the environment variables matching a field alias."""

    overrides: dict[str, str] = {}
    for name, field in Settings.model_fields.items():
        if field.alias and field.alias in os.environ:
            overrides[name] = os.environ[field.alias]
    return overrides


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings(**_env_overrides())
