"""Configuration management for termail.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
The settings object is frozen so one instance can be handed to every
pipeline stage and worker.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from termail.models import WrapPolicy

MAX_NESTING_DEPTH = 100


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the TERMAIL_ prefix (e.g., TERMAIL_DISPLAY_WIDTH).
    """

    model_config = SettingsConfigDict(
        env_prefix="TERMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Decoding
    default_charset: str = Field(
        default="utf-8",
        description="Charset used for outgoing text that is not plain ASCII",
    )
    charset_fallback: str = Field(
        default="windows-1252",
        description="Charset used when a message declares an unknown one",
    )
    max_depth: int = Field(
        default=50,
        ge=1,
        le=MAX_NESTING_DEPTH,
        description="Maximum multipart nesting depth parsed before truncating",
    )
    max_header_bytes: int = Field(
        default=256 * 1024,
        ge=1024,
        description="Bytes scanned for the header/body separator",
    )

    # Display
    display_width: int = Field(
        default=80,
        ge=1,
        description="Width used when the terminal width is unknown",
    )
    wrap_policy: WrapPolicy = Field(
        default=WrapPolicy.WORD,
        description="How long lines are broken (word, char, none)",
    )
    text_format: Literal["plain", "html"] = Field(
        default="plain",
        description="Preferred alternative when a message offers several",
    )
    show_headers: tuple[str, ...] = Field(
        default=("From", "To", "Cc", "Date", "Subject"),
        description="Header fields shown above the message body",
    )

    # Account
    address: str | None = Field(default=None, description="Sender address for composed mail")
    display_name: str | None = Field(default=None, description="Sender display name")
    signature: str | None = Field(default=None, description="Signature appended to composed mail")
    signature_delimiter: str = Field(
        default="-- ",
        description="Line separating body and signature",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
