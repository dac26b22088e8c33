"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, Twilio credentials, verification windows)
- Validates configuration on startup
- Environment-specific settings
"""

from datetime import timedelta
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import List, Optional, Literal

from app.core.exceptions import ConfigurationError

from utils.constants import (
    DEFAULT_SMS_BODY_TEMPLATE,
    SMS_TOKEN_LENGTH,
    SMS_TOKEN_MAX_ATTEMPTS,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="smsverify",
        description="MongoDB database name"
    )
    MONGODB_ACCOUNTS_COLLECTION: str = Field(
        default="accounts",
        description="Collection holding the account documents"
    )

    # Twilio SMS
    TWILIO_ACCOUNT_SID: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    TWILIO_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    TWILIO_SMS_NUMBER: Optional[str] = Field(
        default=None,
        description="Sender number for confirmation SMS (+14155238886)"
    )
    TWILIO_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Twilio API request timeout in seconds"
    )

    # SMS confirmation
    SMS_CONFIRM_WITHIN_SECONDS: int = Field(
        default=0,
        description="Grace period during which an unconfirmed account may still sign in"
    )
    SMS_TOKEN_VALIDITY_SECONDS: Optional[int] = Field(
        default=None,
        description="How long an issued token can be confirmed (defaults to SMS_CONFIRM_WITHIN_SECONDS)"
    )
    SMS_CONFIRMATION_KEYS: List[str] = Field(
        default=["phone"],
        description="Ordered account fields used to look up an account for resending"
    )
    SMS_TOKEN_LENGTH: int = Field(
        default=SMS_TOKEN_LENGTH,
        description="Length of generated confirmation tokens"
    )
    SMS_TOKEN_MAX_ATTEMPTS: int = Field(
        default=SMS_TOKEN_MAX_ATTEMPTS,
        description="Maximum regenerations on token collision"
    )
    SMS_BODY_TEMPLATE: str = Field(
        default=DEFAULT_SMS_BODY_TEMPLATE,
        description="Confirmation SMS body, {token} is substituted"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @validator("SMS_CONFIRM_WITHIN_SECONDS", "SMS_TOKEN_VALIDITY_SECONDS")
    def validate_window(cls, v):
        """Windows are durations and cannot be negative."""
        if v is not None and v < 0:
            raise ValueError("confirmation windows must be >= 0 seconds")
        return v

    @validator("SMS_CONFIRMATION_KEYS")
    def validate_confirmation_keys(cls, v):
        """At least one identifier field is needed for lookups."""
        keys = [key.strip() for key in v if key and key.strip()]
        if not keys:
            raise ValueError("SMS_CONFIRMATION_KEYS must name at least one field")
        return keys

    @validator("SMS_TOKEN_LENGTH", "SMS_TOKEN_MAX_ATTEMPTS")
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def twilio_configured(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_SMS_NUMBER)

    @property
    def confirm_within(self) -> timedelta:
        """Grace period window."""
        return timedelta(seconds=self.SMS_CONFIRM_WITHIN_SECONDS)

    @property
    def token_valid_for(self) -> timedelta:
        """Confirmation-validity window."""
        if self.SMS_TOKEN_VALIDITY_SECONDS is None:
            return self.confirm_within
        return timedelta(seconds=self.SMS_TOKEN_VALIDITY_SECONDS)

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings(current: Optional[Settings] = None):
    """
    Validates critical settings on application startup.
    Raises ConfigurationError if any required setting is missing or invalid.
    """
    current = current or settings
    errors = []

    # Validate MongoDB URI
    if not current.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if "{token}" not in current.SMS_BODY_TEMPLATE:
        errors.append("SMS_BODY_TEMPLATE must contain {token}")

    # Production-specific validations
    if current.is_production:
        if not current.twilio_configured:
            errors.append("TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_SMS_NUMBER are required in production")

    if errors:
        raise ConfigurationError(
            f"Configuration validation failed: {', '.join(errors)}",
            details=errors
        )

    return True
