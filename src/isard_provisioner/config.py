"""Configuration management for the IsardVDI provisioner."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ISARD_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # Connection settings
    endpoint: str = Field(default="", description="Host name of the IsardVDI server")
    timeout_seconds: int = Field(default=60, description="HTTP request timeout")
    verify_ssl: bool = Field(default=False, description="Verify the server TLS certificate")

    # Authentication settings
    auth_method: Literal["token", "form"] | None = Field(
        default=None, description="Authentication flow: token, form, or unset to use token as-is"
    )
    category_id: str = Field(default="default", description="Category the login is scoped to")
    token: str | None = Field(default=None, description="Pre-session token")
    username: str | None = Field(default=None, description="Username for form login")
    password: str | None = Field(default=None, description="Password for form login")

    def check_auth(self) -> None:
        """Validate that the selected authentication method has its credentials."""
        if not self.endpoint:
            raise ConfigurationError("An IsardVDI endpoint must be configured.")
        if self.auth_method == "form" and not (self.username and self.password):
            raise ConfigurationError(
                "When using 'form' authentication method, both 'username' and 'password' must be provided."
            )
        if self.auth_method == "token" and not self.token:
            raise ConfigurationError(
                "When using 'token' authentication method, 'token' must be provided."
            )


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
