"""Session coordinator configuration via pydantic-settings."""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings

# Environments in which the session-check bypass may be switched on
BYPASS_ALLOWED_ENVIRONMENTS = {"development", "dev", "test", "testing", "local"}


class SessionSettings(BaseSettings):
    environment: str = "development"

    # Timeout / retry policy
    get_timeout_seconds: float = 10.0
    refresh_timeout_seconds: float = 15.0
    max_attempts: int = 3
    retry_delay_seconds: float = 1.0

    # Skips every session check in execute_with_session. Dev/test only.
    bypass_session_checks: bool = False

    # Identity backend (GoTrue-style auth server)
    auth_base_url: str = ""
    auth_api_key: str = ""
    auth_refresh_token: str = ""
    auth_http_timeout_seconds: float = 30.0
    expiry_buffer_seconds: int = 300

    # Connectivity probe; empty host means "assume online"
    connectivity_host: str = ""
    connectivity_port: int = 443
    connectivity_timeout_seconds: float = 1.0

    model_config = {"env_prefix": "SESSION_", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _guard_bypass(self) -> "SessionSettings":
        if self.bypass_session_checks and not self.bypass_allowed:
            raise ValueError(
                "bypass_session_checks is enabled outside a development/test "
                f"environment (environment={self.environment!r}). Refusing to start "
                "with session checks disabled."
            )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        return self

    @property
    def bypass_allowed(self) -> bool:
        return self.environment.strip().lower() in BYPASS_ALLOWED_ENVIRONMENTS

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}

    @property
    def http_backend_configured(self) -> bool:
        return bool(self.auth_base_url and self.auth_api_key)


settings = SessionSettings()
