"""
Pydantic-based configuration for the resolver/pinning override.

All knobs are exposed via NETX_* environment variables (or a .env file) so
the same codebase can run as a library, the CLI or the API by changing env
flags.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NETX_", case_sensitive=False, env_file=".env", extra="ignore")

    # Association list
    associations_file: str = Field("netxrc.json", description="JSON file holding {'associations': {...}}")
    strict_config: bool = Field(False, description="reject unrecognized host entries instead of ignoring them")
    readonly: bool = Field(True, description="forbid replacing the address book after load")

    # Validation defaults
    check_pinning_only: bool = Field(False, description="skip hostname/expiry checks, pins only")

    # Timeouts
    tls_timeout_s: float = Field(5.0)
    http_timeout_s: float = Field(5.0)

    # Logging
    debug: bool = Field(False)

    # HTTP user agent
    user_agent: str = Field("netx/0.1 (+pinned-https-probe)")

    @field_validator("tls_timeout_s", "http_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
