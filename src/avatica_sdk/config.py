"""
Client configuration for the Avatica SDK.

Settings are validated once at construction and are read-only afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MAX_RETRIES = 1
DEFAULT_TIMEOUT = 30.0


class ClientSettings(BaseModel):
    """
    Immutable configuration for an ``AvaticaClient``.

    Attributes:
        url: Avatica server endpoint (e.g. "http://localhost:8765")
        max_retries: Total number of attempts for a request answered with 5xx
        timeout: Request timeout in seconds for the default HTTP client
        headers: Extra headers sent with every request (e.g. Authorization)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(min_length=1)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('param "url" is required')
        return value.rstrip("/")


__all__ = ["ClientSettings", "DEFAULT_MAX_RETRIES", "DEFAULT_TIMEOUT"]
