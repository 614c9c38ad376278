"""API configuration models.

Settings for reaching the Checkpointer REST API: base URL, transport
timeout, session credentials and client-side throttling.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ApiSettings(BaseModel):
    """Checkpointer API configuration.

    Security: session_cookie is masked in __repr__ to prevent accidental
    exposure in logs.
    """

    base_url: str = Field(
        default="http://localhost:3000",
        description="Scheme and host of the API server (paths start with /api)",
    )

    # None leaves a hanging request pending until the transport gives up
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Total request timeout in seconds",
    )

    session_cookie: str = Field(
        default="",
        repr=False,
        description="Raw Cookie header of an authenticated session",
    )

    rate_limit_rps: float | None = Field(
        default=None,
        gt=0,
        description="Client-side request rate limit (requests per second)",
    )
    concurrent_requests: int = Field(
        default=10,
        gt=0,
        description="Maximum number of concurrent requests",
    )
    user_agent: str = Field(default="checkpointer-client", description="User-Agent header")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            msg = f"base_url must be an http(s) URL, got {value!r}"
            raise ValueError(msg)
        return value.rstrip("/")

    def __repr__(self) -> str:
        masked = "****" if self.session_cookie else "[empty]"
        return (
            f"ApiSettings("
            f"base_url={self.base_url!r}, "
            f"timeout={self.timeout}, "
            f"session_cookie={masked}, "
            f"rate_limit_rps={self.rate_limit_rps})"
        )


__all__ = ["ApiSettings"]
