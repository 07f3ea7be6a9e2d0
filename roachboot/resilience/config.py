from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RetryConfig(BaseModel):
    """Configuration for the retry decorator with exponential backoff and jitter.

    Uses the Full Jitter algorithm:
    https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=5, ge=1, description="Maximum attempts, including the first")
    max_delay_seconds: float | None = Field(
        default=None, gt=0, description="Stop retrying once this much wall-clock time has passed (None = unlimited)"
    )
    wait_min: float = Field(default=0.5, ge=0, description="Minimum wait time in seconds")
    wait_max: float = Field(default=4.0, ge=0, description="Maximum wait time in seconds")
    multiplier: float = Field(default=0.5, ge=0, description="Wait multiplier")
    exp_base: float = Field(default=2.0, ge=1, description="Exponential base")

    retry_on_exceptions: tuple[type[Exception], ...] | None = Field(
        default=None,
        description="Exception types that trigger retry (None = all exceptions)",
    )
    never_retry_on: tuple[type[Exception], ...] | None = Field(
        default=None,
        description="Exception types that are never retried (takes precedence over retry_on_exceptions)",
    )

    reraise: bool = Field(default=True, description="Reraise the last exception after all retries fail")

    @model_validator(mode="after")
    def _check_wait_bounds(self) -> Self:
        if self.wait_max < self.wait_min:
            raise ValueError(f"wait_max ({self.wait_max}) must be >= wait_min ({self.wait_min})")
        return self
