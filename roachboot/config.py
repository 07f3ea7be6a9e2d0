"""Bootstrap configuration.

`BootstrapSettings` reads ``ROACHBOOT_*`` environment variables (nested
sections use ``__``, e.g. ``ROACHBOOT_DISCOVERY__MAX_ATTEMPTS=3``). The pod's
namespace and name come from the variables the platform injects
(``POD_NAMESPACE``, ``POD_NAME``/``HOSTNAME``). Keyword arguments, which is
how the CLI passes its flags, take precedence over the environment.
"""

from __future__ import annotations

import socket
from pathlib import Path
from typing import Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.enums import LaunchStrategy
from .resilience.config import RetryConfig

DNS_LABEL_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"
DNS_SUFFIX_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
# Either a percentage of system memory ("25%", ".25") or an absolute size ("1GiB").
MEMORY_KNOB_PATTERN = r"^(\d+(\.\d+)?%|\.\d+|0\.\d+|\d+(\.\d+)?\s*[KMGT]i?B?)$"


class DiscoverySettings(BaseModel):
    """Retry and timeout policy for peer discovery."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: int = Field(default=5, ge=1, le=20, description="Lookup attempts before giving up")
    wait_min: float = Field(default=0.5, ge=0.0, le=60.0, description="Minimum backoff between attempts (seconds)")
    wait_max: float = Field(default=4.0, ge=0.0, le=60.0, description="Maximum backoff between attempts (seconds)")
    attempt_timeout: float = Field(default=5.0, gt=0.0, le=60.0, description="Timeout of a single lookup (seconds)")
    total_timeout: float = Field(default=30.0, gt=0.0, le=600.0, description="Hard bound on discovery (seconds)")
    retry_on_empty: bool = Field(
        default=True, description="Retry when no peers are visible, records may not be published yet"
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.wait_max < self.wait_min:
            raise ValueError(f"wait_max ({self.wait_max}) must be >= wait_min ({self.wait_min})")
        if self.total_timeout < self.attempt_timeout:
            raise ValueError(
                f"total_timeout ({self.total_timeout}) must be >= attempt_timeout ({self.attempt_timeout})"
            )
        return self

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            max_delay_seconds=self.total_timeout,
            wait_min=self.wait_min,
            wait_max=self.wait_max,
            retry_on_exceptions=(OSError,),
        )


class LaunchSettings(BaseModel):
    """Flags passed to ``cockroach start``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    strategy: LaunchStrategy = Field(default=LaunchStrategy.EXEC, description="Replace this process or spawn a child")
    insecure: bool = Field(default=True, description="Pass --insecure")
    logtostderr: bool = Field(default=True, description="Pass --logtostderr")
    http_host: str = Field(default="0.0.0.0", min_length=1, description="Admin UI bind address")
    cache: str = Field(default="25%", pattern=MEMORY_KNOB_PATTERN, description="--cache value")
    max_sql_memory: str = Field(default="25%", pattern=MEMORY_KNOB_PATTERN, description="--max-sql-memory value")


class BootstrapSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ROACHBOOT_",
        env_nested_delimiter="__",
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )

    service: str = Field(pattern=DNS_LABEL_PATTERN, max_length=63, description="Peer group (StatefulSet) name")
    namespace: str = Field(
        validation_alias=AliasChoices("POD_NAMESPACE", "ROACHBOOT_NAMESPACE"),
        pattern=DNS_LABEL_PATTERN,
        max_length=63,
        description="Namespace of this pod",
    )
    pod_name: str = Field(
        default_factory=socket.gethostname,
        validation_alias=AliasChoices("POD_NAME", "HOSTNAME"),
        min_length=1,
        description="Name assigned to this replica",
    )
    domain: str = Field(default="cluster.local", pattern=DNS_SUFFIX_PATTERN, description="Cluster DNS domain")
    data_dir: Path = Field(default=Path("/cockroach/cockroach-data"), description="Database data directory")
    sentinel_name: str = Field(
        default="cluster_exists_marker", pattern=r"^[^/\x00]+$", description="Marker file name inside data_dir"
    )
    public_service: str | None = Field(
        default=None, min_length=1, description="Load-balanced join address (default: '<service>-public')"
    )
    command: str = Field(default="/cockroach/cockroach", min_length=1, description="Database executable")
    extra_args: tuple[str, ...] = Field(default_factory=tuple, description="Appended to the start command")

    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    launch: LaunchSettings = Field(default_factory=LaunchSettings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def join_address(self) -> str:
        return self.public_service or f"{self.service}-public"

    @property
    def sentinel_path(self) -> Path:
        return self.data_dir / self.sentinel_name
