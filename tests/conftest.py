"""Shared fixtures for unit tests.

Provides:
- fast_discovery: discovery settings without backoff sleeps
- founder / joiner: identities for ordinal 0 and ordinal 1
- data_dir: empty, not yet created data directory
- bootstrap_env: the environment the platform injects into the pod
- reset_logging: undoes logging configuration done by main()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from roachboot.config import DiscoverySettings
from roachboot.identity import ReplicaIdentity, resolve_identity
from roachboot.logger import clear_context
from tests.fakes import NAMESPACE, SERVICE

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def fast_discovery() -> DiscoverySettings:
    return DiscoverySettings(
        max_attempts=3,
        wait_min=0.0,
        wait_max=0.0,
        attempt_timeout=1.0,
        total_timeout=5.0,
    )


@pytest.fixture
def founder() -> ReplicaIdentity:
    return resolve_identity(f"{SERVICE}-0", SERVICE, NAMESPACE)


@pytest.fixture
def joiner() -> ReplicaIdentity:
    return resolve_identity(f"{SERVICE}-1", SERVICE, NAMESPACE)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "cockroach-data"


@pytest.fixture
def bootstrap_env(monkeypatch: pytest.MonkeyPatch, data_dir: Path) -> Path:
    """Pod environment with discovery backoff disabled; returns the data dir."""
    for name in ("POD_NAME", "HOSTNAME", "ROACHBOOT_NAMESPACE", "ROACHBOOT_SERVICE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("POD_NAMESPACE", NAMESPACE)
    monkeypatch.setenv("ROACHBOOT_DISCOVERY__MAX_ATTEMPTS", "2")
    monkeypatch.setenv("ROACHBOOT_DISCOVERY__WAIT_MIN", "0")
    monkeypatch.setenv("ROACHBOOT_DISCOVERY__WAIT_MAX", "0")
    return data_dir


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers and context bound by main() so later tests start clean."""
    yield
    logging.getLogger().handlers.clear()
    clear_context()
