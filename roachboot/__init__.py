"""Cluster-formation bootstrap for CockroachDB StatefulSet replicas.

Decides, once per process start, whether a replica initializes a new cluster
or joins the existing one, then starts the database accordingly.
"""

from __future__ import annotations

from .config import BootstrapSettings, DiscoverySettings, LaunchSettings
from .core.enums import BootstrapMode, BootstrapState, DecisionReason, LaunchStrategy
from .discovery import PeerDiscoveryClient
from .engine import BootstrapDecision, BootstrapEngine, BootstrapOutcome, decide
from .exceptions import BootstrapError, DiscoveryUnavailable, LaunchFailure, MalformedIdentity, SentinelIoError
from .identity import ReplicaIdentity, resolve_identity
from .launcher import ProcessLauncher, build_command
from .sentinel import SentinelStore

__all__ = [
    "BootstrapDecision",
    "BootstrapEngine",
    "BootstrapError",
    "BootstrapMode",
    "BootstrapOutcome",
    "BootstrapSettings",
    "BootstrapState",
    "DecisionReason",
    "DiscoverySettings",
    "DiscoveryUnavailable",
    "LaunchFailure",
    "LaunchSettings",
    "LaunchStrategy",
    "MalformedIdentity",
    "PeerDiscoveryClient",
    "ProcessLauncher",
    "ReplicaIdentity",
    "SentinelIoError",
    "SentinelStore",
    "build_command",
    "decide",
    "resolve_identity",
]
