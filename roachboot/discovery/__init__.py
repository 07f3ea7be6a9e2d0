"""Peer discovery over the peer group's headless service.

- `PeerDiscoveryClient`: bounded, retrying lookup of sibling replicas
- `Resolver`: protocol for the name lookups, `SocketResolver` by default
"""

from __future__ import annotations

from .client import PeerDiscoveryClient
from .resolver import ResolvedAddress, Resolver, SocketResolver

__all__ = [
    "PeerDiscoveryClient",
    "ResolvedAddress",
    "Resolver",
    "SocketResolver",
]
