"""Fatal bootstrap errors.

Every error here aborts the bootstrap before the database process is
launched. The CLI turns them into the process exit code so the platform's
restart policy re-runs the whole sequence.
"""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for errors that must stop the bootstrap."""

    exit_code: int = 1


class MalformedIdentity(BootstrapError):
    """Assigned name does not look like ``<peer_group>-<ordinal>``."""

    exit_code = 3

    def __init__(self, name: str, peer_group: str) -> None:
        self.name = name
        self.peer_group = peer_group
        super().__init__(f"Assigned name {name!r} does not match '{peer_group}-<ordinal>'")


class SentinelIoError(BootstrapError):
    """The cluster-exists marker could not be read or written."""

    exit_code = 4


class DiscoveryUnavailable(BootstrapError):
    """Peer discovery gave no definitive answer within its retry budget."""

    exit_code = 5


class LaunchFailure(BootstrapError):
    """The database process could not be started."""

    exit_code = 6

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code
