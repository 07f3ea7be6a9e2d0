from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .exceptions import SentinelIoError
from .logger import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.stdlib import BoundLogger

logger: BoundLogger = get_logger(__name__)


class SentinelStore:
    """Durable marker proving this volume already belonged to a formed cluster.

    The marker is an empty file next to the database's own data, so it lives
    and dies with the persistent volume. Its content is never read; only its
    existence matters.
    """

    __slots__ = ("_path",)

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def has_sentinel(self) -> bool:
        """Return whether the marker exists.

        A missing marker, or a missing data directory on a freshly provisioned
        volume, is the normal first-boot state.

        Raises
        ------
        SentinelIoError
            If the volume cannot be inspected or the marker path is not a file.
        """
        try:
            exists = self._path.exists()
            is_file = self._path.is_file()
        except OSError as e:
            raise SentinelIoError(f"Cannot inspect sentinel at {self._path}: {e}") from e

        if exists and not is_file:
            raise SentinelIoError(f"Sentinel path {self._path} exists but is not a regular file")

        logger.debug("Checked sentinel", path=str(self._path), present=exists)
        return exists

    def write_sentinel(self) -> bool:
        """Create the marker if absent and make it durable.

        Safe to call any number of times; an existing marker is success.
        Returns whether this call created the marker.

        Raises
        ------
        SentinelIoError
            On any I/O failure other than the marker already existing.
        """
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SentinelIoError(f"Cannot create data directory {directory}: {e}") from e

        try:
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            logger.debug("Sentinel already present", path=str(self._path))
            return False
        except OSError as e:
            raise SentinelIoError(f"Cannot create sentinel at {self._path}: {e}") from e

        try:
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
            # the new directory entry is only durable once the parent is synced
            dir_fd = os.open(directory, os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError as e:
            raise SentinelIoError(f"Cannot persist sentinel at {self._path}: {e}") from e

        logger.info("Wrote sentinel", path=str(self._path))
        return True

    def discard_sentinel(self) -> None:
        """Remove the marker; a missing marker is success.

        Only for undoing a marker written by a start that never launched the
        database.

        Raises
        ------
        SentinelIoError
            If the marker exists but cannot be removed.
        """
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise SentinelIoError(f"Cannot remove sentinel at {self._path}: {e}") from e

        logger.info("Discarded sentinel", path=str(self._path))
