from __future__ import annotations

import os
import shutil
import signal
import subprocess
import sys
from typing import TYPE_CHECKING

from .core.enums import LaunchStrategy
from .exceptions import LaunchFailure
from .logger import flush_handlers, get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from structlog.stdlib import BoundLogger

    from .config import LaunchSettings
    from .engine import BootstrapDecision
    from .identity import ReplicaIdentity

logger: BoundLogger = get_logger(__name__)

_FORWARDED_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def build_command(
    decision: BootstrapDecision,
    identity: ReplicaIdentity,
    settings: LaunchSettings,
    *,
    command: str,
    extra_args: Sequence[str] = (),
) -> list[str]:
    """Assemble the ``cockroach start`` argument vector.

    ``--host`` is the replica's fully qualified name because siblings cannot
    resolve the bare pod name. ``--join`` is present only when joining.
    """
    argv = [command, "start"]
    if settings.logtostderr:
        argv.append("--logtostderr")
    if settings.insecure:
        argv.append("--insecure")
    argv += [
        "--host",
        identity.fqdn,
        "--http-host",
        settings.http_host,
        "--cache",
        settings.cache,
        "--max-sql-memory",
        settings.max_sql_memory,
    ]
    if decision.is_join:
        argv += ["--join", ",".join(decision.seed_addresses)]
    argv += list(extra_args)
    return argv


def resolve_executable(command: str) -> str:
    """Return the path ``command`` would be executed from.

    Checked before anything is persisted so a missing or non-executable
    database binary fails the start without leaving a marker behind.

    Raises
    ------
    LaunchFailure
        If ``command`` is not an executable file, or not found on ``PATH``.
    """
    path = shutil.which(command)
    if path is None:
        raise LaunchFailure(f"Database executable {command!r} not found or not executable")
    return path


class ProcessLauncher:
    """Hands control to the database process.

    With ``LaunchStrategy.EXEC`` the current process image is replaced and
    ``launch`` never returns. With ``LaunchStrategy.SPAWN`` the database runs
    as a child, termination signals are forwarded to it and its exit code is
    returned. Neither strategy restarts the database; that stays with the
    platform.
    """

    __slots__ = ("_strategy",)

    def __init__(self, strategy: LaunchStrategy = LaunchStrategy.EXEC) -> None:
        self._strategy = strategy

    @property
    def strategy(self) -> LaunchStrategy:
        return self._strategy

    def launch(self, argv: Sequence[str]) -> int:
        if not argv:
            raise LaunchFailure("Empty command line")

        logger.info("Launching database", strategy=self._strategy.value, argv=list(argv))
        if self._strategy is LaunchStrategy.EXEC:
            return self._exec(argv)
        return self._spawn(argv)

    def _exec(self, argv: Sequence[str]) -> int:
        flush_handlers()
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            os.execvp(argv[0], list(argv))
        except OSError as e:
            raise LaunchFailure(f"Cannot exec {argv[0]}: {e}") from e
        raise LaunchFailure(f"exec of {argv[0]} returned")  # pragma: no cover

    def _spawn(self, argv: Sequence[str]) -> int:
        try:
            process = subprocess.Popen(list(argv))
        except OSError as e:
            raise LaunchFailure(f"Cannot start {argv[0]}: {e}") from e

        def forward(signum: int, _frame: FrameType | None) -> None:
            logger.info("Forwarding signal", signal=signal.Signals(signum).name, pid=process.pid)
            process.send_signal(signum)

        previous = {signum: signal.signal(signum, forward) for signum in _FORWARDED_SIGNALS}
        try:
            returncode = process.wait()
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

        logger.info("Database exited", pid=process.pid, returncode=returncode)
        return returncode
