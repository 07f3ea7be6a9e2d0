"""Command line entry point.

    roachboot --service cockroachdb [--domain cluster.local] [--command /cockroach/cockroach] [-- extra args]

Exit codes: 0 after a successful launch, 1 for an unexpected error, 2 for
invalid configuration, and the ``exit_code`` of the `BootstrapError` that
stopped the bootstrap otherwise. In spawn mode the database's own exit code
is returned. A start whose launch fails leaves no sentinel it created behind.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError

from .config import BootstrapSettings
from .core.enums import LaunchStrategy
from .discovery import PeerDiscoveryClient
from .engine import BootstrapEngine, BootstrapOutcome
from .exceptions import BootstrapError, LaunchFailure
from .identity import resolve_identity
from .launcher import ProcessLauncher, build_command, resolve_executable
from .logger import bind_context, configure_logging, get_logger
from .sentinel import SentinelStore

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.stdlib import BoundLogger

    from .discovery import Resolver

logger: BoundLogger = get_logger(__name__)

EXIT_UNEXPECTED = 1
EXIT_INVALID_CONFIG = 2


class DryRunReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: BootstrapOutcome
    argv: list[str]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roachboot",
        description="Decide whether this CockroachDB replica founds or joins a cluster, then start it.",
    )
    parser.add_argument("--service", help="peer group name (headless service / StatefulSet name)")
    parser.add_argument("--domain", help="cluster DNS domain (default: cluster.local)")
    parser.add_argument("--command", help="database executable (default: /cockroach/cockroach)")
    parser.add_argument("--data-dir", type=Path, help="database data directory holding the sentinel")
    parser.add_argument("--pod-name", help="assigned replica name (default: $POD_NAME, $HOSTNAME, hostname)")
    parser.add_argument(
        "--strategy",
        type=LaunchStrategy,
        choices=list(LaunchStrategy),
        help="replace this process (exec) or run the database as a child (spawn)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="print the decision and command line as JSON without writing the sentinel or launching",
    )
    parser.add_argument("extra_args", nargs="*", help="extra arguments appended to 'cockroach start' (after --)")
    return parser


def load_settings(args: argparse.Namespace) -> BootstrapSettings:
    overrides: dict[str, Any] = {
        key: value
        for key, value in {
            "service": args.service,
            "domain": args.domain,
            "command": args.command,
            "data_dir": args.data_dir,
            # keyed by its env alias so the flag replaces POD_NAME/HOSTNAME instead of competing with them
            "POD_NAME": args.pod_name,
        }.items()
        if value is not None
    }
    if args.extra_args:
        overrides["extra_args"] = tuple(args.extra_args)

    settings = BootstrapSettings(**overrides)
    if args.strategy is not None:
        launch = settings.launch.model_copy(update={"strategy": args.strategy})
        settings = settings.model_copy(update={"launch": launch})
    return settings


async def abootstrap(
    settings: BootstrapSettings,
    *,
    resolver: Resolver | None = None,
    persist: bool = True,
) -> tuple[BootstrapOutcome, list[str]]:
    """Run identity, sentinel, discovery and decision; return the outcome and launch argv.

    When ``persist`` is set the database executable must resolve before the
    sentinel can be written.
    """
    identity = resolve_identity(settings.pod_name, settings.service, settings.namespace, settings.domain)
    bind_context(replica=identity.name, peer_group=identity.peer_group, namespace=identity.namespace)

    if persist:
        resolve_executable(settings.command)

    engine = BootstrapEngine(
        store=SentinelStore(settings.sentinel_path),
        discovery=PeerDiscoveryClient(settings.discovery, domain_suffix=settings.domain, resolver=resolver),
        join_address=settings.join_address,
    )
    outcome = await engine.arun(identity, persist=persist)

    argv = build_command(
        outcome.decision,
        identity,
        settings.launch,
        command=settings.command,
        extra_args=settings.extra_args,
    )
    return outcome, argv


def main(
    argv: Sequence[str] | None = None,
    *,
    resolver: Resolver | None = None,
    launcher: ProcessLauncher | None = None,
) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        logger.error("Invalid configuration", errors=e.errors(include_url=False, include_context=False))
        return EXIT_INVALID_CONFIG

    try:
        outcome, command = asyncio.run(abootstrap(settings, resolver=resolver, persist=not args.dry_run))
        if args.dry_run:
            sys.stdout.write(DryRunReport(outcome=outcome, argv=command).model_dump_json(indent=2) + "\n")
            return 0

        try:
            returncode = (launcher or ProcessLauncher(settings.launch.strategy)).launch(command)
        except LaunchFailure:
            # the database never ran, so this start must not count as having founded or joined
            if outcome.sentinel_created:
                SentinelStore(settings.sentinel_path).discard_sentinel()
            raise
    except BootstrapError as e:
        logger.error("Bootstrap failed", error_type=type(e).__name__, error=str(e), exit_code=e.exit_code)
        return e.exit_code
    except Exception:
        logger.exception("Unexpected bootstrap failure", exit_code=EXIT_UNEXPECTED)
        return EXIT_UNEXPECTED

    # a child killed by signal N reports -N; shells report 128 + N
    return returncode if returncode >= 0 else 128 - returncode
