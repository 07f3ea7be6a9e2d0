from __future__ import annotations

import asyncio
import socket
from typing import TYPE_CHECKING

from tenacity import RetryCallState

from ..exceptions import DiscoveryUnavailable
from ..logger import get_logger
from ..resilience.retry import retry
from .resolver import ResolvedAddress, Resolver, SocketResolver

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from ..config import DiscoverySettings

logger: BoundLogger = get_logger(__name__)


class PeerDiscoveryClient:
    """Finds the siblings of a replica through the peer group's headless service.

    The headless service publishes unready replicas as well, so a sibling is
    visible as soon as its pod has an address, long before the database in it
    is serving.

    Usage
    -----
    ```python
    client = PeerDiscoveryClient(DiscoverySettings(), domain_suffix="cluster.local")
    peers = await client.aresolve_peers("cockroachdb", "default", exclude="cockroachdb-0")
    ```
    """

    def __init__(
        self,
        settings: DiscoverySettings,
        *,
        domain_suffix: str = "cluster.local",
        resolver: Resolver | None = None,
        local_hostname: str | None = None,
    ) -> None:
        self._settings = settings
        self._domain_suffix = domain_suffix
        self._resolver: Resolver = resolver or SocketResolver()
        self._local_hostname = local_hostname or socket.gethostname()

    def service_name(self, peer_group: str, namespace: str) -> str:
        return f"{peer_group}.{namespace}.svc.{self._domain_suffix}"

    async def aresolve_peers(
        self,
        peer_group: str,
        namespace: str,
        *,
        exclude: str | None = None,
    ) -> tuple[str, ...]:
        """Return the sorted names of currently resolvable siblings.

        Parameters
        ----------
        peer_group : str
            Headless service name of the peer group.
        namespace : str
            Namespace the peer group lives in.
        exclude : str | None
            Pod name of the caller, which is never reported as a peer.

        Returns
        -------
        tuple[str, ...]
            Sibling hostnames (bare addresses where no reverse record exists).
            Empty when nothing became visible within the retry budget.

        Raises
        ------
        DiscoveryUnavailable
            If the last attempt still failed, or the hard timeout expired.
        """
        service = self.service_name(peer_group, namespace)
        own_name = f"{exclude}.{service}" if exclude else None

        lookup = retry(
            self._settings.to_retry_config(),
            before_sleep=self._log_before_sleep,
            retry_on_result=self._should_retry_result,
            retry_error_callback=self._on_exhausted,
        )(self._aattempt)

        try:
            async with asyncio.timeout(self._settings.total_timeout):
                peers = await lookup(service, exclude, own_name)
        except TimeoutError as e:
            raise DiscoveryUnavailable(
                f"Discovery of {service} did not finish within {self._settings.total_timeout}s"
            ) from e

        logger.info("Resolved peers", service=service, peers=list(peers), count=len(peers))
        return peers

    async def _aattempt(self, service: str, exclude: str | None, own_name: str | None) -> tuple[str, ...]:
        async with asyncio.timeout(self._settings.attempt_timeout):
            records = await self._resolver.alookup(service)
            own_addresses = await self._aown_addresses(own_name)

        peers = sorted(
            {record.display_name for record in records if not self._is_self(record, exclude, own_addresses)}
        )
        logger.debug("Discovery attempt", service=service, records=len(records), peers=peers)
        return tuple(peers)

    async def _aown_addresses(self, own_name: str | None) -> frozenset[str]:
        if own_name is None:
            return frozenset()

        addresses: set[str] = set()
        # the local host name is answered from /etc/hosts even while our own DNS record is missing
        for name in dict.fromkeys((own_name, self._local_hostname)):
            try:
                records = await self._resolver.alookup(name)
            except OSError as e:
                # best effort: exclusion by pod name still applies
                logger.debug("Own name not resolvable", name=name, error=str(e))
                continue
            addresses.update(record.address for record in records)
        return frozenset(addresses)

    @staticmethod
    def _is_self(record: ResolvedAddress, exclude: str | None, own_addresses: frozenset[str]) -> bool:
        if exclude is not None and record.label == exclude:
            return True
        return record.address in own_addresses

    def _should_retry_result(self, peers: tuple[str, ...]) -> bool:
        return self._settings.retry_on_empty and not peers

    @staticmethod
    def _on_exhausted(retry_state: RetryCallState) -> tuple[str, ...]:
        outcome = retry_state.outcome
        if outcome is None:
            raise DiscoveryUnavailable("Discovery finished without any attempt")

        if outcome.failed:
            error = outcome.exception()
            raise DiscoveryUnavailable(
                f"Discovery failed after {retry_state.attempt_number} attempts: {error!r}"
            ) from error

        logger.info("No peers visible after retries", attempts=retry_state.attempt_number)
        return outcome.result()

    @staticmethod
    def _log_before_sleep(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None and outcome.failed else None
        logger.warning(
            "Retrying peer discovery",
            attempt=retry_state.attempt_number,
            sleep_s=round(retry_state.next_action.sleep, 3) if retry_state.next_action else None,
            error=repr(error) if error is not None else None,
            reason="error" if error is not None else "no peers visible",
        )
