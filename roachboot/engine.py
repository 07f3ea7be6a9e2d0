"""Founder-or-joiner decision for a starting replica.

Ordinal 0 is the only replica ever allowed to initialize a cluster, and only
when nothing suggests a cluster already exists:

==========  ========  =============  ==========  =====================
ordinal     sentinel  visible peers  mode        reason
==========  ========  =============  ==========  =====================
> 0         any       any            JOIN        NON_FOUNDER_ORDINAL
0           present   any            JOIN        SENTINEL_PRESENT
0           absent    non-empty      JOIN        PEERS_VISIBLE
0           absent    empty          INITIALIZE  NO_PEERS_VISIBLE
==========  ========  =============  ==========  =====================

Any visible sibling, however stale, counts as evidence against founding.
Joiners always seed from the peer group's load-balanced address, never from
the raw peer list.

Known limitation
----------------
This is a heuristic, not mutual exclusion. Two ordinal-0 processes racing
through discovery before either has founded anything (for example a
force-deleted pod still running on a partitioned node next to its
replacement) can both observe an empty peer set and both initialize. The
same holds for an ordinal 0 that lost its volume while no sibling was
published. Nothing here prevents that.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .core.enums import BootstrapMode, BootstrapState, DecisionReason
from .identity import ReplicaIdentity
from .logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.stdlib import BoundLogger

    from .discovery import PeerDiscoveryClient
    from .sentinel import SentinelStore

logger: BoundLogger = get_logger(__name__)


class BootstrapDecision(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: BootstrapMode
    seed_addresses: tuple[str, ...] = Field(default_factory=tuple)
    reason: DecisionReason

    @model_validator(mode="after")
    def _check_seeds(self) -> Self:
        if self.mode is BootstrapMode.INITIALIZE and self.seed_addresses:
            raise ValueError("INITIALIZE must not carry seed addresses")
        if self.mode is BootstrapMode.JOIN and not self.seed_addresses:
            raise ValueError("JOIN requires at least one seed address")
        return self

    @property
    def is_join(self) -> bool:
        return self.mode is BootstrapMode.JOIN


class BootstrapOutcome(BaseModel):
    """Everything one engine run observed and decided."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    identity: ReplicaIdentity
    decision: BootstrapDecision
    sentinel_present: bool | None = Field(default=None, description="None when the sentinel was not consulted")
    peers: tuple[str, ...] | None = Field(default=None, description="None when discovery was not consulted")
    sentinel_created: bool = Field(default=False, description="This run created the marker")
    transitions: tuple[BootstrapState, ...]


def decide(
    identity: ReplicaIdentity,
    *,
    sentinel_present: bool,
    peers: Sequence[str],
    join_address: str,
) -> BootstrapDecision:
    """Pure decision table, see the module docstring."""

    def join(reason: DecisionReason) -> BootstrapDecision:
        return BootstrapDecision(mode=BootstrapMode.JOIN, seed_addresses=(join_address,), reason=reason)

    if not identity.is_founder_eligible:
        return join(DecisionReason.NON_FOUNDER_ORDINAL)
    if sentinel_present:
        return join(DecisionReason.SENTINEL_PRESENT)
    if peers:
        return join(DecisionReason.PEERS_VISIBLE)
    return BootstrapDecision(mode=BootstrapMode.INITIALIZE, reason=DecisionReason.NO_PEERS_VISIBLE)


class BootstrapEngine:
    """Runs the decision once per process start.

    START -> IDENTITY_KNOWN -> (SENTINEL_CHECKED | PEERS_CHECKED) -> DECIDED -> TERMINAL

    Non-founders go from IDENTITY_KNOWN straight to DECIDED. After deciding,
    the sentinel is written so that a restart of this replica never evaluates
    founder eligibility again. Any error leaves the engine short of TERMINAL
    and propagates to the caller.
    """

    def __init__(
        self,
        store: SentinelStore,
        discovery: PeerDiscoveryClient,
        join_address: str,
    ) -> None:
        self._store = store
        self._discovery = discovery
        self._join_address = join_address
        self._transitions: list[BootstrapState] = [BootstrapState.START]

    @property
    def state(self) -> BootstrapState:
        return self._transitions[-1]

    @property
    def transitions(self) -> tuple[BootstrapState, ...]:
        return tuple(self._transitions)

    def _advance(self, state: BootstrapState, **fields: object) -> None:
        logger.debug("Bootstrap state", previous=self.state.value, state=state.value, **fields)
        self._transitions.append(state)

    async def arun(self, identity: ReplicaIdentity, *, persist: bool = True) -> BootstrapOutcome:
        """Decide how this replica starts.

        Parameters
        ----------
        identity : ReplicaIdentity
            Identity of this replica.
        persist : bool
            Write the sentinel after deciding. Disabled for dry runs.

        Raises
        ------
        SentinelIoError
            If the sentinel cannot be read or written.
        DiscoveryUnavailable
            If ordinal 0 cannot get a definitive view of its peers.
        """
        self._transitions = [BootstrapState.START]
        self._advance(BootstrapState.IDENTITY_KNOWN, replica=identity.name, ordinal=identity.ordinal)

        sentinel_present: bool | None = None
        peers: tuple[str, ...] | None = None

        if identity.is_founder_eligible:
            sentinel_present = self._store.has_sentinel()
            self._advance(BootstrapState.SENTINEL_CHECKED, sentinel_present=sentinel_present)

            if not sentinel_present:
                peers = await self._discovery.aresolve_peers(
                    identity.peer_group, identity.namespace, exclude=identity.name
                )
                self._advance(BootstrapState.PEERS_CHECKED, peers=list(peers))

        decision = decide(
            identity,
            sentinel_present=bool(sentinel_present),
            peers=peers or (),
            join_address=self._join_address,
        )
        self._advance(BootstrapState.DECIDED, mode=decision.mode.value, reason=decision.reason.value)
        logger.info(
            "Bootstrap decided",
            replica=identity.name,
            mode=decision.mode.value,
            reason=decision.reason.value,
            seeds=list(decision.seed_addresses),
        )

        sentinel_created = self._store.write_sentinel() if persist else False
        self._advance(BootstrapState.TERMINAL, persisted=persist, sentinel_created=sentinel_created)

        return BootstrapOutcome(
            identity=identity,
            decision=decision,
            sentinel_present=sentinel_present,
            peers=peers,
            sentinel_created=sentinel_created,
            transitions=self.transitions,
        )
