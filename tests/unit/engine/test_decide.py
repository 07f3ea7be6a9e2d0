"""Unit tests for the pure decision table."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from roachboot.core.enums import BootstrapMode, DecisionReason
from roachboot.engine import BootstrapDecision, decide
from roachboot.identity import ReplicaIdentity, resolve_identity

JOIN_ADDRESS = "cockroachdb-public"

PEER_SETS: list[tuple[str, ...]] = [(), ("cockroachdb-0",), ("cockroachdb-1", "cockroachdb-2")]


class TestNonFounder:
    """Ordinal > 0 always joins."""

    @pytest.mark.parametrize("ordinal", [1, 2, 17])
    @pytest.mark.parametrize("sentinel_present", [True, False])
    @pytest.mark.parametrize("peers", PEER_SETS)
    def test_always_joins(self, ordinal: int, sentinel_present: bool, peers: tuple[str, ...]) -> None:
        identity = resolve_identity(f"cockroachdb-{ordinal}", "cockroachdb", "default")

        decision = decide(identity, sentinel_present=sentinel_present, peers=peers, join_address=JOIN_ADDRESS)

        assert decision.mode is BootstrapMode.JOIN
        assert decision.reason is DecisionReason.NON_FOUNDER_ORDINAL
        assert decision.seed_addresses == (JOIN_ADDRESS,)

    def test_seeds_from_public_address_not_peer_list(self, joiner: ReplicaIdentity) -> None:
        decision = decide(joiner, sentinel_present=False, peers=("cockroachdb-0",), join_address=JOIN_ADDRESS)
        assert decision.seed_addresses == (JOIN_ADDRESS,)


class TestFounder:
    """Ordinal 0 founds only with no sentinel and no visible peers."""

    @pytest.mark.parametrize("peers", PEER_SETS)
    def test_sentinel_present_joins(self, founder: ReplicaIdentity, peers: tuple[str, ...]) -> None:
        decision = decide(founder, sentinel_present=True, peers=peers, join_address=JOIN_ADDRESS)

        assert decision.mode is BootstrapMode.JOIN
        assert decision.reason is DecisionReason.SENTINEL_PRESENT
        assert decision.seed_addresses == (JOIN_ADDRESS,)

    def test_no_sentinel_no_peers_initializes(self, founder: ReplicaIdentity) -> None:
        decision = decide(founder, sentinel_present=False, peers=(), join_address=JOIN_ADDRESS)

        assert decision.mode is BootstrapMode.INITIALIZE
        assert decision.reason is DecisionReason.NO_PEERS_VISIBLE
        assert decision.seed_addresses == ()

    def test_no_sentinel_with_peer_joins(self) -> None:
        identity = resolve_identity("app-0", "app", "default")

        decision = decide(identity, sentinel_present=False, peers=["app-1"], join_address="app-public")

        assert decision.mode is BootstrapMode.JOIN
        assert decision.reason is DecisionReason.PEERS_VISIBLE
        assert decision.seed_addresses == ("app-public",)

    def test_deterministic(self, founder: ReplicaIdentity) -> None:
        """Test identical inputs yield identical decisions."""
        for sentinel_present in (True, False):
            for peers in PEER_SETS:
                first = decide(founder, sentinel_present=sentinel_present, peers=peers, join_address=JOIN_ADDRESS)
                second = decide(founder, sentinel_present=sentinel_present, peers=peers, join_address=JOIN_ADDRESS)
                assert first == second


class TestBootstrapDecision:
    def test_initialize_with_seeds_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BootstrapDecision(
                mode=BootstrapMode.INITIALIZE,
                seed_addresses=("cockroachdb-public",),
                reason=DecisionReason.NO_PEERS_VISIBLE,
            )

    def test_join_without_seeds_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BootstrapDecision(mode=BootstrapMode.JOIN, reason=DecisionReason.PEERS_VISIBLE)

    def test_is_join(self) -> None:
        join = BootstrapDecision(
            mode=BootstrapMode.JOIN, seed_addresses=("x",), reason=DecisionReason.SENTINEL_PRESENT
        )
        initialize = BootstrapDecision(mode=BootstrapMode.INITIALIZE, reason=DecisionReason.NO_PEERS_VISIBLE)
        assert join.is_join
        assert not initialize.is_join
