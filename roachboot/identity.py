from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import MalformedIdentity

MAX_LABEL_LENGTH = 63


class ReplicaIdentity(BaseModel):
    """Stable identity of one StatefulSet replica.

    Derived once from the assigned name ``<peer_group>-<ordinal>`` and never
    changed for the lifetime of the process.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Assigned name, e.g. 'cockroachdb-0'")
    ordinal: int = Field(ge=0, description="Trailing numeric suffix of the name")
    peer_group: str = Field(min_length=1, description="Headless service / StatefulSet name")
    namespace: str = Field(min_length=1, description="Namespace scope of the peer group")
    domain_suffix: str = Field(default="cluster.local", min_length=1, description="Cluster DNS domain")

    @property
    def service_fqdn(self) -> str:
        """Name of the headless service that publishes every replica."""
        return f"{self.peer_group}.{self.namespace}.svc.{self.domain_suffix}"

    @property
    def fqdn(self) -> str:
        """Fully qualified name other replicas use to reach this one."""
        return f"{self.name}.{self.service_fqdn}"

    @property
    def is_founder_eligible(self) -> bool:
        return self.ordinal == 0


def resolve_identity(
    assigned_name: str,
    peer_group: str,
    namespace: str,
    domain_suffix: str = "cluster.local",
) -> ReplicaIdentity:
    """Parse the replica ordinal out of its assigned name.

    Only the first DNS label is considered, so both ``cockroachdb-2`` and
    ``cockroachdb-2.cockroachdb.default.svc.cluster.local`` resolve to
    ordinal 2.

    Raises
    ------
    MalformedIdentity
        If the label is not ``<peer_group>-<ordinal>`` with a canonical
        decimal ordinal, or is longer than a DNS label may be.
    """
    label = assigned_name.strip().split(".", 1)[0]
    # ordinals are canonical decimals: "cockroachdb-00" is not a second ordinal 0
    match = (
        re.fullmatch(rf"{re.escape(peer_group)}-(0|[1-9][0-9]*)", label)
        if peer_group and len(label) <= MAX_LABEL_LENGTH
        else None
    )
    if match is None:
        raise MalformedIdentity(assigned_name, peer_group)

    return ReplicaIdentity(
        name=label,
        ordinal=int(match.group(1)),
        peer_group=peer_group,
        namespace=namespace,
        domain_suffix=domain_suffix,
    )
