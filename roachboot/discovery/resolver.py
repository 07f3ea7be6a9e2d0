from __future__ import annotations

import asyncio
import socket
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

# getaddrinfo answers that mean "the name has no records", not "DNS is broken".
_NOT_FOUND_ERRNOS = frozenset(
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
    )
    if code is not None
)


class ResolvedAddress(BaseModel):
    """One address published for a name, with its reverse-resolved hostname if any."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    address: str = Field(min_length=1)
    hostname: str | None = Field(default=None)

    @property
    def label(self) -> str | None:
        """First DNS label of the hostname, i.e. the pod name."""
        if not self.hostname:
            return None
        return self.hostname.split(".", 1)[0]

    @property
    def display_name(self) -> str:
        return self.hostname.rstrip(".") if self.hostname else self.address


class Resolver(Protocol):
    async def alookup(self, name: str) -> tuple[ResolvedAddress, ...]:
        """Resolve ``name`` to its published addresses.

        Returns an empty tuple when the name has no records. Raises ``OSError``
        (including ``socket.gaierror`` and ``TimeoutError``) when the lookup
        itself failed and may succeed later.
        """
        ...


class SocketResolver:
    """Resolver backed by the system resolver through the running event loop."""

    async def alookup(self, name: str) -> tuple[ResolvedAddress, ...]:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(name, None, type=socket.SOCK_STREAM)
        except socket.gaierror as e:
            if e.errno in _NOT_FOUND_ERRNOS:
                return ()
            raise

        addresses: list[str] = []
        for _family, _type, _proto, _canonname, sockaddr in infos:
            address = str(sockaddr[0])
            if address not in addresses:
                addresses.append(address)

        return tuple(
            [ResolvedAddress(address=address, hostname=await self._areverse(address)) for address in addresses]
        )

    async def _areverse(self, address: str) -> str | None:
        loop = asyncio.get_running_loop()
        try:
            hostname, _port = await loop.getnameinfo((address, 0), socket.NI_NAMEREQD)
        except OSError:
            # no PTR record; the bare address still counts as a sibling
            return None
        return hostname
