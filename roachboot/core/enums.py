from __future__ import annotations

from enum import StrEnum


class BootstrapMode(StrEnum):
    INITIALIZE = "initialize"
    JOIN = "join"


class DecisionReason(StrEnum):
    NON_FOUNDER_ORDINAL = "non_founder_ordinal"
    SENTINEL_PRESENT = "sentinel_present"
    PEERS_VISIBLE = "peers_visible"
    NO_PEERS_VISIBLE = "no_peers_visible"


class BootstrapState(StrEnum):
    START = "start"
    IDENTITY_KNOWN = "identity_known"
    SENTINEL_CHECKED = "sentinel_checked"
    PEERS_CHECKED = "peers_checked"
    DECIDED = "decided"
    TERMINAL = "terminal"


class LaunchStrategy(StrEnum):
    EXEC = "exec"
    SPAWN = "spawn"
