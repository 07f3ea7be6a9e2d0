"""Core module exports."""

from __future__ import annotations

from .enums import BootstrapMode, BootstrapState, DecisionReason, LaunchStrategy

__all__ = [
    "BootstrapMode",
    "BootstrapState",
    "DecisionReason",
    "LaunchStrategy",
]
