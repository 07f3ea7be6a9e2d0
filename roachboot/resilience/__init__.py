from __future__ import annotations

from .config import RetryConfig
from .retry import Retry, retry

__all__ = [
    "Retry",
    "RetryConfig",
    "retry",
]
