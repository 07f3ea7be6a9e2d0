from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from tenacity import RetryCallState

type RetryCallback = Callable[[RetryCallState], Awaitable[None] | None]
type BeforeSleepCallback = Callable[[RetryCallState], Awaitable[None] | None]
type RetryErrorCallback = Callable[[RetryCallState], Any]
type ResultPredicate = Callable[[Any], bool]
