from __future__ import annotations

import inspect
from collections.abc import Callable, Coroutine
from functools import wraps

from tenacity import (
    AsyncRetrying,
    after_nothing,
    before_nothing,
    retry_if_exception_type,
    retry_if_not_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_random_exponential,
)
from tenacity.retry import retry_base
from tenacity.stop import stop_base

from ..core.types import P, R
from .config import RetryConfig
from .types import BeforeSleepCallback, ResultPredicate, RetryCallback, RetryErrorCallback


class Retry:
    """Retry decorator for coroutine functions.

    Wraps ``tenacity.AsyncRetrying`` in its calling form so that results, not
    only exceptions, can trigger another attempt, and so that a
    ``retry_error_callback`` can decide what an exhausted budget means.
    """

    def __init__(
        self,
        config: RetryConfig,
        before: RetryCallback | None = None,
        after: RetryCallback | None = None,
        before_sleep: BeforeSleepCallback | None = None,
        retry_on_result: ResultPredicate | None = None,
        retry_error_callback: RetryErrorCallback | None = None,
    ) -> None:
        self._config = config
        self._before = before
        self._after = after
        self._before_sleep = before_sleep
        self._retry_error_callback = retry_error_callback

        stop: stop_base = stop_after_attempt(config.max_attempts)
        if config.max_delay_seconds is not None:
            stop = stop | stop_after_delay(config.max_delay_seconds)
        self._stop = stop

        # NOTE: Full Jitter, https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
        self._wait = wait_random_exponential(
            multiplier=config.multiplier,
            min=config.wait_min,
            max=config.wait_max,
            exp_base=config.exp_base,
        )
        self._retry_condition = self._build_retry_condition(config, retry_on_result)

    def _build_retry_condition(self, config: RetryConfig, retry_on_result: ResultPredicate | None) -> retry_base:
        if config.retry_on_exceptions:
            condition: retry_base = retry_if_exception_type(config.retry_on_exceptions)
        else:
            condition = retry_if_exception_type(Exception)

        if config.never_retry_on:
            condition = condition & retry_if_not_exception_type(config.never_retry_on)

        if retry_on_result is not None:
            condition = condition | retry_if_result(retry_on_result)

        return condition

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=self._stop,
            wait=self._wait,
            retry=self._retry_condition,
            before=self._before or before_nothing,
            after=self._after or after_nothing,
            before_sleep=self._before_sleep,
            retry_error_callback=self._retry_error_callback,
            reraise=self._config.reraise,
        )

    def __call__(
        self, func: Callable[P, Coroutine[object, object, R]]
    ) -> Callable[P, Coroutine[object, object, R]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"retry() only wraps coroutine functions, got {func!r}")

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return await self._retrying()(func, *args, **kwargs)

        return wrapper


def retry(
    config: RetryConfig | None = None,
    before: RetryCallback | None = None,
    after: RetryCallback | None = None,
    before_sleep: BeforeSleepCallback | None = None,
    retry_on_result: ResultPredicate | None = None,
    retry_error_callback: RetryErrorCallback | None = None,
) -> Retry:
    retry_config = config or RetryConfig()
    return Retry(retry_config, before, after, before_sleep, retry_on_result, retry_error_callback)
