"""Retry policy for remote AI calls."""

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from memo_triage.utils.errors import LLMError, ResponseFormatError
from memo_triage.utils.logging import get_logger

logger = get_logger("retry")

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


class RetryPolicy:
    """Run a single-attempt coroutine factory with bounded exponential backoff.

    Only the exception types in ``retry_on`` are retried. Anything else
    (configuration errors, programmer errors) propagates on the first attempt.
    The delay before attempt ``n + 1`` is ``initial_delay * 2 ** (n - 1)``,
    capped at ``max_delay``.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 30.0,
        retry_on: Tuple[Type[BaseException], ...] = (LLMError, ResponseFormatError),
        sleep: Optional[SleepFn] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.retry_on = retry_on
        self.sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(cls, settings, sleep: Optional[SleepFn] = None) -> "RetryPolicy":
        """Build a policy from the retry section of the application settings."""
        return cls(
            max_attempts=settings.retry.max_retries,
            initial_delay=settings.retry.retry_initial_delay,
            max_delay=settings.retry.retry_max_delay,
            sleep=sleep,
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self.max_attempts} failed: {exc}. "
            f"Retrying in {retry_state.next_action.sleep if retry_state.next_action else 0:.1f}s"
        )

    async def run(self, attempt_fn: Callable[[], Awaitable[T]]) -> T:
        """Call ``attempt_fn`` until it succeeds or the policy gives up.

        Raises:
            The last exception raised by ``attempt_fn``.
        """
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.initial_delay, max=self.max_delay),
            retry=retry_if_exception_type(self.retry_on),
            sleep=self.sleep,
            before_sleep=self._log_retry,
        ):
            with attempt:
                return await attempt_fn()
        # AsyncRetrying re-raises the last error before reaching this line
        raise LLMError("Retries exhausted")
