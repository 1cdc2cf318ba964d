# ABOUTME: Bounded navigation retry policy built on tenacity
# ABOUTME: Retries renderer navigation a fixed number of times with a fixed delay, then surfaces the error

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_fixed

from scrape2api.utils.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


class NavigationError(Exception):
    """Raised by renderers when a page navigation attempt fails and may be retried."""

    pass


def navigation_retrying(
    retries: int = 2,
    delay_seconds: float = 1.0,
    on_retry: Callable[[int], None] | None = None,
) -> AsyncRetrying:
    """Build the tenacity controller used for page navigation.

    Args:
        retries: Number of retries after the first attempt
        delay_seconds: Fixed delay between attempts
        on_retry: Called with the number of attempts left before each retry

    Returns:
        AsyncRetrying instance that reraises the last NavigationError
    """

    def _before_sleep(retry_state: RetryCallState) -> None:
        attempts_left = retries + 1 - retry_state.attempt_number
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning("Navigation failed, retrying", attempts_left=attempts_left, error=str(exc))
        if on_retry:
            on_retry(attempts_left)

    return AsyncRetrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_fixed(delay_seconds),
        retry=retry_if_exception_type(NavigationError),
        before_sleep=_before_sleep,
        reraise=True,
    )


async def with_navigation_retry(
    func: Callable[[], Awaitable[T]],
    retries: int = 2,
    delay_seconds: float = 1.0,
    on_retry: Callable[[int], None] | None = None,
) -> T:
    """Run a navigation coroutine factory under the bounded retry policy."""
    async for attempt in navigation_retrying(retries, delay_seconds, on_retry):
        with attempt:
            return await func()
    raise AssertionError("unreachable")  # pragma: no cover
