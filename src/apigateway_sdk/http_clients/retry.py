"""
Retry policy for dispatched requests

A policy decides, per failed attempt, whether the same signed request is sent
again and how long to wait first. Delays are expressed in milliseconds and
waited with ``asyncio.sleep`` so backoff never blocks other requests.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..exceptions import ConfigurationError, ResponseError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar('T')

RetryCondition = Callable[[Exception], bool]

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})
RETRYABLE_STATUS_CODES = frozenset({429})


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class FixedDelay:
    """Wait the same number of milliseconds before every retry"""
    delay_ms: float = 0

    def __post_init__(self):
        if not _is_number(self.delay_ms):
            raise ConfigurationError(
                f"Retry delay must be a number of milliseconds, got {self.delay_ms!r}",
                "INVALID_RETRY_DELAY"
            )
        if self.delay_ms < 0:
            raise ConfigurationError("Retry delay must be non-negative", "INVALID_RETRY_DELAY")

    def __call__(self, attempt: int) -> float:
        return self.delay_ms


@dataclass(frozen=True)
class ExponentialDelay:
    """
    Exponential backoff: 2**attempt * base_ms plus up to ``jitter`` of that
    value at random. Attempt numbers start at 1 for the first retry.
    """
    base_ms: float = 100
    jitter: float = 0.2

    def __call__(self, attempt: int) -> float:
        delay = (2 ** attempt) * self.base_ms
        return delay + delay * self.jitter * random.random()


@dataclass(frozen=True)
class CustomDelay:
    """Delegate the delay to a function of the retry attempt number"""
    func: Callable[[int], float]

    def __post_init__(self):
        if not callable(self.func):
            raise ConfigurationError("Custom retry delay must be callable", "INVALID_RETRY_DELAY")

    def __call__(self, attempt: int) -> float:
        return self.func(attempt)


def is_network_error(error: Exception) -> bool:
    """True for failures where no response was received."""
    return isinstance(error, TransportError)


def is_retryable_response_error(error: Exception) -> bool:
    """True for 429 and 5xx responses."""
    if not isinstance(error, ResponseError):
        return False
    return error.http_status in RETRYABLE_STATUS_CODES or 500 <= error.http_status <= 599


def is_network_or_idempotent_request_error(error: Exception) -> bool:
    """
    Default retry condition.

    Retries transport failures, and retryable responses to idempotent
    methods.

    Args:
        error: Failure raised by one attempt

    Returns:
        bool: True if the attempt should be retried
    """
    if is_network_error(error):
        return True

    if not is_retryable_response_error(error):
        return False

    request = error.request
    return request is not None and request.method.upper() in IDEMPOTENT_METHODS


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration shared read-only by all requests of a client

    Attributes:
        max_retries: Retries after the first attempt (0 disables retrying)
        delay: Delay strategy returning milliseconds for a retry number
        retry_condition: Predicate deciding whether a failure is retried
    """
    max_retries: int = 0
    delay: Callable[[int], float] = FixedDelay(0)
    retry_condition: RetryCondition = is_network_or_idempotent_request_error

    def __post_init__(self):
        """Validate retry policy"""
        if not isinstance(self.max_retries, int) or isinstance(self.max_retries, bool):
            raise ConfigurationError(
                f"max_retries must be an integer, got {self.max_retries!r}",
                "INVALID_RETRY_POLICY"
            )

        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be non-negative", "INVALID_RETRY_POLICY")

        if not callable(self.delay):
            raise ConfigurationError("Retry delay strategy must be callable", "INVALID_RETRY_POLICY")

        if not callable(self.retry_condition):
            raise ConfigurationError("retry_condition must be callable", "INVALID_RETRY_POLICY")

    @property
    def enabled(self) -> bool:
        """Whether failed attempts can be retried at all"""
        return self.max_retries > 0

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """
        Decide whether to retry after a failed attempt.

        Args:
            error: Failure raised by the attempt
            attempt: Number of attempts made so far

        Returns:
            bool: True if another attempt should be made
        """
        if attempt > self.max_retries:
            return False
        if not isinstance(error, (TransportError, ResponseError)):
            return False
        return bool(self.retry_condition(error))

    async def execute(
        self,
        send: Callable[[], Awaitable[T]],
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> T:
        """
        Run ``send`` until it succeeds or the policy gives up.

        Args:
            send: Coroutine factory issuing one attempt
            sleep: Awaitable sleep taking seconds

        Returns:
            The result of the first successful attempt

        Raises:
            The failure of the last attempt, unchanged
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await send()
            except (TransportError, ResponseError) as e:
                if not self.should_retry(e, attempt):
                    raise

                delay_ms = self.delay(attempt)
                logger.warning(
                    f"Attempt {attempt} failed ({e}); retrying in {delay_ms:.0f}ms "
                    f"({self.max_retries - attempt + 1} retries left)"
                )
                await sleep(delay_ms / 1000)


def create_retry_policy(
    max_retries: int,
    retry_delay=None,
    retry_condition: RetryCondition = is_network_or_idempotent_request_error
) -> RetryPolicy:
    """
    Create a retry policy from a loosely specified delay.

    Args:
        max_retries: Retries after the first attempt
        retry_delay: 'exponential', a number of milliseconds, a callable of
            the attempt number, a delay strategy instance, or None for no delay
        retry_condition: Predicate deciding whether a failure is retried

    Returns:
        RetryPolicy: Configured policy

    Raises:
        ConfigurationError: If the delay is of an unsupported type
    """
    if retry_delay is None:
        delay = FixedDelay(0)
    elif isinstance(retry_delay, (FixedDelay, ExponentialDelay, CustomDelay)):
        delay = retry_delay
    elif retry_delay == 'exponential':
        delay = ExponentialDelay()
    elif _is_number(retry_delay):
        delay = FixedDelay(retry_delay)
    elif callable(retry_delay):
        delay = CustomDelay(retry_delay)
    else:
        raise ConfigurationError(
            f"Unsupported retry delay: {retry_delay!r}",
            "INVALID_RETRY_DELAY",
            {"retry_delay": repr(retry_delay)}
        )

    return RetryPolicy(max_retries=max_retries, delay=delay, retry_condition=retry_condition)
