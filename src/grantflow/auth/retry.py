"""Retry and polling combinators.

Two kinds of loop exist in the engine:

- a bounded retry (:func:`retry_async`) -- run an operation up to
  ``attempts`` times and surface the last error;
- a time-bounded poll (:func:`poll_until`) -- sleep, check, attempt, and let a
  decision function say whether to stop, continue, or back off.

Both are plain coroutines so flows stay free of hand-written loop state.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from grantflow.exceptions import GrantflowError, PollingTooLongError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]
Clock = Callable[[], float]


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    *,
    retry_on: tuple[type[BaseException], ...] = (GrantflowError,),
    description: str = "operation",
) -> T:
    """Run *operation* until it succeeds or *attempts* runs are used up.

    Only exceptions listed in *retry_on* are retried; anything else (including
    :class:`asyncio.CancelledError`) propagates immediately.

    Args:
        operation: Zero-argument coroutine factory.  Called once per attempt.
        attempts: Total number of runs, at least 1.
        retry_on: Exception types that trigger another attempt.
        description: Used in log messages.

    Returns:
        The first successful result.

    Raises:
        The exception from the final attempt.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= attempts:
                raise
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying",
                description, attempt, attempts, exc,
            )
    raise AssertionError("unreachable")  # pragma: no cover


class PollAction(enum.Enum):
    """What a poll decision function asks the loop to do next."""

    STOP = "stop"
    CONTINUE = "continue"
    SLOW_DOWN = "slow_down"


@dataclass
class PollStep(Generic[T]):
    """Result of one polling attempt."""

    action: PollAction
    value: Optional[T] = None

    @classmethod
    def done(cls, value: T) -> PollStep[T]:
        return cls(PollAction.STOP, value)

    @classmethod
    def pending(cls) -> PollStep[T]:
        return cls(PollAction.CONTINUE)

    @classmethod
    def slow_down(cls) -> PollStep[T]:
        return cls(PollAction.SLOW_DOWN)


async def poll_until(
    attempt: Callable[[], Awaitable[PollStep[T]]],
    *,
    interval: float,
    max_duration: float,
    backoff: float = 5.0,
    before_attempt: Optional[Callable[[], None]] = None,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic,
) -> T:
    """Poll until *attempt* reports :attr:`PollAction.STOP`.

    Each iteration sleeps for the current interval, runs *before_attempt*
    (which may raise to abort), aborts with :class:`PollingTooLongError` once
    more than *max_duration* seconds have passed since polling began, and then
    runs *attempt*.  A :attr:`PollAction.SLOW_DOWN` step grows the interval by
    *backoff* seconds.  Exceptions raised by *attempt* end the poll.

    Args:
        attempt: Coroutine factory returning a :class:`PollStep`.
        interval: Initial seconds between attempts.
        max_duration: Wall-clock budget in seconds.
        backoff: Seconds added to the interval on ``SLOW_DOWN``.
        before_attempt: Optional check run after every sleep.
        sleep: Awaitable sleep function.
        clock: Monotonic time source.

    Returns:
        The value carried by the first ``STOP`` step.
    """
    started = clock()
    current = interval
    polls = 0
    while True:
        await sleep(current)
        if before_attempt is not None:
            before_attempt()
        if clock() - started > max_duration:
            raise PollingTooLongError(max_duration)

        polls += 1
        step = await attempt()
        if step.action is PollAction.STOP:
            logger.debug("Polling finished after %d attempts", polls)
            return step.value  # type: ignore[return-value]
        if step.action is PollAction.SLOW_DOWN:
            current += backoff
            logger.debug("Server asked to slow down; interval is now %gs", current)
