"""Bounded poll and retry loops for remote operations.

Two independent policies are used during a run:
  - ``poll_until`` waits for an asynchronous remote operation to report a
    terminal status (e.g. device configuration apply, Arc attachment).
  - ``retry_call`` absorbs transient failures of a single remote call.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from edgeboot.errors import PollTimeoutError, RemoteOperationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed number of attempts with a fixed sleep between them."""

    attempts: int
    interval: float

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")

    def to_dict(self) -> dict[str, Any]:
        return {"attempts": self.attempts, "interval": self.interval}


def poll_until(
    operation: str,
    fetch: Callable[[], T],
    is_done: Callable[[T], bool],
    policy: RetryPolicy,
    describe: Callable[[T], str] = str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fetch`` until ``is_done`` holds for its result.

    Args:
        operation: Human-readable name for logging and errors
        fetch: Returns the current remote status
        is_done: Predicate for the terminal status
        policy: Attempt budget and interval between polls
        describe: Renders a status for log lines
        sleep: Sleep function, replaceable in tests

    Returns:
        The first status for which ``is_done`` holds

    Raises:
        PollTimeoutError: If the budget is exhausted first
    """
    last = "<none>"
    for attempt in range(1, policy.attempts + 1):
        status = fetch()
        if is_done(status):
            logger.info(
                f"{operation} complete after {attempt} poll(s): "
                f"{describe(status)}"
            )
            return status

        last = describe(status)
        if attempt < policy.attempts:
            logger.info(
                f"{operation} status is {last}, "
                f"polling again in {policy.interval}s... "
                f"(attempt {attempt}/{policy.attempts})"
            )
            sleep(policy.interval)

    raise PollTimeoutError(operation, policy.attempts, last)


def retry_call(
    operation: str,
    call: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``call``, retrying on ``RemoteOperationError``.

    The last failure propagates once the budget is exhausted.
    """
    for attempt in range(1, policy.attempts + 1):
        try:
            return call()
        except RemoteOperationError as e:
            if attempt >= policy.attempts:
                logger.error(
                    f"{operation} failed after {policy.attempts} attempts"
                )
                raise
            logger.warning(
                f"{operation} failed ({e.reason}), "
                f"retrying in {policy.interval}s... "
                f"(attempt {attempt}/{policy.attempts})"
            )
            sleep(policy.interval)

    raise RuntimeError("unreachable")
