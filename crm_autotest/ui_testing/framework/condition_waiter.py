# ================================================================================
# Condition Waiter
# ================================================================================
#
# Bounded polling engine shared by every element and page readiness check.
#
# Key Features:
#   - Deadline fixed once per call; the last evaluation happens at the deadline
#   - Sleeps never overshoot the deadline
#   - Tolerated error kinds count as "not yet", every other kind is fatal
#   - Injectable clock/sleep so timing is testable without real delays
#
# The waiter holds no per-call state and is safe to share between workers
# driving independent sessions.
#
# ================================================================================

from __future__ import annotations

import time
from typing import Any, Callable, Optional

from loguru import logger

from .conditions import WaitCondition
from .errors import WaitTimeoutError, error_for
from .remote_driver import Err, RemoteDriver


class ConditionWaiter:
    """
    Evaluates a WaitCondition until it holds or its deadline passes.

    Example:
        waiter = ConditionWaiter()
        ref = waiter.wait(driver, WaitCondition(
            visibility_of(Locator.css("#banner")),
            timeout=2,
            poll_interval=0.1,
            description="banner visible",
        ))
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            clock: Monotonic time source in seconds
            sleep: Blocking sleep function in seconds
        """
        self._clock = clock
        self._sleep = sleep

    def wait(self, driver: RemoteDriver, condition: WaitCondition) -> Any:
        """
        Poll ``condition`` against ``driver``.

        Returns:
            The truthy value produced by the predicate

        Raises:
            WaitTimeoutError: Deadline elapsed without the predicate holding
            FrameworkError: Predicate reported a non-tolerated error kind
        """
        start = self._clock()
        deadline = start + condition.timeout
        attempts = 0
        last_error: Optional[str] = None

        while True:
            attempts += 1
            result = condition.predicate(driver)

            if isinstance(result, Err):
                if result.kind not in condition.ignored:
                    logger.debug(
                        f"Wait aborted on {result.kind.value} for "
                        f"'{condition.description}': {result.message}"
                    )
                    raise error_for(result.kind, result.message)
                last_error = f"{result.kind.value}: {result.message}"
            elif result.value:
                elapsed = self._clock() - start
                logger.debug(
                    f"Condition met after {attempts} attempt(s) "
                    f"({elapsed:.2f}s): {condition.description}"
                )
                return result.value

            now = self._clock()
            if now >= deadline:
                elapsed = now - start
                logger.debug(
                    f"Condition timed out after {attempts} attempt(s) "
                    f"({elapsed:.2f}s): {condition.description}"
                )
                raise WaitTimeoutError(
                    condition.description,
                    timeout=condition.timeout,
                    elapsed=elapsed,
                    attempts=attempts,
                    last_error=last_error,
                )

            self._sleep(min(condition.poll_interval, deadline - now))

    def holds_within(self, driver: RemoteDriver, condition: WaitCondition) -> bool:
        """Like ``wait`` but reports a timeout as ``False``."""
        try:
            self.wait(driver, condition)
            return True
        except WaitTimeoutError:
            return False

    def sleep_for(self, seconds: float) -> None:
        """Unconditional pause; prefer a condition wherever one exists."""
        if seconds <= 0:
            return
        logger.debug(f"Sleeping for {seconds:.2f}s")
        self._sleep(seconds)


__all__ = ["ConditionWaiter"]
