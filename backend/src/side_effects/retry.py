"""Retry policy for side-effect units of work.

Each task execution runs exactly one attempt. A failed attempt before the
last raises SideEffectRetryScheduled carrying the countdown from the policy
(``backoff_seconds[n-1]`` after attempt n, the last entry repeating), and the
worker hands that countdown to Celery. When the final attempt fails,
``on_exhausted`` records the failure and SideEffectDeliveryFailed is raised.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from observability.metrics import side_effect_attempts_total, side_effect_exhausted_total

logger = logging.getLogger(__name__)


class SideEffectDeliveryFailed(Exception):
    """A side-effect unit of work failed on every attempt."""

    def __init__(self, consumer: str, attempts: int, last_error: BaseException):
        super().__init__(f"{consumer} failed after {attempts} attempt(s): {last_error}")
        self.consumer = consumer
        self.attempts = attempts
        self.last_error = last_error


class SideEffectRetryScheduled(Exception):
    """An attempt failed and another one is due after ``delay`` seconds."""

    def __init__(self, consumer: str, attempt: int, delay: float, last_error: BaseException):
        super().__init__(f"{consumer} attempt {attempt} failed, retrying in {delay}s: {last_error}")
        self.consumer = consumer
        self.attempt = attempt
        self.delay = delay
        self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: Tuple[float, ...] = (1.0, 5.0, 15.0)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def max_retries(self) -> int:
        return self.max_attempts - 1

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (1-based)."""
        if not self.backoff_seconds:
            return 0.0
        index = min(attempt, len(self.backoff_seconds)) - 1
        return float(self.backoff_seconds[index])

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.SIDE_EFFECT_MAX_ATTEMPTS,
            backoff_seconds=settings.side_effect_backoff,
        )


def run_attempt(
    consumer: str,
    fn: Callable[[int], Any],
    attempt: int,
    policy: RetryPolicy,
    on_exhausted: Optional[Callable[[BaseException, int], None]] = None,
) -> Any:
    """Run ``fn(attempt)`` once under the policy.

    ``on_exhausted`` errors are logged and do not mask the delivery failure.

    Raises:
        SideEffectRetryScheduled: the attempt failed and attempts remain
        SideEffectDeliveryFailed: the final attempt failed
    """
    try:
        result = fn(attempt)
    except Exception as e:
        if attempt < policy.max_attempts:
            delay = policy.delay_after(attempt)
            side_effect_attempts_total.labels(consumer=consumer, outcome="retry").inc()
            logger.warning(
                f"{consumer} attempt {attempt}/{policy.max_attempts} failed, retrying in {delay}s: {e}",
                extra={"consumer": consumer, "attempt": attempt, "delay_seconds": delay},
            )
            raise SideEffectRetryScheduled(consumer, attempt, delay, e) from e

        side_effect_attempts_total.labels(consumer=consumer, outcome="failed").inc()
        side_effect_exhausted_total.labels(consumer=consumer).inc()
        logger.error(
            f"{consumer} failed after {attempt} attempt(s): {e}",
            extra={"consumer": consumer, "attempt": attempt, "max_attempts": policy.max_attempts},
        )
        if on_exhausted is not None:
            try:
                on_exhausted(e, attempt)
            except Exception:
                logger.exception(
                    f"Could not record exhausted side effect {consumer}",
                    extra={"consumer": consumer},
                )
        raise SideEffectDeliveryFailed(consumer, attempt, e) from e

    side_effect_attempts_total.labels(consumer=consumer, outcome="success").inc()
    if attempt > 1:
        logger.info(
            f"{consumer} succeeded on attempt {attempt}",
            extra={"consumer": consumer, "attempt": attempt},
        )
    return result
