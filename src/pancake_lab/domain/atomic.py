"""Atomic snapshot references and the bounded optimistic update loop.

Both ``Order.pancakes`` and ``Pancake.ingredients`` (and ``Order.state``)
are held behind an :class:`AtomicReference` to an immutable snapshot.
Writers never lock the field for the duration of their work; they read a
snapshot, build a replacement and swap it in with
:meth:`AtomicReference.compare_and_set`.  A lost race is retried from a
fresh read, bounded by a :class:`RetryPolicy`, after which
:class:`ConcurrencyExhausted` is raised.

Retry shape (defaults)::

    attempt 1 ── lost ── sleep 10ms
    attempt 2 ── lost ── sleep 20ms
    attempt 3 ── lost ── ConcurrencyExhausted
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from pancake_lab.core.config import ConcurrencyConfig
from pancake_lab.core.errors import ConcurrencyExhausted
from pancake_lab.observability.metrics import (
    CONCURRENCY_EXHAUSTED_TOTAL,
    OPTIMISTIC_RETRIES_TOTAL,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AtomicReference(Generic[T]):
    """A single swappable reference with compare-and-set semantics.

    Reads are lock-free.  ``compare_and_set`` compares by identity, so the
    swap only succeeds when nobody replaced the snapshot since it was read.
    The internal lock covers only the compare and the store.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, value: T) -> None:
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> T:
        return self._value

    def compare_and_set(self, expected: T, new: T) -> bool:
        with self._lock:
            if self._value is not expected:
                return False
            self._value = new
            return True

    def __repr__(self) -> str:
        return f"AtomicReference({self._value!r})"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with linear backoff for optimistic updates.

    Parameters
    ----------
    max_attempts:
        Total compare-and-set attempts before giving up (default 3).
    backoff_step:
        Seconds to sleep after the n-th lost attempt, multiplied by n.
    sleep:
        Sleep function, replaceable in tests.
    """

    max_attempts: int = 3
    backoff_step: float = 0.010
    sleep: Callable[[float], None] = field(
        default=time.sleep, compare=False, repr=False,
    )

    def backoff(self, attempt: int) -> float:
        return self.backoff_step * attempt

    @classmethod
    def from_config(cls, config: ConcurrencyConfig) -> RetryPolicy:
        return cls(
            max_attempts=config.max_attempts,
            backoff_step=config.backoff_step_seconds,
        )


DEFAULT_RETRY_POLICY = RetryPolicy()


def optimistic_update(
    ref: AtomicReference[T],
    mutate: Callable[[T], T],
    *,
    target: str,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> tuple[T, T]:
    """Apply ``mutate`` to the snapshot held by ``ref``.

    ``mutate`` receives the current snapshot and returns its replacement.
    Returning the very same object signals a no-op: nothing is swapped and
    the call succeeds immediately.  Exceptions raised by ``mutate`` (for
    example a failed business-rule check on a re-read snapshot) propagate
    unchanged and abandon the update.

    Returns
    -------
    ``(previous, current)`` snapshots of the successful attempt.

    Raises
    ------
    ConcurrencyExhausted
        When every attempt lost its compare-and-set race.
    """
    for attempt in range(1, policy.max_attempts + 1):
        observed = ref.get()
        updated = mutate(observed)
        if updated is observed:
            return observed, observed
        if ref.compare_and_set(observed, updated):
            return observed, updated

        OPTIMISTIC_RETRIES_TOTAL.labels(target=target).inc()
        if attempt < policy.max_attempts:
            delay = policy.backoff(attempt)
            logger.debug(
                "Lost update race on %s (attempt %d/%d), retrying in %.3fs",
                target, attempt, policy.max_attempts, delay,
            )
            policy.sleep(delay)

    CONCURRENCY_EXHAUSTED_TOTAL.labels(target=target).inc()
    logger.warning(
        "Giving up on %s after %d attempts", target, policy.max_attempts,
    )
    raise ConcurrencyExhausted(target, policy.max_attempts)
