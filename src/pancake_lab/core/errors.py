"""Custom exception hierarchy for the pancake lab.

Every error carries a ``status_code`` so the HTTP adapter can translate
it without knowing the individual classes.
"""

from __future__ import annotations

from typing import Any


class PancakeLabError(Exception):
    """Base exception for all pancake lab errors."""

    status_code: int = 500


# --- Input ---
class ValidationError(PancakeLabError):
    """Malformed input (non-positive building/room, bad ingredient name)."""

    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Validation failed for field '{field}': {reason}")


# --- Lookup ---
class NotFoundError(PancakeLabError):
    """A referenced entity does not exist."""

    status_code = 404


class OrderNotFound(NotFoundError):
    """Order id is not present in the active index."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class PancakeNotFound(NotFoundError):
    """Pancake id is not part of the order."""

    def __init__(self, pancake_id: str):
        self.pancake_id = pancake_id
        super().__init__(f"Pancake not found: {pancake_id}")


# --- Lifecycle ---
class InvalidTransition(PancakeLabError):
    """Requested state is not reachable from the current state."""

    status_code = 400

    def __init__(self, current: Any, requested: Any):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid state transition from {_label(current)} "
            f"to {_label(requested)}"
        )


class InvalidState(PancakeLabError):
    """Pancake or ingredient mutation attempted on a non-OPEN order."""

    status_code = 400

    def __init__(self, order_id: str, state: Any):
        self.order_id = order_id
        self.state = state
        super().__init__(
            f"Order {order_id} is {_label(state)}; "
            "pancakes can only change while the order is OPEN"
        )


# --- Concurrency ---
class ConcurrencyExhausted(PancakeLabError):
    """Optimistic retry budget used up under contention.

    The whole operation was abandoned; callers may resubmit it.
    """

    status_code = 409

    def __init__(self, target: str, attempts: int):
        self.target = target
        self.attempts = attempts
        super().__init__(
            f"Failed to update {target} after {attempts} attempts "
            "due to concurrent modification"
        )


def _label(value: Any) -> str:
    return value.name if hasattr(value, "name") else str(value)
