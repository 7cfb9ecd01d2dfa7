"""Enumerations used across the pancake lab."""

from enum import Enum


class OrderState(str, Enum):
    OPEN = "open"  # Initial state, pancakes may still change
    COMPLETED = "completed"  # Submitted by the customer
    PREPARED = "prepared"  # Kitchen is done
    OUT_FOR_DELIVERY = "out_for_delivery"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderState.OUT_FOR_DELIVERY, OrderState.CANCELLED)
