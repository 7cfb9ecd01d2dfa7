"""Audit log of order activity.

Receives fire-and-forget notifications from the services.  Entries are
kept in a bounded in-memory buffer and mirrored to the application log.
The services guard every call, so a failing sink never affects the
operation that triggered it.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from pancake_lab.core.enums import OrderState
from pancake_lab.core.ids import utc_now
from pancake_lab.domain.order import Order
from pancake_lab.domain.pancake import Ingredient, Pancake

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    """What the services expect from an audit collaborator."""

    def order_created(self, order: Order) -> None: ...

    def pancake_added(self, order: Order) -> None: ...

    def pancake_removed(self, order: Order, pancake_id: str) -> None: ...

    def ingredient_added(
        self, order: Order, pancake: Pancake, ingredient: Ingredient,
    ) -> None: ...

    def ingredient_removed(
        self, order: Order, pancake: Pancake, ingredient_id: str,
    ) -> None: ...

    def state_changed(
        self, order: Order, old: OrderState, new: OrderState,
    ) -> None: ...


@dataclass(frozen=True)
class AuditEntry:
    """Single audit record."""

    action: str  # "order_created", "pancake_added", "state_changed", ...
    order_id: str
    building: int
    room: int
    message: str
    timestamp: datetime = field(default_factory=utc_now)

    def render(self) -> str:
        return f"[{self.timestamp.isoformat()}] {self.message}"


class AuditLog:
    """Thread-safe in-memory audit trail.

    Parameters
    ----------
    max_entries:
        Maximum number of entries retained; oldest are dropped first.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        self._lock = threading.Lock()
        self._entries: deque[AuditEntry] = deque(maxlen=max_entries)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def order_created(self, order: Order) -> None:
        self._record(
            "order_created", order,
            f"Created order {order.id} (Building {order.building}, "
            f"Room {order.room})",
        )

    def pancake_added(self, order: Order) -> None:
        self._record(
            "pancake_added", order,
            f"Added new pancake to order {order.id} (Building "
            f"{order.building}, Room {order.room}). Current pancakes "
            f"count: {len(order.pancakes)}",
        )

    def pancake_removed(self, order: Order, pancake_id: str) -> None:
        self._record(
            "pancake_removed", order,
            f"Removed pancake {pancake_id} from order {order.id}. "
            f"Current pancakes count: {len(order.pancakes)}",
        )

    def ingredient_added(
        self, order: Order, pancake: Pancake, ingredient: Ingredient,
    ) -> None:
        self._record(
            "ingredient_added", order,
            f"Added ingredient '{ingredient.name}' to pancake {pancake.id} "
            f"in order {order.id}",
        )

    def ingredient_removed(
        self, order: Order, pancake: Pancake, ingredient_id: str,
    ) -> None:
        self._record(
            "ingredient_removed", order,
            f"Removed ingredient {ingredient_id} from pancake {pancake.id} "
            f"in order {order.id}",
        )

    def state_changed(
        self, order: Order, old: OrderState, new: OrderState,
    ) -> None:
        self._record(
            "state_changed", order,
            f"Order {order.id} state changed from {old.name} to {new.name} "
            f"(Building {order.building}, Room {order.room})",
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def entries(self) -> list[AuditEntry]:
        with self._lock:
            return list(self._entries)

    def full_log(self) -> str:
        return "".join(e.render() + "\n" for e in self.entries())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _record(self, action: str, order: Order, message: str) -> None:
        entry = AuditEntry(
            action=action,
            order_id=order.id,
            building=order.building,
            room=order.room,
            message=message,
        )
        with self._lock:
            self._entries.append(entry)
        logger.info(message)


def notify(sink: AuditSink | None, event: str, *args: object) -> None:
    """Deliver ``event`` to ``sink``; failures are logged and contained."""
    if sink is None:
        return
    try:
        getattr(sink, event)(*args)
    except Exception:
        logger.exception("Audit sink failed on %s", event)
