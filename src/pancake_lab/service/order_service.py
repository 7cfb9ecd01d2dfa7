"""Order registry.

Owns the id → Order index of active orders, creates orders and drives
validated state transitions.  Orders that reach a terminal state
(OUT_FOR_DELIVERY, CANCELLED) leave the index.

Locking
-------
* Lookups are lock-free dict reads.
* ``_index_lock`` guards inserts, removals and list snapshots.
* ``_terminal_lock`` serialises the "terminal transition + deregister"
  pair.  Lookups additionally hide any order already in a terminal state,
  so no reader can obtain an order from the registry and find it terminal
  at that moment.
* Non-terminal transitions only use the order's own compare-and-set.
"""

from __future__ import annotations

import logging
import threading

from pancake_lab.core.enums import OrderState
from pancake_lab.core.errors import OrderNotFound, ValidationError
from pancake_lab.domain.atomic import DEFAULT_RETRY_POLICY, RetryPolicy
from pancake_lab.domain.order import Order, transition
from pancake_lab.observability.metrics import (
    ACTIVE_ORDERS,
    ORDERS_CREATED_TOTAL,
    record_transition,
)
from pancake_lab.service.audit import AuditSink, notify

logger = logging.getLogger(__name__)


def _validate_positive(field: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "must be an integer")
    if value <= 0:
        raise ValidationError(field, "must be positive")
    return value


class OrderService:
    """In-memory registry of active orders.

    Parameters
    ----------
    audit:
        Optional audit collaborator notified of creations and state changes.
    retry_policy:
        Optimistic retry policy handed to every order it creates.
    """

    def __init__(
        self,
        audit: AuditSink | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        self._orders: dict[str, Order] = {}
        self._index_lock = threading.Lock()
        self._terminal_lock = threading.Lock()
        self._audit = audit
        self._retry_policy = retry_policy

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_order(self, building: int, room: int) -> Order:
        """Create and register a new OPEN order.

        Raises ``ValidationError`` for non-positive building or room.
        """
        _validate_positive("building", building)
        _validate_positive("room", room)

        order = Order(building, room, retry_policy=self._retry_policy)
        with self._index_lock:
            self._orders[order.id] = order
        ORDERS_CREATED_TOTAL.inc()
        ACTIVE_ORDERS.inc()

        logger.info(
            "Order created: order_id=%s building=%d room=%d",
            order.id, building, room,
        )
        notify(self._audit, "order_created", order)
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order | None:
        """Look up an active order.  ``None`` once terminal or deleted."""
        order = self._orders.get(order_id)
        if order is None or order.is_terminal:
            return None
        return order

    def has_order(self, order_id: str) -> bool:
        return self.get_order(order_id) is not None

    def get_all_orders(self) -> list[Order]:
        """Point-in-time snapshot of active orders."""
        with self._index_lock:
            orders = list(self._orders.values())
        return [o for o in orders if not o.is_terminal]

    def get_orders_by_state(self, state: OrderState) -> list[Order]:
        return [o for o in self.get_all_orders() if o.state == state]

    def __len__(self) -> int:
        return len(self._orders)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def complete_order(self, order_id: str) -> None:
        self._update_state(order_id, OrderState.COMPLETED)

    def prepare_order(self, order_id: str) -> None:
        self._update_state(order_id, OrderState.PREPARED)

    def start_delivery(self, order_id: str) -> None:
        """Hand the order to delivery and drop it from the active index."""
        self._finish(order_id, OrderState.OUT_FOR_DELIVERY)

    def cancel_order(self, order_id: str) -> None:
        """Cancel the order and drop it from the active index."""
        self._finish(order_id, OrderState.CANCELLED)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_order(self, order_id: str) -> None:
        """Unconditionally remove an active order.

        Raises ``OrderNotFound`` if it is absent or already terminal.
        """
        with self._terminal_lock:
            with self._index_lock:
                order = self._orders.pop(order_id, None)
        if order is None:
            raise OrderNotFound(order_id)
        ACTIVE_ORDERS.dec()
        if order.is_terminal:
            raise OrderNotFound(order_id)
        logger.info("Order deleted: order_id=%s", order_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, order_id: str) -> Order:
        order = self.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _update_state(self, order_id: str, new_state: OrderState) -> None:
        order = self._require(order_id)
        previous = transition(order, new_state)
        self._transitioned(order, previous, new_state)

    def _finish(self, order_id: str, new_state: OrderState) -> None:
        with self._terminal_lock:
            order = self._require(order_id)
            previous = transition(order, new_state)
            with self._index_lock:
                removed = self._orders.pop(order_id, None)
            if removed is not None:
                ACTIVE_ORDERS.dec()
        logger.info(
            "Order left active index: order_id=%s state=%s",
            order_id, new_state.name,
        )
        self._transitioned(order, previous, new_state)

    def _transitioned(
        self, order: Order, previous: OrderState, new_state: OrderState,
    ) -> None:
        if previous == new_state:
            logger.debug(
                "Order already %s: order_id=%s", new_state.name, order.id,
            )
            return
        record_transition(previous.value, new_state.value)
        logger.info(
            "Order state changed: order_id=%s %s -> %s",
            order.id, previous.name, new_state.name,
        )
        notify(self._audit, "state_changed", order, previous, new_state)
