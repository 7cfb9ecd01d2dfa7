"""Order aggregate and its lifecycle state machine.

State Machine::

    OPEN → COMPLETED → PREPARED → OUT_FOR_DELIVERY
      ↘        ↓          ↙
            CANCELLED

OUT_FOR_DELIVERY and CANCELLED are terminal.  Requesting the current state
again is a no-op success.  ``state`` and ``pancakes`` are independent
atomic fields; there is no ordering guarantee between them beyond the rule
that pancakes only change while the order is OPEN.
"""

from __future__ import annotations

import logging

from pancake_lab.core.enums import OrderState
from pancake_lab.core.errors import InvalidState, InvalidTransition
from pancake_lab.core.ids import new_id
from pancake_lab.domain.atomic import (
    DEFAULT_RETRY_POLICY,
    AtomicReference,
    RetryPolicy,
    optimistic_update,
)
from pancake_lab.domain.pancake import Pancake

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Valid state transitions
# ---------------------------------------------------------------------------

_VALID_TRANSITIONS: dict[OrderState, frozenset[OrderState]] = {
    OrderState.OPEN: frozenset({OrderState.COMPLETED, OrderState.CANCELLED}),
    OrderState.COMPLETED: frozenset({OrderState.PREPARED, OrderState.CANCELLED}),
    OrderState.PREPARED: frozenset(
        {OrderState.OUT_FOR_DELIVERY, OrderState.CANCELLED}
    ),
    # Terminal states -- no further transitions allowed.
    OrderState.OUT_FOR_DELIVERY: frozenset(),
    OrderState.CANCELLED: frozenset(),
}


def can_transition(current: OrderState, requested: OrderState) -> bool:
    """Return ``True`` if ``requested`` is reachable from ``current``.

    Same-state requests count as reachable (idempotent no-op).
    """
    return current == requested or requested in _VALID_TRANSITIONS[current]


def validate_transition(current: OrderState, requested: OrderState) -> None:
    if not can_transition(current, requested):
        raise InvalidTransition(current, requested)


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------

class Order:
    """Pancake order for a building/room.

    ``id``, ``building`` and ``room`` never change.  ``state`` and
    ``pancakes`` are each held behind their own atomic reference.
    """

    def __init__(
        self,
        building: int,
        room: int,
        *,
        order_id: str | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        self._id = order_id or new_id()
        self._building = building
        self._room = room
        self._state: AtomicReference[OrderState] = AtomicReference(OrderState.OPEN)
        self._pancakes: AtomicReference[tuple[Pancake, ...]] = AtomicReference(())
        self._retry_policy = retry_policy

    @property
    def id(self) -> str:
        return self._id

    @property
    def building(self) -> int:
        return self._building

    @property
    def room(self) -> int:
        return self._room

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrderState:
        return self._state.get()

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def transition(self, new_state: OrderState) -> OrderState:
        """Move to ``new_state``; returns the state it replaced.

        The current state is re-read and re-validated on every attempt, so
        a concurrent writer can turn a valid request into an
        ``InvalidTransition`` (e.g. COMPLETED requested while another
        caller already cancelled).  When the order is already in
        ``new_state`` nothing is written and ``new_state`` is returned.

        Raises ``InvalidTransition`` or ``ConcurrencyExhausted``.
        """

        def _advance(current: OrderState) -> OrderState:
            if current == new_state:
                return current
            validate_transition(current, new_state)
            return new_state

        previous, _ = optimistic_update(
            self._state,
            _advance,
            target="order.state",
            policy=self._retry_policy,
        )
        return previous

    # ------------------------------------------------------------------
    # Pancakes
    # ------------------------------------------------------------------

    @property
    def pancakes(self) -> tuple[Pancake, ...]:
        return self._pancakes.get()

    def get_pancake(self, pancake_id: str) -> Pancake | None:
        for pancake in self.pancakes:
            if pancake.id == pancake_id:
                return pancake
        return None

    def require_open(self) -> None:
        state = self.state
        if state != OrderState.OPEN:
            raise InvalidState(self._id, state)

    def add_pancake(self, pancake: Pancake) -> None:
        """Append ``pancake``.  Raises ``InvalidState`` unless OPEN."""

        def _with(current: tuple[Pancake, ...]) -> tuple[Pancake, ...]:
            self.require_open()
            return current + (pancake,)

        optimistic_update(
            self._pancakes,
            _with,
            target="order.pancakes",
            policy=self._retry_policy,
        )

    def remove_pancake(self, pancake_id: str) -> bool:
        """Remove the pancake with ``pancake_id``; ``False`` if absent."""

        def _without(current: tuple[Pancake, ...]) -> tuple[Pancake, ...]:
            self.require_open()
            kept = tuple(p for p in current if p.id != pancake_id)
            return current if len(kept) == len(current) else kept

        previous, current = optimistic_update(
            self._pancakes,
            _without,
            target="order.pancakes",
            policy=self._retry_policy,
        )
        return previous is not current

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Order):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"Order(id={self._id!r}, building={self._building}, "
            f"room={self._room}, state={self.state.name})"
        )


def transition(order: Order, new_state: OrderState) -> OrderState:
    """Validated compare-and-set transition of ``order`` to ``new_state``.

    Returns the previous state.  See :meth:`Order.transition`.
    """
    previous = order.transition(new_state)
    if previous != new_state:
        logger.debug(
            "Order state transition: order_id=%s %s -> %s",
            order.id, previous.name, new_state.name,
        )
    return previous
