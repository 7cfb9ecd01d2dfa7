"""Pancake and ingredient operations on orders held by the registry.

Every operation resolves the order through :class:`OrderService` first
(``OrderNotFound`` if it is not active).  Mutations additionally require
the order to be OPEN (``InvalidState`` otherwise).  Removing something
that is not there is a silent no-op.
"""

from __future__ import annotations

import logging

from pancake_lab.core.enums import OrderState
from pancake_lab.core.errors import (
    InvalidState,
    OrderNotFound,
    PancakeNotFound,
    ValidationError,
)
from pancake_lab.domain.order import Order
from pancake_lab.domain.pancake import Ingredient, Pancake
from pancake_lab.service.audit import AuditSink, notify
from pancake_lab.service.order_service import OrderService

logger = logging.getLogger(__name__)


class PancakeService:
    """Mediates pancake/ingredient changes against registry orders.

    Parameters
    ----------
    order_service:
        Registry the orders are resolved from.
    audit:
        Optional audit collaborator.
    max_ingredient_name_length:
        Upper bound on ingredient names (default 50).
    """

    def __init__(
        self,
        order_service: OrderService,
        audit: AuditSink | None = None,
        *,
        max_ingredient_name_length: int = 50,
    ) -> None:
        self._orders = order_service
        self._audit = audit
        self._max_name_length = max_ingredient_name_length

    # ------------------------------------------------------------------
    # Pancakes
    # ------------------------------------------------------------------

    def create_pancake(self, order_id: str) -> str:
        """Add an empty pancake to the order and return its id."""
        order = self._open_order(order_id)
        pancake = Pancake(retry_policy=order.retry_policy)
        order.add_pancake(pancake)

        logger.info(
            "Pancake created: order_id=%s pancake_id=%s", order.id, pancake.id,
        )
        notify(self._audit, "pancake_added", order)
        return pancake.id

    def get_pancake(self, order_id: str, pancake_id: str) -> Pancake | None:
        return self._order(order_id).get_pancake(pancake_id)

    def get_pancakes_by_order(self, order_id: str) -> list[Pancake]:
        return list(self._order(order_id).pancakes)

    def remove_pancake(self, order_id: str, pancake_id: str) -> None:
        order = self._open_order(order_id)
        if not order.remove_pancake(pancake_id):
            logger.debug(
                "Pancake %s not in order %s, nothing to remove",
                pancake_id, order_id,
            )
            return

        logger.info(
            "Pancake removed: order_id=%s pancake_id=%s", order_id, pancake_id,
        )
        notify(self._audit, "pancake_removed", order, pancake_id)

    # ------------------------------------------------------------------
    # Ingredients
    # ------------------------------------------------------------------

    def add_ingredient_to_pancake(
        self, order_id: str, pancake_id: str, name: str,
    ) -> Ingredient:
        """Append a new ingredient called ``name`` to the pancake.

        Raises ``ValidationError`` for an empty or over-long name,
        ``OrderNotFound``, ``InvalidState`` or ``PancakeNotFound``.
        """
        name = self._validate_name(name)
        order = self._open_order(order_id)
        pancake = self._pancake(order, pancake_id)

        ingredient = Ingredient(name=name)
        pancake.add_ingredient(ingredient, guard=order.require_open)

        logger.info(
            "Ingredient added: order_id=%s pancake_id=%s ingredient=%s",
            order_id, pancake_id, name,
        )
        notify(self._audit, "ingredient_added", order, pancake, ingredient)
        return ingredient

    def remove_ingredient_from_pancake(
        self, order_id: str, pancake_id: str, ingredient_id: str,
    ) -> None:
        order = self._open_order(order_id)
        pancake = self._pancake(order, pancake_id)
        if not pancake.remove_ingredient(ingredient_id, guard=order.require_open):
            logger.debug(
                "Ingredient %s not on pancake %s, nothing to remove",
                ingredient_id, pancake_id,
            )
            return

        logger.info(
            "Ingredient removed: order_id=%s pancake_id=%s ingredient_id=%s",
            order_id, pancake_id, ingredient_id,
        )
        notify(self._audit, "ingredient_removed", order, pancake, ingredient_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _order(self, order_id: str) -> Order:
        order = self._orders.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _open_order(self, order_id: str) -> Order:
        order = self._order(order_id)
        state = order.state
        if state != OrderState.OPEN:
            raise InvalidState(order_id, state)
        return order

    @staticmethod
    def _pancake(order: Order, pancake_id: str) -> Pancake:
        pancake = order.get_pancake(pancake_id)
        if pancake is None:
            raise PancakeNotFound(pancake_id)
        return pancake

    def _validate_name(self, name: object) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name", "ingredient cannot be empty")
        if len(name) > self._max_name_length:
            raise ValidationError(
                "name",
                f"ingredient name too long (max {self._max_name_length} "
                "characters)",
            )
        return name
