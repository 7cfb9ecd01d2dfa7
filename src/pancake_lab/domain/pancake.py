"""Pancake and Ingredient.

An Ingredient is an immutable value.  A Pancake keeps its ingredients as a
tuple snapshot behind an atomic reference and replaces the whole tuple on
every add/remove.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from pancake_lab.core.ids import new_id
from pancake_lab.domain.atomic import (
    DEFAULT_RETRY_POLICY,
    AtomicReference,
    RetryPolicy,
    optimistic_update,
)


def describe(ingredients: tuple[Ingredient, ...]) -> str:
    names = ", ".join(i.name for i in ingredients)
    return f"Delicious pancake with {names}!"


@dataclass(frozen=True)
class Ingredient:
    """Named ingredient; equality and hashing by ``id`` only."""

    name: str = field(compare=False)
    id: str = field(default_factory=new_id)


class Pancake:
    """A pancake owning an ordered collection of ingredients.

    Insertion order is preserved.  ``ingredients`` always returns a complete
    snapshot; callers never see a half-applied add or remove.
    """

    def __init__(
        self,
        *,
        pancake_id: str | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        self._id = pancake_id or new_id()
        self._ingredients: AtomicReference[tuple[Ingredient, ...]] = (
            AtomicReference(())
        )
        self._retry_policy = retry_policy

    @property
    def id(self) -> str:
        return self._id

    @property
    def ingredients(self) -> tuple[Ingredient, ...]:
        return self._ingredients.get()

    @property
    def description(self) -> str:
        return describe(self.ingredients)

    def get_ingredient(self, ingredient_id: str) -> Ingredient | None:
        for ingredient in self.ingredients:
            if ingredient.id == ingredient_id:
                return ingredient
        return None

    def add_ingredient(
        self,
        ingredient: Ingredient,
        *,
        guard: Callable[[], None] | None = None,
    ) -> None:
        """Append ``ingredient`` to the current snapshot.

        ``guard`` runs before every attempt; an exception it raises
        abandons the update.
        """

        def _with(current: tuple[Ingredient, ...]) -> tuple[Ingredient, ...]:
            if guard is not None:
                guard()
            return current + (ingredient,)

        optimistic_update(
            self._ingredients,
            _with,
            target="pancake.ingredients",
            policy=self._retry_policy,
        )

    def remove_ingredient(
        self,
        ingredient_id: str,
        *,
        guard: Callable[[], None] | None = None,
    ) -> bool:
        """Remove the ingredient with ``ingredient_id``.

        Returns ``False`` (and changes nothing) when it is not present.
        ``guard`` behaves as in :meth:`add_ingredient`.
        """

        def _without(
            current: tuple[Ingredient, ...],
        ) -> tuple[Ingredient, ...]:
            if guard is not None:
                guard()
            kept = tuple(i for i in current if i.id != ingredient_id)
            return current if len(kept) == len(current) else kept

        previous, current = optimistic_update(
            self._ingredients,
            _without,
            target="pancake.ingredients",
            policy=self._retry_policy,
        )
        return previous is not current

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pancake):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"Pancake(id={self._id!r}, ingredients={len(self.ingredients)})"
