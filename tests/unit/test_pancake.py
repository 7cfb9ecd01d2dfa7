"""Tests for Ingredient and Pancake."""

from __future__ import annotations

import dataclasses

import pytest

from pancake_lab.core.errors import ConcurrencyExhausted
from pancake_lab.domain.atomic import RetryPolicy
from pancake_lab.domain.pancake import Ingredient, Pancake


class TestIngredient:
    def test_assigns_unique_ids(self):
        a = Ingredient(name="Dark Chocolate")
        b = Ingredient(name="Dark Chocolate")
        assert a.id != b.id
        assert a != b

    def test_equality_by_id_only(self):
        a = Ingredient(name="Dark Chocolate", id="ing-1")
        b = Ingredient(name="Milk Chocolate", id="ing-1")
        assert a == b
        assert hash(a) == hash(b)

    def test_is_immutable(self):
        ingredient = Ingredient(name="Whipped Cream")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ingredient.name = "Hazelnuts"  # type: ignore[misc]


class TestPancake:
    def test_starts_empty(self):
        pancake = Pancake()
        assert pancake.ingredients == ()
        assert pancake.id

    def test_add_preserves_insertion_order(self):
        pancake = Pancake()
        names = ["Dark Chocolate", "Whipped Cream", "Hazelnuts"]
        for name in names:
            pancake.add_ingredient(Ingredient(name=name))
        assert [i.name for i in pancake.ingredients] == names

    def test_add_never_mutates_previous_snapshot(self):
        pancake = Pancake()
        pancake.add_ingredient(Ingredient(name="Dark Chocolate"))
        before = pancake.ingredients
        pancake.add_ingredient(Ingredient(name="Milk Chocolate"))
        assert len(before) == 1
        assert len(pancake.ingredients) == 2

    def test_add_then_remove_restores_content(self):
        pancake = Pancake()
        first = Ingredient(name="Dark Chocolate")
        last = Ingredient(name="Hazelnuts")
        pancake.add_ingredient(first)
        pancake.add_ingredient(last)
        before = pancake.ingredients

        extra = Ingredient(name="Whipped Cream")
        pancake.add_ingredient(extra)
        assert pancake.remove_ingredient(extra.id) is True
        assert pancake.ingredients == before

    def test_remove_keeps_order_of_remaining(self):
        pancake = Pancake()
        ingredients = [Ingredient(name=n) for n in ("a", "b", "c", "d")]
        for ingredient in ingredients:
            pancake.add_ingredient(ingredient)
        pancake.remove_ingredient(ingredients[1].id)
        assert [i.name for i in pancake.ingredients] == ["a", "c", "d"]

    def test_remove_absent_is_noop(self):
        pancake = Pancake()
        pancake.add_ingredient(Ingredient(name="Dark Chocolate"))
        before = pancake.ingredients
        assert pancake.remove_ingredient("missing") is False
        assert pancake.ingredients is before

    def test_get_ingredient(self):
        pancake = Pancake()
        ingredient = Ingredient(name="Dark Chocolate")
        pancake.add_ingredient(ingredient)
        assert pancake.get_ingredient(ingredient.id) is ingredient
        assert pancake.get_ingredient("missing") is None

    def test_description(self):
        pancake = Pancake()
        pancake.add_ingredient(Ingredient(name="Dark Chocolate"))
        pancake.add_ingredient(Ingredient(name="Whipped Cream"))
        assert pancake.description == (
            "Delicious pancake with Dark Chocolate, Whipped Cream!"
        )

    def test_equality_by_id(self):
        assert Pancake(pancake_id="p-1") == Pancake(pancake_id="p-1")
        assert Pancake() != Pancake()

    def test_add_reports_exhaustion(self, losing_reference, sleeps):
        pancake = Pancake(retry_policy=RetryPolicy(sleep=sleeps.append))
        pancake._ingredients = losing_reference(())
        with pytest.raises(ConcurrencyExhausted):
            pancake.add_ingredient(Ingredient(name="Dark Chocolate"))
        assert pancake.ingredients == ()
        assert len(sleeps) == 2

    def test_guard_runs_on_every_attempt(self, racing_reference, recording_policy):
        pancake = Pancake(retry_policy=recording_policy)
        pancake._ingredients = racing_reference(
            (), [lambda current: current + (Ingredient(name="Butter"),)],
        )
        calls = []
        pancake.add_ingredient(Ingredient(name="Jam"), guard=lambda: calls.append(1))
        assert len(calls) == 2
        assert [i.name for i in pancake.ingredients] == ["Butter", "Jam"]

    def test_guard_failure_abandons_remove(self):
        jam = Ingredient(name="Jam")
        pancake = Pancake()
        pancake.add_ingredient(jam)

        def _closed():
            raise RuntimeError("closed")

        with pytest.raises(RuntimeError):
            pancake.remove_ingredient(jam.id, guard=_closed)
        assert pancake.ingredients == (jam,)
