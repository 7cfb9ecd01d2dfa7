"""Request/response schemas for the HTTP adapter."""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictInt

from pancake_lab.core.enums import OrderState
from pancake_lab.domain.order import Order
from pancake_lab.domain.pancake import Ingredient, Pancake, describe


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class CreateOrderRequest(BaseModel):
    building: StrictInt
    room: StrictInt


class IngredientRequest(BaseModel):
    name: str


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class IngredientResponse(BaseModel):
    id: str
    name: str

    @classmethod
    def from_ingredient(cls, ingredient: Ingredient) -> IngredientResponse:
        return cls(id=ingredient.id, name=ingredient.name)


class PancakeResponse(BaseModel):
    id: str
    description: str
    ingredients: list[IngredientResponse] = Field(default_factory=list)

    @classmethod
    def from_pancake(cls, pancake: Pancake) -> PancakeResponse:
        # One snapshot so description and list agree.
        ingredients = pancake.ingredients
        return cls(
            id=pancake.id,
            description=describe(ingredients),
            ingredients=[IngredientResponse.from_ingredient(i) for i in ingredients],
        )


class OrderResponse(BaseModel):
    order_id: str = Field(serialization_alias="orderId")
    building: int
    room: int
    state: OrderState
    pancakes: list[PancakeResponse] = Field(default_factory=list)

    @classmethod
    def from_order(cls, order: Order) -> OrderResponse:
        return cls(
            order_id=order.id,
            building=order.building,
            room=order.room,
            state=order.state,
            pancakes=[PancakeResponse.from_pancake(p) for p in order.pancakes],
        )


class PancakeCreatedResponse(BaseModel):
    id: str


class IngredientCreatedResponse(BaseModel):
    ingredient_id: str = Field(serialization_alias="ingredientId")


class StateChangeResponse(BaseModel):
    order_id: str = Field(serialization_alias="orderId")
    state: OrderState
