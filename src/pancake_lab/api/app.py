"""HTTP adapter: FastAPI application over the order and pancake services.

Translates requests into service calls and typed errors into status codes:
404 not found, 400 validation / invalid transition / invalid state,
409 concurrency exhausted, 500 anything else.

Usage::

    from pancake_lab.api.app import create_app

    app = create_app(settings=load_settings("configs/local.toml"))
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pancake_lab.api.schemas import (
    CreateOrderRequest,
    IngredientCreatedResponse,
    IngredientRequest,
    OrderResponse,
    PancakeCreatedResponse,
    PancakeResponse,
    StateChangeResponse,
)
from pancake_lab.core.config import Settings
from pancake_lab.core.enums import OrderState
from pancake_lab.core.errors import OrderNotFound, PancakeLabError, ValidationError
from pancake_lab.observability.logger import bind_trace_id, get_logger
from pancake_lab.service.factory import Services, build_services

logger = get_logger(__name__)

TRACE_HEADER = "X-Trace-Id"


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message},
    )


def _parse_state(raw: str) -> OrderState:
    try:
        return OrderState[raw.upper()]
    except KeyError:
        raise ValidationError("state", f"unknown order state '{raw}'") from None


def create_app(
    services: Services | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the pancake lab FastAPI application.

    Both parameters are optional; missing services are built from
    ``settings`` (or default settings).
    """
    settings = settings or Settings()
    services = services or build_services(settings)
    orders = services.orders
    pancakes = services.pancakes

    app = FastAPI(title="Pancake Lab", redoc_url=None)
    app.state.services = services
    app.state.settings = settings

    # ------------------------------------------------------------------
    # Middleware / error translation
    # ------------------------------------------------------------------

    @app.middleware("http")
    async def trace_requests(request: Request, call_next: Any) -> Response:
        trace_id = bind_trace_id(request.headers.get(TRACE_HEADER))
        response = await call_next(request)
        response.headers[TRACE_HEADER] = trace_id
        return response

    @app.exception_handler(PancakeLabError)
    async def pancake_lab_error(request: Request, exc: PancakeLabError) -> JSONResponse:
        logger.info(
            "request_failed",
            path=request.url.path,
            error=type(exc).__name__,
            detail=str(exc),
        )
        return _error(exc.status_code, type(exc).__name__, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        return _error(400, "ValidationError", "Malformed request body or parameters")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return _error(500, "InternalError", "Internal server error")

    # ------------------------------------------------------------------
    # Health / metrics
    # ------------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "active_orders": len(orders)}

    if settings.observability.metrics_enabled:
        from prometheus_client import make_asgi_app

        app.mount("/metrics", make_asgi_app())

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    router = APIRouter(prefix="/api/orders")

    @router.post("", status_code=201, response_model=OrderResponse)
    def create_order(body: CreateOrderRequest) -> OrderResponse:
        order = orders.create_order(body.building, body.room)
        return OrderResponse.from_order(order)

    @router.get("", response_model=list[OrderResponse])
    def list_orders(state: str | None = None) -> list[OrderResponse]:
        if state is None:
            found = orders.get_all_orders()
        else:
            found = orders.get_orders_by_state(_parse_state(state))
        return [OrderResponse.from_order(o) for o in found]

    @router.get("/{order_id}", response_model=OrderResponse)
    def get_order(order_id: str) -> OrderResponse:
        order = orders.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return OrderResponse.from_order(order)

    @router.delete("/{order_id}", status_code=204)
    def delete_order(order_id: str) -> Response:
        orders.delete_order(order_id)
        return Response(status_code=204)

    @router.post("/{order_id}/complete", response_model=StateChangeResponse)
    def complete_order(order_id: str) -> StateChangeResponse:
        orders.complete_order(order_id)
        return StateChangeResponse(order_id=order_id, state=OrderState.COMPLETED)

    @router.post("/{order_id}/prepare", response_model=StateChangeResponse)
    def prepare_order(order_id: str) -> StateChangeResponse:
        orders.prepare_order(order_id)
        return StateChangeResponse(order_id=order_id, state=OrderState.PREPARED)

    @router.post("/{order_id}/deliver", response_model=StateChangeResponse)
    def start_delivery(order_id: str) -> StateChangeResponse:
        orders.start_delivery(order_id)
        return StateChangeResponse(
            order_id=order_id, state=OrderState.OUT_FOR_DELIVERY,
        )

    @router.post("/{order_id}/cancel", response_model=StateChangeResponse)
    def cancel_order(order_id: str) -> StateChangeResponse:
        orders.cancel_order(order_id)
        return StateChangeResponse(order_id=order_id, state=OrderState.CANCELLED)

    # ------------------------------------------------------------------
    # Pancakes / ingredients
    # ------------------------------------------------------------------

    @router.post(
        "/{order_id}/pancakes", status_code=201,
        response_model=PancakeCreatedResponse,
    )
    def create_pancake(order_id: str) -> PancakeCreatedResponse:
        return PancakeCreatedResponse(id=pancakes.create_pancake(order_id))

    @router.get("/{order_id}/pancakes", response_model=list[PancakeResponse])
    def list_pancakes(order_id: str) -> list[PancakeResponse]:
        return [
            PancakeResponse.from_pancake(p)
            for p in pancakes.get_pancakes_by_order(order_id)
        ]

    @router.delete("/{order_id}/pancakes/{pancake_id}", status_code=204)
    def delete_pancake(order_id: str, pancake_id: str) -> Response:
        pancakes.remove_pancake(order_id, pancake_id)
        return Response(status_code=204)

    @router.post(
        "/{order_id}/pancakes/{pancake_id}/ingredients", status_code=201,
        response_model=IngredientCreatedResponse,
    )
    def add_ingredient(
        order_id: str, pancake_id: str, body: IngredientRequest,
    ) -> IngredientCreatedResponse:
        ingredient = pancakes.add_ingredient_to_pancake(
            order_id, pancake_id, body.name,
        )
        return IngredientCreatedResponse(ingredient_id=ingredient.id)

    @router.delete(
        "/{order_id}/pancakes/{pancake_id}/ingredients/{ingredient_id}",
        status_code=204,
    )
    def remove_ingredient(
        order_id: str, pancake_id: str, ingredient_id: str,
    ) -> Response:
        pancakes.remove_ingredient_from_pancake(order_id, pancake_id, ingredient_id)
        return Response(status_code=204)

    app.include_router(router)
    return app
