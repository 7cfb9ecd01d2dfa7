"""Explicit wiring of the services.

Each call builds an independent set of services sharing one registry;
there are no process-wide instances.
"""

from __future__ import annotations

from dataclasses import dataclass

from pancake_lab.core.config import Settings
from pancake_lab.domain.atomic import RetryPolicy
from pancake_lab.service.audit import AuditLog
from pancake_lab.service.order_service import OrderService
from pancake_lab.service.pancake_service import PancakeService


@dataclass
class Services:
    orders: OrderService
    pancakes: PancakeService
    audit: AuditLog


def build_services(settings: Settings | None = None) -> Services:
    settings = settings or Settings()
    audit = AuditLog()
    orders = OrderService(
        audit=audit,
        retry_policy=RetryPolicy.from_config(settings.concurrency),
    )
    pancakes = PancakeService(
        orders,
        audit=audit,
        max_ingredient_name_length=settings.validation.max_ingredient_name_length,
    )
    return Services(orders=orders, pancakes=pancakes, audit=audit)
