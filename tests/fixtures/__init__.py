"""
Shared Test Fixtures

Centralized factories used across all test layers.

Structure:
    - common.py: Base ID generators, timestamps
    - storefront_fixtures.py: Orders, warehouses, shipments, returns
"""

# Common utilities
from .common import (
    make_order_id,
    make_item_id,
    make_return_id,
    make_email,
    make_timestamp,
)

# Storefront fixtures
from .storefront_fixtures import (
    make_shipping_address,
    make_item_request,
    make_complete_order_request,
    make_order_item,
    make_order,
    make_warehouse,
    make_return_request,
)

__all__ = [
    "make_order_id",
    "make_item_id",
    "make_return_id",
    "make_email",
    "make_timestamp",
    "make_shipping_address",
    "make_item_request",
    "make_complete_order_request",
    "make_order_item",
    "make_order",
    "make_warehouse",
    "make_return_request",
]
