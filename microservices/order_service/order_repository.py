"""
Order Repository

Data access layer for orders and order items using PostgresClientWrapper.
Matches schema: storefront.orders, storefront.order_items, storefront.products
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.config import InfraConfig
from core.postgres_client import PostgresClientWrapper

from .models import DownloadLink, Order, OrderFilter, OrderItem, ShippingAddress

logger = logging.getLogger(__name__)

JSON_COLUMNS = {"shipping_address", "download_links"}


def _json_param(column: str, value: Any) -> Any:
    if column == "shipping_address":
        return json.dumps(value.model_dump(mode="json")) if isinstance(value, ShippingAddress) else (
            json.dumps(value) if value is not None else None
        )
    if column == "download_links":
        return json.dumps([
            link.model_dump(mode="json") if isinstance(link, DownloadLink) else link
            for link in (value or [])
        ])
    if hasattr(value, "value"):
        return value.value
    return value


class OrderRepository:
    """
    Repository for order data operations

    Handles all database operations for orders using PostgresClientWrapper.
    """

    def __init__(
        self,
        db: Optional[PostgresClientWrapper] = None,
        config: Optional[InfraConfig] = None,
    ):
        """Initialize Order Repository with PostgresClientWrapper"""
        self.db = db or PostgresClientWrapper("order_service", config=config)
        self.schema = self.db.schema
        self.orders_table = "orders"
        self.items_table = "order_items"
        self.products_table = "products"

        logger.info("OrderRepository initialized with PostgresClient")

    async def create_order(self, order: Order) -> Order:
        """Persist an order and its items atomically"""
        try:
            async with self.db.transaction() as tx:
                await tx.execute(
                    f"""
                    INSERT INTO {self.schema}.{self.orders_table} (
                        order_id, customer_id, customer_name, customer_email, customer_phone,
                        shipping_address, total_amount, currency, payment_method, payment_id,
                        status, notes, download_links, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7, $8, $9, $10, $11, $12, $13::jsonb, $14, $15)
                    """,
                    [
                        order.order_id,
                        order.customer_id,
                        order.customer_name,
                        order.customer_email,
                        order.customer_phone,
                        _json_param("shipping_address", order.shipping_address),
                        order.total_amount,
                        order.currency,
                        order.payment_method.value,
                        order.payment_id,
                        order.status.value,
                        order.notes,
                        _json_param("download_links", order.download_links),
                        order.created_at,
                        order.updated_at,
                    ],
                )
                for item in order.items:
                    await tx.execute(
                        f"""
                        INSERT INTO {self.schema}.{self.items_table} (
                            item_id, order_id, product_id, product_title, quantity,
                            unit_price, total_price, product_type, size, color, returned
                        ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                        """,
                        [
                            item.item_id,
                            order.order_id,
                            item.product_id,
                            item.product_title,
                            item.quantity,
                            item.unit_price,
                            item.total_price,
                            item.product_type.value,
                            item.size,
                            item.color,
                            item.returned,
                        ],
                    )

            logger.info(f"Order {order.order_id} stored with {len(order.items)} items")
            return order

        except Exception as e:
            logger.error(f"Failed to create order: {e}")
            raise

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order with items"""
        row = await self.db.query_row(
            f"SELECT * FROM {self.schema}.{self.orders_table} WHERE order_id = $1", [order_id]
        )
        if not row:
            return None
        items = await self.db.query(
            f"SELECT * FROM {self.schema}.{self.items_table} WHERE order_id = $1 ORDER BY item_id",
            [order_id],
        )
        return self._dict_to_order(row, items)

    async def list_orders(self, filter_params: OrderFilter) -> List[Order]:
        """List orders with filtering"""
        conditions = []
        params: List[Any] = []

        if filter_params.customer_id:
            params.append(filter_params.customer_id)
            conditions.append(f"customer_id = ${len(params)}")
        if filter_params.customer_email:
            params.append(filter_params.customer_email)
            conditions.append(f"customer_email = ${len(params)}")
        if filter_params.status:
            params.append(filter_params.status.value)
            conditions.append(f"status = ${len(params)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([filter_params.limit, filter_params.offset])
        rows = await self.db.query(
            f"SELECT * FROM {self.schema}.{self.orders_table} {where} "
            f"ORDER BY created_at DESC LIMIT ${len(params) - 1} OFFSET ${len(params)}",
            params,
        )
        if not rows:
            return []

        order_ids = [row["order_id"] for row in rows]
        item_rows = await self.db.query(
            f"SELECT * FROM {self.schema}.{self.items_table} WHERE order_id = ANY($1::text[]) ORDER BY item_id",
            [order_ids],
        )
        items_by_order: Dict[str, List[Dict[str, Any]]] = {}
        for item in item_rows:
            items_by_order.setdefault(item["order_id"], []).append(item)
        return [self._dict_to_order(row, items_by_order.get(row["order_id"], [])) for row in rows]

    async def update_order_fields(self, order_id: str, fields: Dict[str, Any]) -> Optional[Order]:
        """Update only the given columns"""
        if not fields:
            return await self.get_order(order_id)

        assignments = []
        params: List[Any] = []
        for col, value in fields.items():
            params.append(_json_param(col, value))
            cast = "::jsonb" if col in JSON_COLUMNS else ""
            assignments.append(f"{col} = ${len(params)}{cast}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")
        params.append(order_id)

        result = await self.db.execute(
            f"UPDATE {self.schema}.{self.orders_table} SET {', '.join(assignments)} "
            f"WHERE order_id = ${len(params)}",
            params,
        )
        if result.endswith(" 0"):
            return None
        return await self.get_order(order_id)

    async def mark_item_returned(self, order_id: str, item_id: str) -> bool:
        """Set the returned marker on an order item"""
        result = await self.db.execute(
            f"UPDATE {self.schema}.{self.items_table} SET returned = TRUE WHERE order_id = $1 AND item_id = $2",
            [order_id, item_id],
        )
        return not result.endswith(" 0")

    async def increment_download_count(self, product_id: str, quantity: int = 1) -> None:
        """Bump a product's download counter"""
        await self.db.execute(
            f"UPDATE {self.schema}.{self.products_table} "
            f"SET download_count = COALESCE(download_count, 0) + $1 WHERE product_id = $2",
            [quantity, product_id],
        )

    def _dict_to_order(self, row: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        data = dict(row)
        for col in JSON_COLUMNS:
            if isinstance(data.get(col), str):
                data[col] = json.loads(data[col])
        data["download_links"] = data.get("download_links") or []
        data["items"] = [OrderItem(**item) for item in items]
        return Order(**data)
