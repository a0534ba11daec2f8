"""
Order Service Business Logic

Order completion for the storefront: persist the order, ship physical
items, issue download links for digital items and notify the customer.
Only the order write is fatal; every later step degrades to a warning.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from microservices.shipping_service.models import (
    PaymentMode,
    Shipment,
    ShipmentCreateRequest,
    WaybillSource,
)

from .download_links import DownloadLinkSigner
from .events.publishers import (
    publish_download_links_issued,
    publish_notification_failed,
    publish_order_completed,
)
from .models import (
    CompleteOrderRequest,
    DownloadLink,
    DownloadVerification,
    Order,
    OrderCompletionResult,
    OrderFilter,
    OrderItem,
    OrderItemRequest,
    OrderListResponse,
    OrderStatus,
    PaymentMethod,
    ProductType,
)
from .protocols import (
    EventBusProtocol,
    NotificationClientProtocol,
    OrderRepositoryProtocol,
    OrderServiceError,
    OrderValidationError,
    ShipmentCreatorProtocol,
)

logger = logging.getLogger(__name__)

# Packed weight per unit, kg
PARCEL_WEIGHT_KG = {
    ProductType.POSTER: 0.4,
    ProductType.CLOTHING: 0.3,
}
MIN_PARCEL_WEIGHT_KG = 0.5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_order_status(payment_method: PaymentMethod, items: List[OrderItemRequest]) -> OrderStatus:
    """COD waits for payment; physical items wait for delivery; digital-only is done"""
    if payment_method == PaymentMethod.COD:
        return OrderStatus.PENDING
    if any(item.product_type != ProductType.DIGITAL for item in items):
        return OrderStatus.PROCESSING
    return OrderStatus.COMPLETED


def parcel_weight(items: List[OrderItem]) -> float:
    weight = sum(PARCEL_WEIGHT_KG.get(item.product_type, 0.0) * item.quantity for item in items)
    return round(max(weight, MIN_PARCEL_WEIGHT_KG), 3)


class OrderFulfillmentService:
    """
    Order completion business logic

    Args:
        repository: Order store
        shipping: Creates and records forward shipments
        notification_client: Customer notifications
        link_signer: Issues digital download links
        event_bus: Request-scoped event bus (optional)
    """

    def __init__(
        self,
        repository: OrderRepositoryProtocol,
        shipping: ShipmentCreatorProtocol,
        notification_client: NotificationClientProtocol,
        link_signer: DownloadLinkSigner,
        event_bus: Optional[EventBusProtocol] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.repository = repository
        self.shipping = shipping
        self.notification_client = notification_client
        self.link_signer = link_signer
        self.event_bus = event_bus
        self.clock = clock

    # Order Completion

    async def complete_order(self, request: CompleteOrderRequest) -> OrderCompletionResult:
        """
        Complete an order at checkout.

        Steps, in order: persist order and items; create a shipment for
        posters and clothing; issue download links for digital items; send
        the confirmation; bump download counters. A failure after the order
        is stored is reported in `warnings` and does not fail the call.
        """
        try:
            order = self._build_order(request)
        except OrderValidationError as e:
            return OrderCompletionResult(success=False, error=str(e), error_code="VALIDATION_ERROR")

        try:
            await self.repository.create_order(order)
        except Exception as e:
            logger.error(f"Failed to create order for {request.customer_email}: {e}")
            return OrderCompletionResult(
                success=False,
                error=f"Failed to create order: {e}",
                error_code="ORDER_CREATE_ERROR",
            )

        logger.info(f"Order {order.order_id} created with status {order.status.value}")
        warnings: List[str] = []

        shipment: Optional[Shipment] = None
        physical_items = [item for item in order.items if item.is_physical]
        if physical_items:
            shipment, shipment_warnings = await self._ship(order, physical_items)
            warnings.extend(shipment_warnings)

        download_links = await self._issue_download_links(order, warnings)

        notified = await self._send_confirmation(order, download_links, shipment, warnings)

        for item in order.items:
            if item.product_type != ProductType.DIGITAL:
                continue
            try:
                await self.repository.increment_download_count(item.product_id, item.quantity)
            except Exception as e:
                logger.warning(f"Failed to update download count for product {item.product_id}: {e}")

        await publish_order_completed(
            self.event_bus,
            order_id=order.order_id,
            customer_email=order.customer_email,
            order_status=order.status.value,
            payment_method=order.payment_method.value,
            total_amount=float(order.total_amount),
            currency=order.currency,
            digital_items=len(order.items) - len(physical_items),
            physical_items=len(physical_items),
            waybill=shipment.waybill if shipment else None,
        )

        return OrderCompletionResult(
            success=True,
            order_id=order.order_id,
            order_status=order.status,
            download_links=download_links,
            notified=notified,
            shipment=shipment,
            warnings=warnings,
        )

    def _build_order(self, request: CompleteOrderRequest) -> Order:
        physical = [i for i in request.items if i.product_type != ProductType.DIGITAL]
        if physical and request.shipping_address is None:
            raise OrderValidationError("shipping_address is required when the order contains posters or clothing")

        now = self.clock()
        order_id = f"order_{uuid.uuid4().hex[:12]}"
        items = [
            OrderItem(
                item_id=f"item_{uuid.uuid4().hex[:12]}",
                order_id=order_id,
                product_id=item.product_id,
                product_title=item.product_title,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.unit_price * item.quantity,
                product_type=item.product_type,
                size=item.size,
                color=item.color,
            )
            for item in request.items
        ]
        return Order(
            order_id=order_id,
            customer_id=request.customer_id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            shipping_address=request.shipping_address,
            items=items,
            total_amount=request.total_amount,
            currency=request.currency,
            payment_method=request.payment_method,
            payment_id=request.payment_id,
            status=compute_order_status(request.payment_method, request.items),
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )

    async def _ship(self, order: Order, items: List[OrderItem]) -> Tuple[Optional[Shipment], List[str]]:
        """Create the forward shipment; shielded so a cancelled request still records it"""
        address = order.shipping_address
        is_cod = order.payment_method == PaymentMethod.COD
        request = ShipmentCreateRequest(
            order_id=order.order_id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_email=order.customer_email,
            delivery_address=address.address,
            delivery_city=address.city or None,
            delivery_state=address.state or None,
            delivery_pincode=address.pincode,
            delivery_country=address.country,
            products_desc=", ".join(f"{item.product_title} x{item.quantity}" for item in items),
            payment_mode=PaymentMode.COD if is_cod else PaymentMode.PREPAID,
            cod_amount=order.total_amount if is_cod else Decimal("0"),
            total_amount=order.total_amount,
            quantity=sum(item.quantity for item in items),
            weight=parcel_weight(items),
        )

        try:
            response = await asyncio.shield(self.shipping.create_shipment(request))
        except asyncio.CancelledError:
            logger.warning(f"Request for order {order.order_id} cancelled; shipment creation continues")
            raise
        except Exception as e:
            logger.error(f"Shipment creation failed for order {order.order_id}: {e}")
            return None, [f"Shipment not created: {e}"]

        if not response.success or response.shipment is None:
            logger.error(f"Shipment not recorded for order {order.order_id}: {response.message}")
            return None, [f"Shipment not recorded: {response.message}"]

        shipment = response.shipment
        if shipment.waybill_source == WaybillSource.LOCAL:
            return shipment, [
                f"Carrier did not confirm shipment; recorded under {shipment.waybill} ({shipment.carrier_error})"
            ]
        return shipment, []

    async def _issue_download_links(self, order: Order, warnings: List[str]) -> List[DownloadLink]:
        links = [
            self.link_signer.issue(order.order_id, item)
            for item in order.items
            if item.product_type == ProductType.DIGITAL
        ]
        if not links:
            return links

        try:
            await self.repository.update_order_fields(order.order_id, {"download_links": links})
        except Exception as e:
            logger.warning(f"Failed to store download links on order {order.order_id}: {e}")
            warnings.append(f"Download links not saved on order: {e}")

        await publish_download_links_issued(
            self.event_bus,
            order_id=order.order_id,
            item_ids=[link.item_id for link in links],
            expires_at=links[0].expires_at,
        )
        return links

    async def _send_confirmation(
        self,
        order: Order,
        download_links: List[DownloadLink],
        shipment: Optional[Shipment],
        warnings: List[str],
    ) -> bool:
        template_data = {
            "order_id": order.order_id,
            "customer_name": order.customer_name,
            "order_date": order.created_at.isoformat(),
            "total_amount": str(order.total_amount),
            "currency": order.currency,
            "payment_method": order.payment_method.value,
            "order_status": order.status.value,
            "items": [
                {
                    "title": item.product_title,
                    "quantity": item.quantity,
                    "price": str(item.total_price),
                    "product_type": item.product_type.value,
                }
                for item in order.items
            ],
            "download_links": [link.url for link in download_links],
            "waybill": shipment.waybill if shipment else None,
        }

        try:
            result = await self.notification_client.notify("order_confirmation", order.customer_email, template_data)
            error = None if result.success else result.error
        except Exception as e:
            error = str(e)

        if error is None:
            return True

        logger.warning(f"Order confirmation for {order.order_id} not sent: {error}")
        warnings.append(f"Order confirmation not sent: {error}")
        await publish_notification_failed(
            self.event_bus,
            kind="order_confirmation",
            recipient=order.customer_email,
            reference_id=order.order_id,
            error=error,
        )
        return False

    # Queries

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by ID"""
        try:
            return await self.repository.get_order(order_id)
        except Exception as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            raise OrderServiceError(f"Failed to get order: {str(e)}")

    async def list_orders(self, filter_params: OrderFilter) -> OrderListResponse:
        """List orders with filtering"""
        try:
            orders = await self.repository.list_orders(filter_params)
        except Exception as e:
            logger.error(f"Failed to list orders: {e}")
            raise OrderServiceError(f"Failed to list orders: {str(e)}")
        return OrderListResponse(
            orders=orders,
            count=len(orders),
            limit=filter_params.limit,
            offset=filter_params.offset,
        )

    def verify_download_token(self, token: str, product_id: Optional[str] = None) -> DownloadVerification:
        """Validate a download link token"""
        return self.link_signer.verify(token, product_id)
