"""
Order Microservice

Responsibilities:
- Order completion at checkout (persist, ship, download links, notify)
- Order lookup and listing
- Digital download link verification
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Path, Query, status

from core.config import get_settings
from core.event_bus import RequestEventBus
from core.logger import setup_service_logger
from microservices.shipping_service.factory import create_carrier_gateway, create_shipment_ledger
from microservices.shipping_service.shipping_service import ShippingService

from .events.handlers import register_event_handlers
from .factory import create_link_signer, create_notification_client, create_order_repository
from .models import (
    CompleteOrderRequest,
    DownloadVerification,
    Order,
    OrderCompletionResult,
    OrderFilter,
    OrderListResponse,
    OrderStatus,
)
from .order_service import OrderFulfillmentService

# Initialize configuration
config = get_settings()

# Setup loggers (use actual service name)
logger = setup_service_logger("order_service", config=config.logging)


class OrderMicroservice:
    """Order microservice core class"""

    def __init__(self):
        self.repository = None
        self.ledger = None
        self.gateway = None
        self.notification_client = None
        self.link_signer = None

    async def initialize(self):
        """Initialize the microservice"""
        try:
            self.repository = create_order_repository(config)
            self.ledger = create_shipment_ledger(config)
            self.gateway = create_carrier_gateway(config)
            self.notification_client = create_notification_client(config)
            self.link_signer = create_link_signer(config)
            logger.info("Order microservice initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize order microservice: {e}")
            raise

    def service_for_request(self, event_bus: RequestEventBus) -> OrderFulfillmentService:
        """Order and shipping services sharing one request-scoped bus"""
        shipping = ShippingService(ledger=self.ledger, gateway=self.gateway, event_bus=event_bus)
        return OrderFulfillmentService(
            repository=self.repository,
            shipping=shipping,
            notification_client=self.notification_client,
            link_signer=self.link_signer,
            event_bus=event_bus,
        )

    async def shutdown(self):
        """Shutdown the microservice"""
        try:
            if self.gateway:
                await self.gateway.close()
            if self.notification_client:
                await self.notification_client.close()
            if self.repository:
                await self.repository.db.close()
            if self.ledger:
                await self.ledger.repository.db.close()
            logger.info("Order microservice shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")


# Global microservice instance
order_microservice = OrderMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    await order_microservice.initialize()
    yield
    await order_microservice.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Order Service",
    description="Storefront order completion and download link microservice",
    version="1.0.0",
    lifespan=lifespan,
)


# Dependency injection
def get_event_bus() -> RequestEventBus:
    """Fresh event bus for each request"""
    return RequestEventBus()


def get_order_service(event_bus: RequestEventBus = Depends(get_event_bus)) -> OrderFulfillmentService:
    """Get order service instance bound to this request's event bus"""
    if not order_microservice.repository:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Order service not initialized",
        )
    return order_microservice.service_for_request(event_bus)


# Health check endpoints
@app.get("/health")
async def health_check():
    """Service health check"""
    return {
        "status": "healthy",
        "service": "order_service",
        "port": config.order_service_port,
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Order endpoints

@app.post("/api/v1/orders/complete", response_model=OrderCompletionResult)
async def complete_order(
    request: CompleteOrderRequest,
    event_bus: RequestEventBus = Depends(get_event_bus),
    order_service: OrderFulfillmentService = Depends(get_order_service),
):
    """Complete an order: persist, ship physical items, issue download links, notify"""
    collected: List[str] = []
    register_event_handlers(event_bus, collected)
    try:
        result = await order_service.complete_order(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    finally:
        await event_bus.close()
    result.events = collected
    return result


@app.get("/api/v1/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: str = Path(..., description="Order ID"),
    order_service: OrderFulfillmentService = Depends(get_order_service),
):
    """Get order details"""
    try:
        order = await order_service.get_order(order_id)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@app.get("/api/v1/orders", response_model=OrderListResponse)
async def list_orders(
    customer_id: Optional[str] = Query(None),
    customer_email: Optional[str] = Query(None),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    order_service: OrderFulfillmentService = Depends(get_order_service),
):
    """List orders with filtering"""
    try:
        filter_params = OrderFilter(
            customer_id=customer_id,
            customer_email=customer_email,
            status=status_filter,
            limit=limit,
            offset=offset,
        )
        return await order_service.list_orders(filter_params)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/downloads/verify", response_model=DownloadVerification)
async def verify_download(
    token: str = Query(..., description="Download token"),
    product_id: Optional[str] = Query(None),
    order_service: OrderFulfillmentService = Depends(get_order_service),
):
    """Check a download link token"""
    return order_service.verify_download_token(token, product_id)


if __name__ == "__main__":
    uvicorn.run(
        "microservices.order_service.main:app",
        host="0.0.0.0",
        port=config.order_service_port,
        reload=False,
        log_level=config.logging.log_level.lower(),
    )
