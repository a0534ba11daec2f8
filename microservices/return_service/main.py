"""
Return Microservice

Responsibilities:
- Return eligibility and return requests
- Operator status workflow
- Reverse pickup scheduling, tracking and cancellation
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, HTTPException, Path, Query, status

from core.config import get_settings
from core.event_bus import RequestEventBus
from core.logger import setup_service_logger
from microservices.order_service.factory import create_notification_client, create_order_repository
from microservices.shipping_service.factory import create_carrier_gateway, create_shipment_ledger

from .factory import create_return_repository
from .models import (
    PickupSlotsResponse,
    ReturnCreateRequest,
    ReturnEligibility,
    ReturnFilter,
    ReturnListResponse,
    ReturnPickupResponse,
    ReturnRequest,
    ReturnResponse,
    ReturnStatus,
    ReturnStatusUpdateRequest,
    ReturnTrackingResponse,
    SchedulePickupRequest,
    TrackingSyncResponse,
)
from .return_service import ReturnService

# Initialize configuration
config = get_settings()

# Setup loggers (use actual service name)
logger = setup_service_logger("return_service", config=config.logging)


class ReturnMicroservice:
    """Return microservice core class"""

    def __init__(self):
        self.repository = None
        self.order_repository = None
        self.ledger = None
        self.gateway = None
        self.notification_client = None

    async def initialize(self):
        """Initialize the microservice"""
        try:
            self.repository = create_return_repository(config)
            self.order_repository = create_order_repository(config)
            self.ledger = create_shipment_ledger(config)
            self.gateway = create_carrier_gateway(config)
            self.notification_client = create_notification_client(config)
            logger.info("Return microservice initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize return microservice: {e}")
            raise

    def service_for_request(self) -> ReturnService:
        """Service bound to a fresh request-scoped event bus"""
        return ReturnService(
            repository=self.repository,
            orders=self.order_repository,
            warehouses=self.ledger,
            gateway=self.gateway,
            notification_client=self.notification_client,
            event_bus=RequestEventBus(),
            return_window_days=config.return_window_days,
            returns_email=config.returns_notification_email,
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
            if self.order_repository:
                await self.order_repository.db.close()
            if self.ledger:
                await self.ledger.repository.db.close()
            logger.info("Return microservice shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")


# Global microservice instance
return_microservice = ReturnMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    await return_microservice.initialize()
    yield
    await return_microservice.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Return Service",
    description="Return requests and reverse pickup microservice",
    version="1.0.0",
    lifespan=lifespan,
)


# Dependency injection
def get_return_service() -> ReturnService:
    """Get a return service for this request"""
    if not return_microservice.repository:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Return service not initialized",
        )
    return return_microservice.service_for_request()


# Health check endpoints
@app.get("/health")
async def health_check():
    """Service health check"""
    return {
        "status": "healthy",
        "service": "return_service",
        "port": config.return_service_port,
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Fixed paths are declared before /api/v1/returns/{return_id}

@app.get("/api/v1/returns/eligibility", response_model=ReturnEligibility)
async def check_eligibility(
    order_id: str = Query(..., description="Order ID"),
    item_id: str = Query(..., description="Order item ID"),
    return_service: ReturnService = Depends(get_return_service),
):
    """Check whether an order item can be returned"""
    try:
        return await return_service.is_eligible_for_return(order_id, item_id)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/returns/pickup-slots", response_model=PickupSlotsResponse)
async def get_pickup_slots(
    pincode: str = Query(..., description="Pickup pincode"),
    date: str = Query(..., description="Pickup date (YYYY-MM-DD)"),
    return_service: ReturnService = Depends(get_return_service),
):
    """Pickup windows for a pincode and date"""
    return return_service.get_pickup_time_slots(pincode, date)


@app.get("/api/v1/returns/customer/{requested_by}", response_model=ReturnListResponse)
async def get_customer_returns(
    requested_by: str = Path(..., description="Customer email or user ID"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    return_service: ReturnService = Depends(get_return_service),
):
    """Returns opened by a customer"""
    try:
        return await return_service.get_customer_returns(requested_by, limit=limit, offset=offset)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/returns/tracking/{tracking_number}/sync", response_model=TrackingSyncResponse)
async def sync_return_from_tracking(
    tracking_number: str = Path(..., description="Reverse pickup tracking number"),
    return_service: ReturnService = Depends(get_return_service),
):
    """Apply carrier tracking to the matching return"""
    try:
        return await return_service.update_return_status_from_tracking(tracking_number)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


# Return endpoints

@app.post("/api/v1/returns", response_model=ReturnResponse)
async def create_return(
    request: ReturnCreateRequest,
    return_service: ReturnService = Depends(get_return_service),
):
    """Open a return request"""
    try:
        return await return_service.create_return_request(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/returns", response_model=ReturnListResponse)
async def list_returns(
    status_filter: Optional[ReturnStatus] = Query(None, alias="status"),
    order_id: Optional[str] = Query(None),
    requested_by: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    return_service: ReturnService = Depends(get_return_service),
):
    """List returns with filtering"""
    try:
        filter_params = ReturnFilter(
            status=status_filter,
            order_id=order_id,
            requested_by=requested_by,
            limit=limit,
            offset=offset,
        )
        return await return_service.get_all_returns(filter_params)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/returns/{return_id}", response_model=ReturnRequest)
async def get_return(
    return_id: str = Path(..., description="Return ID"),
    return_service: ReturnService = Depends(get_return_service),
):
    """Get return request details"""
    try:
        return_request = await return_service.get_return(return_id)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not return_request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Return request not found")
    return return_request


@app.put("/api/v1/returns/{return_id}/status", response_model=ReturnResponse)
async def update_return_status(
    update: ReturnStatusUpdateRequest,
    return_id: str = Path(..., description="Return ID"),
    return_service: ReturnService = Depends(get_return_service),
):
    """Operator status change"""
    try:
        return await return_service.update_return_status(return_id, update)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/returns/{return_id}/pickup", response_model=ReturnPickupResponse)
async def schedule_pickup(
    request: SchedulePickupRequest,
    return_id: str = Path(..., description="Return ID"),
    return_service: ReturnService = Depends(get_return_service),
):
    """Schedule a carrier reverse pickup for an approved return"""
    try:
        return await return_service.schedule_return_pickup(return_id, request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/returns/{return_id}/tracking", response_model=ReturnTrackingResponse)
async def track_pickup(
    return_id: str = Path(..., description="Return ID"),
    return_service: ReturnService = Depends(get_return_service),
):
    """Carrier tracking for a return's reverse pickup"""
    try:
        return await return_service.track_return_pickup(return_id)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/returns/{return_id}/cancel", response_model=ReturnPickupResponse)
async def cancel_return(
    return_id: str = Path(..., description="Return ID"),
    reason: Optional[str] = Body(None, embed=True),
    return_service: ReturnService = Depends(get_return_service),
):
    """Cancel a return, cancelling its reverse pickup first"""
    try:
        return await return_service.cancel_return(return_id, reason)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


if __name__ == "__main__":
    uvicorn.run(
        "microservices.return_service.main:app",
        host="0.0.0.0",
        port=config.return_service_port,
        reload=False,
        log_level=config.logging.log_level.lower(),
    )
