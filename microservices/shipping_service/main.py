"""
Shipping Microservice

Responsibilities:
- Shipment ledger (shipments, warehouses, pickups)
- Carrier integration (manifest, tracking, cancellation)
- Serviceability, rate and waybill lookups
- Warehouse name diagnostics for carrier auth failures
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, HTTPException, Path, Query, Response, status

from core.config import get_settings
from core.event_bus import RequestEventBus
from core.logger import setup_service_logger

from .carrier.models import ExpectedTatRequest, RateQuoteRequest
from .factory import create_carrier_gateway, create_shipment_ledger
from .models import (
    CarrierLookupResponse,
    PickupResponse,
    PickupScheduleRequest,
    ShipmentCreateRequest,
    ShipmentFilter,
    ShipmentListResponse,
    ShipmentResponse,
    ShipmentStats,
    ShipmentStatus,
    ShipmentStatusUpdateRequest,
    WarehouseCreateRequest,
    WarehouseListResponse,
    WarehouseNameCheckRequest,
    WarehouseResponse,
    WarehouseUpdateRequest,
    WaybillSource,
)
from .shipping_service import ShippingService

# Initialize configuration
config = get_settings()

# Setup loggers (use actual service name)
logger = setup_service_logger("shipping_service", config=config.logging)


class ShippingMicroservice:
    """Shipping microservice core class"""

    def __init__(self):
        self.ledger = None
        self.gateway = None

    async def initialize(self):
        """Initialize the microservice"""
        try:
            self.ledger = create_shipment_ledger(config)
            self.gateway = create_carrier_gateway(config)
            logger.info("Shipping microservice initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize shipping microservice: {e}")
            raise

    def service_for_request(self) -> ShippingService:
        """Service bound to a fresh request-scoped event bus"""
        return ShippingService(ledger=self.ledger, gateway=self.gateway, event_bus=RequestEventBus())

    async def shutdown(self):
        """Shutdown the microservice"""
        try:
            if self.gateway:
                await self.gateway.close()
            if self.ledger:
                await self.ledger.repository.db.close()
            logger.info("Shipping microservice shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")


# Global microservice instance
shipping_microservice = ShippingMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    await shipping_microservice.initialize()
    yield
    await shipping_microservice.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Shipping Service",
    description="Shipment ledger and carrier integration microservice",
    version="1.0.0",
    lifespan=lifespan,
)


# Dependency injection
def get_shipping_service() -> ShippingService:
    """Get a shipping service for this request"""
    if not shipping_microservice.ledger:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shipping service not initialized",
        )
    return shipping_microservice.service_for_request()


# Health check endpoints
@app.get("/health")
async def health_check():
    """Service health check"""
    return {
        "status": "healthy",
        "service": "shipping_service",
        "port": config.shipping_service_port,
        "version": "1.0.0",
        "carrier_configured": config.carrier.is_configured,
        "carrier_api_version": config.carrier.api_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Shipment endpoints

@app.post("/api/v1/shipments", response_model=ShipmentResponse)
async def create_shipment(
    request: ShipmentCreateRequest,
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Create a shipment (always recorded, carrier or local waybill)"""
    try:
        return await shipping_service.create_shipment(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/shipments", response_model=ShipmentListResponse)
async def list_shipments(
    status_filter: Optional[ShipmentStatus] = Query(None, alias="status"),
    order_id: Optional[str] = Query(None),
    warehouse_id: Optional[str] = Query(None),
    waybill_source: Optional[WaybillSource] = Query(None),
    search: Optional[str] = Query(None),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """List shipments with filtering"""
    try:
        filter_params = ShipmentFilter(
            status=status_filter,
            order_id=order_id,
            warehouse_id=warehouse_id,
            waybill_source=waybill_source,
            search=search,
            created_from=created_from,
            created_to=created_to,
            limit=limit,
            offset=offset,
        )
        return await shipping_service.list_shipments(filter_params)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/shipments/stats", response_model=ShipmentStats)
async def get_shipment_stats(shipping_service: ShippingService = Depends(get_shipping_service)):
    """Ledger counts by status and waybill source"""
    try:
        return await shipping_service.get_stats()
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/shipments/{waybill}")
async def get_shipment(
    waybill: str = Path(..., description="Waybill"),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Get shipment details"""
    try:
        shipment = await shipping_service.get_shipment(waybill)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not shipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shipment not found")
    return shipment


@app.put("/api/v1/shipments/{waybill}/status", response_model=ShipmentResponse)
async def update_shipment_status(
    waybill: str = Path(..., description="Waybill"),
    request: ShipmentStatusUpdateRequest = Body(...),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Manual status change"""
    try:
        return await shipping_service.update_shipment_status(waybill, request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/shipments/{waybill}/track", response_model=ShipmentResponse)
async def track_shipment(
    waybill: str = Path(..., description="Waybill"),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Refresh shipment from carrier tracking"""
    try:
        return await shipping_service.track_shipment(waybill)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/shipments/{waybill}/cancel", response_model=ShipmentResponse)
async def cancel_shipment(
    waybill: str = Path(..., description="Waybill"),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Cancel a shipment"""
    try:
        return await shipping_service.cancel_shipment(waybill)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


# Warehouse endpoints

@app.post("/api/v1/warehouses", response_model=WarehouseResponse)
async def create_warehouse(
    request: WarehouseCreateRequest,
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Create a warehouse (optionally registering it with the carrier)"""
    try:
        return await shipping_service.create_warehouse(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get("/api/v1/warehouses", response_model=WarehouseListResponse)
async def list_warehouses(
    active_only: bool = Query(False),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """List warehouses"""
    try:
        return await shipping_service.list_warehouses(active_only=active_only)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.put("/api/v1/warehouses/{warehouse_id}", response_model=WarehouseResponse)
async def update_warehouse(
    warehouse_id: str = Path(..., description="Warehouse ID"),
    request: WarehouseUpdateRequest = Body(...),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Update a warehouse"""
    try:
        return await shipping_service.update_warehouse(warehouse_id, request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.delete("/api/v1/warehouses/{warehouse_id}", response_model=WarehouseResponse)
async def delete_warehouse(
    response: Response,
    warehouse_id: str = Path(..., description="Warehouse ID"),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Delete a warehouse no shipment references"""
    try:
        result = await shipping_service.delete_warehouse(warehouse_id)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if result.error_code == "RECORD_NOT_FOUND":
        response.status_code = status.HTTP_404_NOT_FOUND
    elif result.error_code == "WAREHOUSE_IN_USE":
        response.status_code = status.HTTP_409_CONFLICT
    return result


# Pickup endpoints

@app.post("/api/v1/pickups", response_model=PickupResponse)
async def request_pickup(
    request: PickupScheduleRequest,
    response: Response,
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Request a carrier pickup at a warehouse"""
    try:
        result = await shipping_service.request_pickup(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    # Carrier failures keep their status (401 with diagnostics, 503 when unreachable)
    response.status_code = result.status
    return result


# Carrier lookups

@app.get("/api/v1/serviceability/{pincode}", response_model=CarrierLookupResponse)
async def check_serviceability(
    pincode: str = Path(..., description="6-digit pincode"),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Check carrier serviceability for a pincode"""
    try:
        return await shipping_service.check_serviceability(pincode)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/serviceability/bulk", response_model=CarrierLookupResponse)
async def check_bulk_serviceability(
    pincodes: List[str] = Body(..., embed=True),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Check carrier serviceability for several pincodes"""
    try:
        return await shipping_service.check_bulk_serviceability(pincodes)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/expected-tat", response_model=CarrierLookupResponse)
async def get_expected_tat(
    request: ExpectedTatRequest,
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Expected transit time between two pincodes"""
    try:
        return await shipping_service.get_expected_tat(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/rates", response_model=CarrierLookupResponse)
async def get_rate_quote(
    request: RateQuoteRequest,
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Get a shipping rate quote"""
    try:
        return await shipping_service.get_rate_quote(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/waybills", response_model=CarrierLookupResponse)
async def generate_waybills(
    count: int = Body(5, embed=True),
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Reserve waybill numbers"""
    try:
        return await shipping_service.generate_waybills(count)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.post("/api/v1/diagnostics/warehouse-name")
async def diagnose_warehouse_name(
    request: WarehouseNameCheckRequest,
    shipping_service: ShippingService = Depends(get_shipping_service),
):
    """Analyse a warehouse name for characters the carrier may not match"""
    try:
        return shipping_service.diagnose_warehouse_name(request)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


if __name__ == "__main__":
    uvicorn.run(
        "microservices.shipping_service.main:app",
        host="0.0.0.0",
        port=config.shipping_service_port,
        reload=False,
        log_level=config.logging.log_level.lower(),
    )
