"""
Carrier integration package

Gateway, outcome classification, deterministic fallback and auth diagnostics
for the logistics carrier.
"""

from .models import (
    AuthDiagnostic,
    CarrierApiVersion,
    CarrierCapability,
    CarrierOutcome,
    CarrierResponse,
    CreateShipmentRequest,
    ExpectedTatRequest,
    ParcelAddress,
    PickupRequest,
    RateQuoteRequest,
    ReversePickupRequest,
    WarehouseEdit,
    WarehouseNameAnalysis,
    WarehouseRegistration,
)
from .diagnostics import (
    analyze_warehouse_name,
    build_troubleshooting_guide,
    compare_warehouse_names,
    diagnose_auth_error,
    normalize_warehouse_name,
)
from .fallback import LOCAL_WAYBILL_PREFIX, DeterministicResponder, is_local_waybill, local_waybill_for
from .gateway import CarrierGateway

__all__ = [
    "AuthDiagnostic",
    "CarrierApiVersion",
    "CarrierCapability",
    "CarrierGateway",
    "CarrierOutcome",
    "CarrierResponse",
    "CreateShipmentRequest",
    "DeterministicResponder",
    "ExpectedTatRequest",
    "LOCAL_WAYBILL_PREFIX",
    "ParcelAddress",
    "PickupRequest",
    "RateQuoteRequest",
    "ReversePickupRequest",
    "WarehouseEdit",
    "WarehouseNameAnalysis",
    "WarehouseRegistration",
    "analyze_warehouse_name",
    "build_troubleshooting_guide",
    "compare_warehouse_names",
    "diagnose_auth_error",
    "is_local_waybill",
    "local_waybill_for",
    "normalize_warehouse_name",
]
