"""
Carrier endpoint table

One endpoint per (API version, capability). A capability missing from the
configured version is answered with NOT_FOUND without a network call.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .models import CarrierApiVersion, CarrierCapability


# Base URL families
PRIMARY = "primary"
EXPRESS = "express"
TRACK = "track"

# Body encodings
JSON_BODY = "json"
MANIFEST_FORM = "manifest_form"  # form field format=json plus data=<json string>
QUERY = "query"


@dataclass(frozen=True)
class EndpointSpec:
    method: str
    path: str
    family: str = PRIMARY
    body: str = JSON_BODY


_EXPRESS_ENDPOINTS: Dict[CarrierCapability, EndpointSpec] = {
    CarrierCapability.CHECK_SERVICEABILITY: EndpointSpec("GET", "/c/api/pin-codes/json/", body=QUERY),
    CarrierCapability.RATE_QUOTE: EndpointSpec("POST", "/c/api/shipments/rates/json/"),
    CarrierCapability.BULK_SERVICEABILITY: EndpointSpec("POST", "/c/api/pin-codes/bulk/json/"),
    CarrierCapability.EXPECTED_TAT: EndpointSpec("GET", "/api/dc/expected_tat", family=EXPRESS, body=QUERY),
    CarrierCapability.CREATE_SHIPMENT: EndpointSpec("POST", "/api/cmu/create.json", body=MANIFEST_FORM),
    CarrierCapability.GENERATE_WAYBILLS: EndpointSpec("GET", "/waybill/api/bulk/json/", body=QUERY),
    CarrierCapability.TRACK_SHIPMENT: EndpointSpec("GET", "/api/v1/packages/json/", family=TRACK, body=QUERY),
    CarrierCapability.CANCEL_SHIPMENT: EndpointSpec("POST", "/api/p/edit"),
    CarrierCapability.REQUEST_PICKUP: EndpointSpec("POST", "/fm/request/new/"),
    CarrierCapability.CREATE_WAREHOUSE: EndpointSpec("PUT", "/api/backend/clientwarehouse/create/"),
    CarrierCapability.EDIT_WAREHOUSE: EndpointSpec("POST", "/api/backend/clientwarehouse/edit/"),
    # Reverse pickups are manifested as shipments with payment_mode "Pickup"
    CarrierCapability.SCHEDULE_REVERSE_PICKUP: EndpointSpec("POST", "/api/cmu/create.json", body=MANIFEST_FORM),
    CarrierCapability.TRACK_REVERSE_PICKUP: EndpointSpec("GET", "/api/v1/packages/json/", family=TRACK, body=QUERY),
    CarrierCapability.CANCEL_REVERSE_PICKUP: EndpointSpec("POST", "/api/p/edit"),
}

_LTL_ENDPOINTS: Dict[CarrierCapability, EndpointSpec] = {
    CarrierCapability.CHECK_SERVICEABILITY: EndpointSpec("GET", "/c/api/pin-codes/json/", body=QUERY),
    CarrierCapability.TRACK_SHIPMENT: EndpointSpec("GET", "/api/v1/packages/json/", family=TRACK, body=QUERY),
    CarrierCapability.REQUEST_PICKUP: EndpointSpec("POST", "/pickup_requests", family=EXPRESS),
    CarrierCapability.CREATE_WAREHOUSE: EndpointSpec("PUT", "/api/backend/clientwarehouse/create/"),
    CarrierCapability.EDIT_WAREHOUSE: EndpointSpec("POST", "/api/backend/clientwarehouse/edit/"),
}

ENDPOINTS: Dict[CarrierApiVersion, Dict[CarrierCapability, EndpointSpec]] = {
    CarrierApiVersion.EXPRESS: _EXPRESS_ENDPOINTS,
    CarrierApiVersion.LTL: _LTL_ENDPOINTS,
}


def resolve_endpoint(version: CarrierApiVersion, capability: CarrierCapability) -> Optional[EndpointSpec]:
    """Endpoint for a capability in the given API version, or None"""
    return ENDPOINTS.get(version, {}).get(capability)
