"""
Carrier Gateway

Single adapter between the storefront and the logistics carrier's HTTP API.
Every public coroutine validates its request locally, calls exactly one
endpoint for the configured API version under a bounded timeout, and
returns a classified CarrierResponse. Read and quote capabilities fall back
to the deterministic responder when the carrier is unconfigured or
unreachable; state-changing capabilities never do.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

import httpx

from core.config import CarrierConfig

from .classification import body_reports_rejection, classify_status_code, extract_error_message
from .diagnostics import diagnose_auth_error
from .endpoints import EXPRESS, MANIFEST_FORM, QUERY, TRACK, EndpointSpec, resolve_endpoint
from .fallback import Clock, DeterministicResponder, utc_now
from .models import (
    CarrierApiVersion,
    CarrierCapability,
    CarrierOutcome,
    CarrierResponse,
    CreateShipmentRequest,
    ExpectedTatRequest,
    PickupRequest,
    RateQuoteRequest,
    ReversePickupRequest,
    WarehouseEdit,
    WarehouseRegistration,
)
from .validation import (
    is_valid_pincode,
    validate_create_shipment,
    validate_expected_tat,
    validate_pickup,
    validate_pincode_batch,
    validate_rate_quote,
    validate_reference,
    validate_reverse_pickup,
    validate_warehouse_edit,
    validate_warehouse_registration,
    validate_waybill_count,
)

logger = logging.getLogger(__name__)

UNCONFIGURED_MESSAGE = "carrier API token not configured"

FORWARD_STATUS_MAP = {
    "manifested": "pending",
    "not picked": "pending",
    "pending": "pending",
    "open": "pending",
    "scheduled": "pending",
    "picked up": "picked_up",
    "pickedup": "picked_up",
    "in transit": "in_transit",
    "dispatched": "in_transit",
    "out for delivery": "in_transit",
    "delivered": "delivered",
    "cancelled": "cancelled",
    "canceled": "cancelled",
    "rto": "cancelled",
}

REVERSE_STATUS_MAP = {
    "manifested": "scheduled",
    "open": "scheduled",
    "scheduled": "scheduled",
    "pending": "scheduled",
    "not picked": "scheduled",
    "picked up": "picked_up",
    "pickedup": "picked_up",
    "in transit": "picked_up",
    "dispatched": "picked_up",
    "dto": "delivered_to_warehouse",
    "delivered": "delivered_to_warehouse",
    "delivered to warehouse": "delivered_to_warehouse",
    "closed": "processed",
    "processed": "processed",
    "cancelled": "cancelled",
    "canceled": "cancelled",
}


class CarrierPayloadError(Exception):
    """A 2xx carrier response that cannot be used"""

    def __init__(self, outcome: CarrierOutcome, message: str):
        super().__init__(message)
        self.outcome = outcome
        self.message = message


def normalize_forward_status(carrier_status: Optional[str]) -> str:
    return FORWARD_STATUS_MAP.get((carrier_status or "").strip().lower(), "in_transit" if carrier_status else "pending")


def normalize_reverse_status(carrier_status: Optional[str]) -> str:
    return REVERSE_STATUS_MAP.get((carrier_status or "").strip().lower(), "scheduled")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value)) if value is not None else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


def _unserviceable(pincode: str) -> Dict[str, Any]:
    return {
        "pincode": pincode,
        "serviceable": False,
        "zone": None,
        "cod": False,
        "prepaid": False,
        "pickup": False,
        "reverse_pickup": False,
        "estimated_days": None,
        "city": None,
        "state": None,
    }


def _serviceability_entry(code: Dict[str, Any], pincode: str) -> Dict[str, Any]:
    entry = code.get("postal_code") or code
    cod = str(entry.get("cod", "")).upper() == "Y"
    prepaid = str(entry.get("pre_paid", "")).upper() == "Y"
    return {
        "pincode": str(entry.get("pin") or pincode),
        "serviceable": cod or prepaid,
        "zone": entry.get("zone"),
        "cod": cod,
        "prepaid": prepaid,
        "pickup": str(entry.get("pickup", "")).upper() == "Y",
        "reverse_pickup": str(entry.get("repl") or entry.get("reverse") or "").upper() == "Y",
        "estimated_days": None,
        "city": entry.get("city") or entry.get("district"),
        "state": entry.get("state_code") or entry.get("state"),
    }


def _grams(weight_kg: float) -> int:
    return int(round(weight_kg * 1000))


class CarrierGateway:
    """
    Async carrier client with outcome classification.

    Args:
        config: Carrier configuration (token, base URLs, API version, timeout)
        transport: Optional httpx transport, used by tests
        clock: Time source for synthesized payloads
    """

    def __init__(
        self,
        config: Optional[CarrierConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Clock = utc_now,
        responder: Optional[DeterministicResponder] = None,
    ):
        self.config = config or CarrierConfig.from_env()
        try:
            self.api_version = CarrierApiVersion(self.config.api_version)
        except ValueError:
            logger.warning(f"Unknown carrier API version '{self.config.api_version}', using express")
            self.api_version = CarrierApiVersion.EXPRESS
        self.clock = clock
        self.responder = responder or DeterministicResponder(clock)
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout_seconds),
            transport=transport,
        )
        logger.info(
            f"CarrierGateway initialized (version={self.api_version.value}, "
            f"configured={self.config.is_configured})"
        )

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _base_url(self, family: str) -> str:
        if family == EXPRESS:
            return self.config.express_base_url.rstrip("/")
        if family == TRACK:
            return self.config.track_base_url.rstrip("/")
        return self.config.base_url.rstrip("/")

    def _headers(self, endpoint: EndpointSpec) -> Dict[str, str]:
        headers = {
            "Authorization": f"{self.config.auth_scheme} {self.config.api_token}",
            "Accept": "application/json",
        }
        if endpoint.body not in (MANIFEST_FORM, QUERY):
            headers["Content-Type"] = "application/json"
        return headers

    def _invalid(self, capability: CarrierCapability, errors: List[str]) -> CarrierResponse:
        message = "; ".join(errors)
        logger.warning(f"Carrier {capability.value} rejected locally: {message}")
        return CarrierResponse(
            outcome=CarrierOutcome.VALIDATION_ERROR,
            capability=capability,
            error=message,
        )

    def _fallback(
        self,
        capability: CarrierCapability,
        build: Callable[[], Dict[str, Any]],
        reason: str,
        status_code: Optional[int] = None,
    ) -> CarrierResponse:
        logger.warning(f"Carrier {capability.value} answered by local fallback: {reason}")
        return CarrierResponse(
            outcome=CarrierOutcome.SUCCESS,
            capability=capability,
            status_code=status_code,
            data=build(),
            error=reason,
            is_fallback=True,
        )

    async def _call(
        self,
        capability: CarrierCapability,
        parse: Callable[[Any], Dict[str, Any]],
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        fallback: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> CarrierResponse:
        endpoint = resolve_endpoint(self.api_version, capability)
        if endpoint is None:
            message = (
                f"{capability.value} is not available in carrier API version "
                f"'{self.api_version.value}'; check CARRIER_API_VERSION"
            )
            logger.error(message)
            return CarrierResponse(outcome=CarrierOutcome.NOT_FOUND, capability=capability, error=message)

        if not self.is_configured:
            if fallback:
                return self._fallback(capability, fallback, UNCONFIGURED_MESSAGE)
            logger.error(f"Carrier {capability.value} refused: {UNCONFIGURED_MESSAGE}")
            return CarrierResponse(
                outcome=CarrierOutcome.AUTH_ERROR,
                capability=capability,
                error=UNCONFIGURED_MESSAGE,
            )

        url = f"{self._base_url(endpoint.family)}{endpoint.path}"
        request_kwargs: Dict[str, Any] = {"headers": self._headers(endpoint)}
        if endpoint.body == QUERY:
            request_kwargs["params"] = params or {}
        elif endpoint.body == MANIFEST_FORM:
            request_kwargs["data"] = {"format": "json", "data": json.dumps(payload or {}, default=str)}
        else:
            request_kwargs["json"] = json.loads(json.dumps(payload or {}, default=str))
            if params:
                request_kwargs["params"] = params

        timeout = self.config.timeout_seconds
        try:
            response = await asyncio.wait_for(
                self.client.request(endpoint.method, url, **request_kwargs),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            message = f"carrier did not respond within {timeout:g}s"
            logger.error(f"Carrier {capability.value} {endpoint.method} {url}: {message}")
            if fallback:
                return self._fallback(capability, fallback, message)
            return CarrierResponse(outcome=CarrierOutcome.NETWORK_ERROR, capability=capability, error=message)
        except httpx.HTTPError as e:
            message = f"carrier unreachable: {e}"
            logger.error(f"Carrier {capability.value} {endpoint.method} {url}: {message}")
            if fallback:
                return self._fallback(capability, fallback, message)
            return CarrierResponse(outcome=CarrierOutcome.NETWORK_ERROR, capability=capability, error=message)

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        outcome = classify_status_code(response.status_code)
        error: Optional[str] = None
        if outcome == CarrierOutcome.SUCCESS:
            rejection = body_reports_rejection(body)
            if rejection:
                outcome = CarrierOutcome.VALIDATION_ERROR
                error = rejection
        else:
            error = extract_error_message(body) or f"carrier returned HTTP {response.status_code}"

        logger.info(
            f"Carrier {capability.value} {endpoint.method} {url} -> "
            f"{response.status_code} ({outcome.value})"
        )

        if outcome == CarrierOutcome.NETWORK_ERROR and fallback:
            return self._fallback(capability, fallback, error, status_code=response.status_code)

        if outcome != CarrierOutcome.SUCCESS:
            if outcome == CarrierOutcome.AUTH_ERROR:
                logger.error(f"Carrier {capability.value} authorization failed: {error}")
            return CarrierResponse(
                outcome=outcome,
                capability=capability,
                status_code=response.status_code,
                error=error,
            )

        try:
            data = parse(body)
        except CarrierPayloadError as e:
            logger.warning(f"Carrier {capability.value} payload unusable: {e.message}")
            return CarrierResponse(
                outcome=e.outcome,
                capability=capability,
                status_code=response.status_code,
                error=e.message,
            )
        return CarrierResponse(
            outcome=CarrierOutcome.SUCCESS,
            capability=capability,
            status_code=response.status_code,
            data=data,
        )

    # ------------------------------------------------------------------
    # Parsers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_manifest(body: Any) -> Dict[str, Any]:
        packages = body.get("packages") if isinstance(body, dict) else None
        package = packages[0] if packages else None
        if not package or not package.get("waybill"):
            raise CarrierPayloadError(CarrierOutcome.VALIDATION_ERROR, "carrier response did not include a waybill")
        return {
            "waybill": str(package["waybill"]),
            "status": str(package.get("status") or "Success"),
            "order_reference": package.get("refnum"),
            "upload_id": body.get("upload_wbn"),
            "remarks": package.get("remarks") or [],
        }

    @staticmethod
    def _parse_waybills(body: Any) -> Dict[str, Any]:
        if isinstance(body, str):
            waybills = [w.strip().strip('"') for w in body.split(",") if w.strip().strip('"')]
        elif isinstance(body, list):
            waybills = [str(w) for w in body]
        elif isinstance(body, dict):
            raw = body.get("waybills") or body.get("waybill") or []
            waybills = [w.strip() for w in raw.split(",")] if isinstance(raw, str) else [str(w) for w in raw]
        else:
            waybills = []
        if not waybills:
            raise CarrierPayloadError(CarrierOutcome.VALIDATION_ERROR, "carrier returned no waybills")
        return {"waybills": waybills}

    @staticmethod
    def _tracking_shipment(body: Any, reference: str) -> Dict[str, Any]:
        shipments = body.get("ShipmentData") if isinstance(body, dict) else None
        if not shipments:
            raise CarrierPayloadError(CarrierOutcome.NOT_FOUND, f"carrier has no tracking data for {reference}")
        return shipments[0].get("Shipment") or {}

    @staticmethod
    def _tracking_events(shipment: Dict[str, Any], normalize: Callable[[Optional[str]], str]) -> List[Dict[str, Any]]:
        events = []
        for scan in shipment.get("Scans") or []:
            detail = scan.get("ScanDetail") or {}
            events.append({
                "status": normalize(detail.get("Scan")),
                "location": detail.get("ScannedLocation"),
                "timestamp": _parse_timestamp(detail.get("ScanDateTime")),
                "description": detail.get("Instructions") or detail.get("Scan"),
                "source": "carrier",
            })
        return events

    def _parse_tracking(self, waybill: str) -> Callable[[Any], Dict[str, Any]]:
        def parse(body: Any) -> Dict[str, Any]:
            shipment = self._tracking_shipment(body, waybill)
            status = shipment.get("Status") or {}
            carrier_status = status.get("Status")
            return {
                "waybill": str(shipment.get("AWB") or waybill),
                "status": normalize_forward_status(carrier_status),
                "carrier_status": carrier_status,
                "expected_delivery": _parse_timestamp(shipment.get("ExpectedDeliveryDate")),
                "events": self._tracking_events(shipment, normalize_forward_status),
            }
        return parse

    def _parse_reverse_tracking(self, tracking_number: str) -> Callable[[Any], Dict[str, Any]]:
        def parse(body: Any) -> Dict[str, Any]:
            shipment = self._tracking_shipment(body, tracking_number)
            status = shipment.get("Status") or {}
            carrier_status = status.get("Status")
            return {
                "tracking_number": str(shipment.get("AWB") or tracking_number),
                "status": normalize_reverse_status(carrier_status),
                "carrier_status": carrier_status,
                "estimated_pickup_date": shipment.get("PickUpDate"),
                "events": self._tracking_events(shipment, normalize_reverse_status),
            }
        return parse

    @staticmethod
    def _parse_edit(body: Any) -> Dict[str, Any]:
        if isinstance(body, dict) and body.get("status") is False:
            raise CarrierPayloadError(
                CarrierOutcome.VALIDATION_ERROR,
                body.get("remark") or extract_error_message(body) or "carrier refused the change",
            )
        if isinstance(body, dict):
            return {"waybill": body.get("waybill"), "remark": body.get("remark"), "cancelled": True}
        return {"cancelled": True}

    @staticmethod
    def _parse_pickup(body: Any) -> Dict[str, Any]:
        if not isinstance(body, dict):
            raise CarrierPayloadError(CarrierOutcome.VALIDATION_ERROR, "unexpected pickup response")
        pickup_id = body.get("pickup_id") or body.get("pickup_request_id") or body.get("id")
        if not pickup_id:
            raise CarrierPayloadError(CarrierOutcome.VALIDATION_ERROR, "carrier did not return a pickup id")
        return {
            "pickup_id": str(pickup_id),
            "pickup_date": body.get("pickup_date"),
            "pickup_time": body.get("pickup_time") or body.get("start_time"),
            "expected_package_count": body.get("expected_package_count"),
            "center": body.get("incoming_center_name"),
        }

    @staticmethod
    def _parse_warehouse(body: Any) -> Dict[str, Any]:
        if not isinstance(body, dict):
            return {"message": str(body)}
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        return {
            "name": data.get("name") or body.get("name"),
            "message": body.get("message") or body.get("msg"),
        }

    @staticmethod
    def _parse_serviceability(pincode: str) -> Callable[[Any], Dict[str, Any]]:
        def parse(body: Any) -> Dict[str, Any]:
            codes = body.get("delivery_codes") if isinstance(body, dict) else None
            if not codes:
                return _unserviceable(pincode)
            return _serviceability_entry(codes[0], pincode)
        return parse

    @staticmethod
    def _parse_bulk_serviceability(pincodes: List[str]) -> Callable[[Any], Dict[str, Any]]:
        def parse(body: Any) -> Dict[str, Any]:
            codes = body.get("delivery_codes") if isinstance(body, dict) else None
            found: Dict[str, Dict[str, Any]] = {}
            for code in codes or []:
                entry = _serviceability_entry(code, "")
                found[entry["pincode"]] = entry
            # Pincodes the carrier left out of its answer are not serviced
            return {"results": [found.get(pincode) or _unserviceable(pincode) for pincode in pincodes]}
        return parse

    @staticmethod
    def _parse_expected_tat(request: ExpectedTatRequest, pickup_date: str) -> Callable[[Any], Dict[str, Any]]:
        def parse(body: Any) -> Dict[str, Any]:
            data = body.get("data") if isinstance(body, dict) and isinstance(body.get("data"), dict) else body
            if not isinstance(data, dict):
                raise CarrierPayloadError(CarrierOutcome.VALIDATION_ERROR, "unexpected expected TAT response")
            tat = data.get("expected_tat", data.get("tat"))
            pickup = datetime.strptime(pickup_date, "%Y-%m-%d")
            try:
                days = int(tat)
                delivery = pickup + timedelta(days=days)
            except (TypeError, ValueError):
                parsed = _parse_timestamp(tat)
                if parsed is None:
                    raise CarrierPayloadError(CarrierOutcome.VALIDATION_ERROR, f"unreadable expected TAT: {tat!r}")
                delivery = parsed.replace(tzinfo=None)
                days = (delivery.date() - pickup.date()).days
            return {
                "origin_pincode": request.origin_pincode,
                "destination_pincode": request.destination_pincode,
                "mode_of_transport": request.mode_of_transport,
                "product_type": request.product_type,
                "expected_pickup_date": pickup_date,
                "tat_days": days,
                "expected_delivery_date": delivery.strftime("%Y-%m-%d"),
            }
        return parse

    @staticmethod
    def _parse_rate(body: Any) -> Dict[str, Any]:
        quote = body[0] if isinstance(body, list) and body else body
        if not isinstance(quote, dict):
            raise CarrierPayloadError(CarrierOutcome.VALIDATION_ERROR, "unexpected rate response")
        return {
            "freight": _decimal(quote.get("freight", quote.get("charge_DL"))),
            "fuel_surcharge": _decimal(quote.get("fuel_surcharge", quote.get("charge_FSC"))),
            "cod_fee": _decimal(quote.get("cod_fee", quote.get("charge_COD"))),
            "service_tax": _decimal(quote.get("service_tax", quote.get("tax"))),
            "other_charges": _decimal(quote.get("other_charges")),
            "discount": _decimal(quote.get("discount")),
            "total_amount": _decimal(quote.get("total_amount")),
            "delivery_days": quote.get("delivery_time"),
            "chargeable_weight": quote.get("charged_weight"),
        }

    # ------------------------------------------------------------------
    # Payload builders
    # ------------------------------------------------------------------

    def _manifest_payload(self, request: CreateShipmentRequest) -> Dict[str, Any]:
        consignee = request.consignee
        ret = request.return_address
        shipment = {
            "name": consignee.name,
            "add": consignee.address,
            "pin": consignee.pincode,
            "city": consignee.city,
            "state": consignee.state,
            "country": consignee.country,
            "phone": consignee.phone,
            "order": request.order_reference,
            "payment_mode": request.payment_mode,
            "products_desc": request.products_desc,
            "cod_amount": str(request.cod_amount if request.payment_mode == "COD" else Decimal("0")),
            "total_amount": str(request.total_amount),
            "quantity": str(request.quantity),
            "weight": str(_grams(request.weight)),
            "shipment_length": str(request.length),
            "shipment_width": str(request.width),
            "shipment_height": str(request.height),
            "shipping_mode": request.shipping_mode,
            "order_date": (request.order_date or self.clock()).isoformat(),
            "seller_name": self.config.client_name,
        }
        if request.waybill:
            shipment["waybill"] = request.waybill
        if ret:
            shipment.update({
                "return_name": ret.name,
                "return_add": ret.address,
                "return_phone": ret.phone,
                "return_pin": ret.pincode,
                "return_city": ret.city,
                "return_state": ret.state,
                "return_country": ret.country,
            })
        return {"shipments": [shipment], "pickup_location": {"name": request.pickup_location}}

    def _pickup_payload(self, request: PickupRequest) -> Dict[str, Any]:
        if self.api_version == CarrierApiVersion.LTL:
            return {
                "client_warehouse": request.warehouse_name,
                "pickup_date": request.pickup_date,
                "start_time": request.pickup_time,
                "expected_package_count": request.expected_package_count,
            }
        return {
            "pickup_time": request.pickup_time,
            "pickup_date": request.pickup_date,
            "pickup_location": request.warehouse_name,
            "expected_package_count": request.expected_package_count,
        }

    # ------------------------------------------------------------------
    # Forward shipments
    # ------------------------------------------------------------------

    async def create_shipment(self, request: CreateShipmentRequest) -> CarrierResponse:
        """Manifest a forward shipment"""
        errors = validate_create_shipment(request)
        if errors:
            return self._invalid(CarrierCapability.CREATE_SHIPMENT, errors)
        return await self._call(
            CarrierCapability.CREATE_SHIPMENT,
            parse=self._parse_manifest,
            payload=self._manifest_payload(request),
            fallback=lambda: self.responder.create_shipment(request),
        )

    async def generate_waybills(self, count: int = 5) -> CarrierResponse:
        """Reserve waybill numbers ahead of manifesting"""
        errors = validate_waybill_count(count)
        if errors:
            return self._invalid(CarrierCapability.GENERATE_WAYBILLS, errors)
        return await self._call(
            CarrierCapability.GENERATE_WAYBILLS,
            parse=self._parse_waybills,
            params={"token": self.config.api_token, "count": count},
            fallback=lambda: self.responder.waybills(count),
        )

    async def track_shipment(self, waybill: str) -> CarrierResponse:
        """Current status and scans for a waybill"""
        errors = validate_reference(waybill, "waybill")
        if errors:
            return self._invalid(CarrierCapability.TRACK_SHIPMENT, errors)
        return await self._call(
            CarrierCapability.TRACK_SHIPMENT,
            parse=self._parse_tracking(waybill),
            params={"waybill": waybill},
            fallback=lambda: self.responder.tracking(waybill),
        )

    async def cancel_shipment(self, waybill: str) -> CarrierResponse:
        """Cancel a manifested shipment"""
        errors = validate_reference(waybill, "waybill")
        if errors:
            return self._invalid(CarrierCapability.CANCEL_SHIPMENT, errors)
        return await self._call(
            CarrierCapability.CANCEL_SHIPMENT,
            parse=self._parse_edit,
            payload={"waybill": waybill, "cancellation": "true"},
        )

    # ------------------------------------------------------------------
    # Warehouses and pickups
    # ------------------------------------------------------------------

    async def request_pickup(self, request: PickupRequest) -> CarrierResponse:
        """
        Ask the carrier to collect packages from a warehouse.

        An AUTH_ERROR result carries a diagnostic block describing the
        warehouse name that was sent and the likely causes.
        """
        errors = validate_pickup(request)
        if errors:
            return self._invalid(CarrierCapability.REQUEST_PICKUP, errors)
        response = await self._call(
            CarrierCapability.REQUEST_PICKUP,
            parse=self._parse_pickup,
            payload=self._pickup_payload(request),
        )
        if response.outcome == CarrierOutcome.AUTH_ERROR:
            response.diagnostics = diagnose_auth_error(request.warehouse_name, response.error or "")
        return response

    async def register_warehouse(self, request: WarehouseRegistration) -> CarrierResponse:
        """Register a pickup location with the carrier"""
        errors = validate_warehouse_registration(request)
        if errors:
            return self._invalid(CarrierCapability.CREATE_WAREHOUSE, errors)
        payload = {
            "name": request.name,
            "registered_name": request.registered_name or request.name,
            "phone": request.phone,
            "email": request.email,
            "address": request.address,
            "city": request.city,
            "pin": request.pin,
            "country": request.country,
            "return_address": request.return_address or request.address,
            "return_pin": request.return_pin or request.pin,
            "return_city": request.return_city or request.city,
            "return_state": request.return_state,
            "return_country": request.return_country,
        }
        return await self._call(CarrierCapability.CREATE_WAREHOUSE, parse=self._parse_warehouse, payload=payload)

    async def edit_warehouse(self, request: WarehouseEdit) -> CarrierResponse:
        """Update contact details of a registered pickup location"""
        errors = validate_warehouse_edit(request)
        if errors:
            return self._invalid(CarrierCapability.EDIT_WAREHOUSE, errors)
        payload = {"name": request.name, "phone": request.phone, "address": request.address}
        if request.pin:
            payload["pin"] = request.pin
        return await self._call(CarrierCapability.EDIT_WAREHOUSE, parse=self._parse_warehouse, payload=payload)

    # ------------------------------------------------------------------
    # Reverse pickups
    # ------------------------------------------------------------------

    async def schedule_reverse_pickup(self, request: ReversePickupRequest) -> CarrierResponse:
        """Book collection of a returned item from the customer"""
        errors = validate_reverse_pickup(request)
        if errors:
            return self._invalid(CarrierCapability.SCHEDULE_REVERSE_PICKUP, errors)

        customer = request.customer
        shipment = {
            "name": customer.name,
            "add": customer.address,
            "pin": customer.pincode,
            "city": customer.city,
            "state": customer.state,
            "country": customer.country,
            "phone": customer.phone,
            "order": request.return_reference,
            "payment_mode": "Pickup",
            "products_desc": request.products_desc,
            "quantity": str(request.quantity),
            "total_amount": str(request.total_amount),
            "weight": str(_grams(request.weight)),
            "pickup_date": request.pickup_date,
            "pickup_time_slot": request.pickup_time_slot or "",
            "special_instructions": request.special_instructions or "",
            "seller_name": self.config.client_name,
            "original_order": request.order_reference,
        }
        payload = {"shipments": [shipment], "pickup_location": {"name": request.warehouse_name}}

        def parse(body: Any) -> Dict[str, Any]:
            manifest = self._parse_manifest(body)
            return {
                "tracking_number": manifest["waybill"],
                "pickup_id": str(manifest.get("upload_id") or manifest["waybill"]),
                "pickup_date": request.pickup_date,
                "pickup_time_slot": request.pickup_time_slot,
                "status": "scheduled",
            }

        return await self._call(CarrierCapability.SCHEDULE_REVERSE_PICKUP, parse=parse, payload=payload)

    async def track_reverse_pickup(self, tracking_number: str) -> CarrierResponse:
        """Status of a reverse pickup"""
        errors = validate_reference(tracking_number, "tracking_number")
        if errors:
            return self._invalid(CarrierCapability.TRACK_REVERSE_PICKUP, errors)
        return await self._call(
            CarrierCapability.TRACK_REVERSE_PICKUP,
            parse=self._parse_reverse_tracking(tracking_number),
            params={"waybill": tracking_number},
            fallback=lambda: self.responder.reverse_tracking(tracking_number),
        )

    async def cancel_reverse_pickup(self, tracking_number: str) -> CarrierResponse:
        """Cancel a scheduled reverse pickup"""
        errors = validate_reference(tracking_number, "tracking_number")
        if errors:
            return self._invalid(CarrierCapability.CANCEL_REVERSE_PICKUP, errors)
        return await self._call(
            CarrierCapability.CANCEL_REVERSE_PICKUP,
            parse=self._parse_edit,
            payload={"waybill": tracking_number, "cancellation": "true"},
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def check_serviceability(self, pincode: str) -> CarrierResponse:
        """Whether the carrier delivers to and collects from a pincode"""
        if not is_valid_pincode(pincode):
            return self._invalid(CarrierCapability.CHECK_SERVICEABILITY, ["pincode must be 6 digits"])
        return await self._call(
            CarrierCapability.CHECK_SERVICEABILITY,
            parse=self._parse_serviceability(pincode),
            params={"filter_codes": pincode},
            fallback=lambda: self.responder.serviceability(pincode),
        )

    async def check_bulk_serviceability(self, pincodes: List[str]) -> CarrierResponse:
        """Serviceability for several pincodes in one carrier call"""
        errors = validate_pincode_batch(pincodes)
        if errors:
            return self._invalid(CarrierCapability.BULK_SERVICEABILITY, errors)
        return await self._call(
            CarrierCapability.BULK_SERVICEABILITY,
            parse=self._parse_bulk_serviceability(pincodes),
            payload={"pincodes": ",".join(pincodes)},
            fallback=lambda: self.responder.bulk_serviceability(pincodes),
        )

    async def get_expected_tat(self, request: ExpectedTatRequest) -> CarrierResponse:
        """Expected transit days and delivery date between two pincodes"""
        errors = validate_expected_tat(request)
        if errors:
            return self._invalid(CarrierCapability.EXPECTED_TAT, errors)
        pickup_date = request.expected_pickup_date or self.clock().strftime("%Y-%m-%d")
        dated = request.model_copy(update={"expected_pickup_date": pickup_date})
        return await self._call(
            CarrierCapability.EXPECTED_TAT,
            parse=self._parse_expected_tat(dated, pickup_date),
            params={
                "origin_pin": dated.origin_pincode,
                "destination_pin": dated.destination_pincode,
                "mot": dated.mode_of_transport,
                "pdt": dated.product_type,
                "expected_pickup_date": pickup_date,
            },
            fallback=lambda: self.responder.expected_tat(dated),
        )

    async def get_rate_quote(self, request: RateQuoteRequest) -> CarrierResponse:
        """Shipping charges for a parcel between two pincodes"""
        errors = validate_rate_quote(request)
        if errors:
            return self._invalid(CarrierCapability.RATE_QUOTE, errors)
        payload = {
            "weight": _grams(request.weight),
            "length": request.length,
            "width": request.width,
            "height": request.height,
            "cod_amount": str(request.cod_amount if request.payment_mode == "COD" else Decimal("0")),
            "pickup_pincode": request.pickup_pincode,
            "delivery_pincode": request.delivery_pincode,
            "payment_mode": request.payment_mode,
            "shipping_mode": request.shipping_mode,
        }
        return await self._call(
            CarrierCapability.RATE_QUOTE,
            parse=self._parse_rate,
            payload=payload,
            fallback=lambda: self.responder.rate_quote(request),
        )
