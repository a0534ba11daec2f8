"""
Deterministic fallback responder

Answers read and quote capabilities when the carrier is unconfigured or
unreachable. Every payload is a pure function of the request plus the
injected clock, so results are reproducible in tests. Waybills issued here
carry the LOCAL- prefix so their provenance stays visible.
"""

import hashlib
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List

from .models import CreateShipmentRequest, ExpectedTatRequest, RateQuoteRequest

LOCAL_WAYBILL_PREFIX = "LOCAL-"

# First pincode digit -> postal zone
PINCODE_ZONES = {
    "1": "North",
    "2": "North",
    "3": "West",
    "4": "West",
    "5": "South",
    "6": "South",
    "7": "East",
    "8": "East",
}

BASE_FREIGHT = Decimal("40.00")
PER_SLAB_FREIGHT = Decimal("30.00")
SLAB_KG = 0.5
ZONE_HOP_CHARGE = Decimal("10.00")
EXPRESS_MULTIPLIER = Decimal("1.5")
FUEL_SURCHARGE_RATE = Decimal("0.10")
COD_MIN_FEE = Decimal("30.00")
COD_FEE_RATE = Decimal("0.02")
SERVICE_TAX_RATE = Decimal("0.18")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def is_local_waybill(waybill: str) -> bool:
    return bool(waybill) and waybill.startswith(LOCAL_WAYBILL_PREFIX)


def local_waybill_for(reference: str, pincode: str = "") -> str:
    """Stable LOCAL- waybill for a shipment reference"""
    digest = hashlib.sha1(f"{reference}|{pincode}".encode("utf-8")).hexdigest()[:10].upper()
    return f"{LOCAL_WAYBILL_PREFIX}{digest}"


def transit_days(pincode: str) -> int:
    return 2 + int(pincode[0]) % 4


class DeterministicResponder:
    """Synthesizes carrier-shaped payloads without network access"""

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    def serviceability(self, pincode: str) -> Dict[str, Any]:
        zone = PINCODE_ZONES.get(pincode[0])
        serviceable = zone is not None
        return {
            "pincode": pincode,
            "serviceable": serviceable,
            "zone": zone,
            "cod": serviceable,
            "prepaid": serviceable,
            "pickup": serviceable,
            "reverse_pickup": serviceable and pincode[0] not in ("1", "7"),
            "estimated_days": transit_days(pincode) if serviceable else None,
            "city": None,
            "state": None,
        }

    def bulk_serviceability(self, pincodes: List[str]) -> Dict[str, Any]:
        return {"results": [self.serviceability(pincode) for pincode in pincodes]}

    def expected_tat(self, request: ExpectedTatRequest) -> Dict[str, Any]:
        pickup_date = request.expected_pickup_date or self.clock().strftime("%Y-%m-%d")
        days = transit_days(request.destination_pincode) + (0 if request.mode_of_transport == "A" else 2)
        delivery = datetime.strptime(pickup_date, "%Y-%m-%d") + timedelta(days=days)
        return {
            "origin_pincode": request.origin_pincode,
            "destination_pincode": request.destination_pincode,
            "mode_of_transport": request.mode_of_transport,
            "product_type": request.product_type,
            "expected_pickup_date": pickup_date,
            "tat_days": days,
            "expected_delivery_date": delivery.strftime("%Y-%m-%d"),
        }

    def rate_quote(self, request: RateQuoteRequest) -> Dict[str, Any]:
        slabs = max(1, math.ceil(request.weight / SLAB_KG))
        zone_hops = abs(int(request.pickup_pincode[0]) - int(request.delivery_pincode[0]))

        freight = BASE_FREIGHT + PER_SLAB_FREIGHT * (slabs - 1) + ZONE_HOP_CHARGE * zone_hops
        if request.shipping_mode == "Express":
            freight = freight * EXPRESS_MULTIPLIER
        fuel = freight * FUEL_SURCHARGE_RATE
        cod_fee = Decimal("0")
        if request.payment_mode == "COD":
            cod_fee = max(COD_MIN_FEE, Decimal(request.cod_amount) * COD_FEE_RATE)
        tax = (freight + fuel + cod_fee) * SERVICE_TAX_RATE
        total = freight + fuel + cod_fee + tax

        days = transit_days(request.delivery_pincode) + (0 if request.shipping_mode == "Express" else 2)
        return {
            "freight": _money(freight),
            "fuel_surcharge": _money(fuel),
            "cod_fee": _money(cod_fee),
            "service_tax": _money(tax),
            "other_charges": Decimal("0.00"),
            "discount": Decimal("0.00"),
            "total_amount": _money(total),
            "delivery_days": days,
            "chargeable_weight": slabs * SLAB_KG,
        }

    def create_shipment(self, request: CreateShipmentRequest) -> Dict[str, Any]:
        waybill = request.waybill if request.waybill and is_local_waybill(request.waybill) else local_waybill_for(
            request.order_reference, request.consignee.pincode
        )
        return {
            "waybill": waybill,
            "status": "pending",
            "order_reference": request.order_reference,
            "remarks": ["carrier unavailable; shipment recorded locally"],
        }

    def waybills(self, count: int) -> Dict[str, Any]:
        stamp = self.clock().strftime("%Y%m%d%H%M%S")
        return {"waybills": [f"{LOCAL_WAYBILL_PREFIX}{stamp}{i:03d}" for i in range(1, count + 1)]}

    def tracking(self, waybill: str) -> Dict[str, Any]:
        now = self.clock()
        return {
            "waybill": waybill,
            "status": "pending",
            "carrier_status": None,
            "expected_delivery": None,
            "events": [
                {
                    "status": "pending",
                    "location": None,
                    "timestamp": now,
                    "description": "Carrier tracking unavailable; showing locally recorded state",
                    "source": "local",
                }
            ],
        }

    def reverse_tracking(self, tracking_number: str) -> Dict[str, Any]:
        now = self.clock()
        return {
            "tracking_number": tracking_number,
            "status": "scheduled",
            "carrier_status": None,
            "estimated_pickup_date": (now + timedelta(days=1)).date().isoformat(),
            "events": [
                {
                    "status": "scheduled",
                    "location": None,
                    "timestamp": now,
                    "description": "Carrier tracking unavailable; pickup assumed scheduled",
                    "source": "local",
                }
            ],
        }


def standard_pickup_slots() -> List[Dict[str, str]]:
    """Pickup windows offered to customers for reverse pickups"""
    return [
        {"slot": "09:00-12:00", "label": "9:00 AM - 12:00 PM"},
        {"slot": "12:00-15:00", "label": "12:00 PM - 3:00 PM"},
        {"slot": "15:00-18:00", "label": "3:00 PM - 6:00 PM"},
        {"slot": "18:00-21:00", "label": "6:00 PM - 9:00 PM"},
    ]
