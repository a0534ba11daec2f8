"""
Shipping Service

Shipment ledger and carrier integration microservice providing:
- Forward shipment manifesting with local waybill fallback
- Warehouse registration and pickup requests
- Carrier tracking, cancellation, serviceability and rate lookups
- Warehouse name diagnostics for carrier authorization failures

Port: 8240
"""

__version__ = "1.0.0"
__service__ = "shipping_service"
