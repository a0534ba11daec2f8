"""
Shipping Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_shipping_service
    service = create_shipping_service(settings, event_bus=bus)
"""
from typing import Optional

from core.config import StorefrontConfig

from .carrier.gateway import CarrierGateway
from .shipment_ledger import ShipmentLedger
from .shipping_service import ShippingService


def create_shipment_ledger(config: Optional[StorefrontConfig] = None, repository=None) -> ShipmentLedger:
    """
    Create ShipmentLedger over the Postgres repository.

    Args:
        config: Storefront configuration
        repository: Pre-built repository (shared across requests)
    """
    if repository is None:
        # Import real repository here (not at module level)
        from .ledger_repository import ShipmentLedgerRepository

        repository = ShipmentLedgerRepository(config=config.infra if config else None)
    return ShipmentLedger(repository)


def create_carrier_gateway(config: Optional[StorefrontConfig] = None) -> CarrierGateway:
    return CarrierGateway(config=config.carrier if config else None)


def create_shipping_service(
    config: Optional[StorefrontConfig] = None,
    event_bus=None,
    ledger: Optional[ShipmentLedger] = None,
    gateway=None,
) -> ShippingService:
    """
    Create ShippingService with real dependencies.

    Use this in production, NOT in tests.

    Args:
        config: Storefront configuration
        event_bus: Request-scoped event bus
        ledger: Shared ShipmentLedger (built if omitted)
        gateway: Shared carrier gateway (built if omitted)

    Returns:
        Configured ShippingService instance
    """
    return ShippingService(
        ledger=ledger or create_shipment_ledger(config),
        gateway=gateway or create_carrier_gateway(config),
        event_bus=event_bus,
    )
