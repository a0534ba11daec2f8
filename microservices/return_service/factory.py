"""
Return Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_return_service
    service = create_return_service(settings, event_bus=bus)
"""
from typing import Optional

from core.config import StorefrontConfig, get_settings
from microservices.order_service.factory import create_notification_client, create_order_repository
from microservices.shipping_service.factory import create_carrier_gateway, create_shipment_ledger

from .return_service import ReturnService


def create_return_repository(config: StorefrontConfig):
    # Import real repository here (not at module level)
    from .return_repository import ReturnRepository

    return ReturnRepository(config=config.infra)


def create_return_service(
    config: Optional[StorefrontConfig] = None,
    event_bus=None,
    repository=None,
    orders=None,
    warehouses=None,
    gateway=None,
    notification_client=None,
) -> ReturnService:
    """
    Create ReturnService with real dependencies.

    Use this in production, NOT in tests.

    Args:
        config: Storefront configuration
        event_bus: Request-scoped event bus
        repository: Shared return repository (built if omitted)
        orders: Order repository (built if omitted)
        warehouses: Shipment ledger used for the default warehouse (built if omitted)
        gateway: Shared carrier gateway (built if omitted)
        notification_client: Notification collaborator (built if omitted)

    Returns:
        Configured ReturnService instance
    """
    config = config or get_settings()
    return ReturnService(
        repository=repository or create_return_repository(config),
        orders=orders or create_order_repository(config),
        warehouses=warehouses or create_shipment_ledger(config),
        gateway=gateway or create_carrier_gateway(config),
        notification_client=notification_client or create_notification_client(config),
        event_bus=event_bus,
        return_window_days=config.return_window_days,
        returns_email=config.returns_notification_email,
    )
