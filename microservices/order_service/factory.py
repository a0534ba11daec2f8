"""
Order Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_order_service
    service = create_order_service(settings, event_bus=bus)
"""
from typing import Optional

from core.config import StorefrontConfig, get_settings
from core.notification_client import NotificationClient
from microservices.shipping_service.factory import create_shipping_service

from .download_links import DownloadLinkSigner
from .order_service import OrderFulfillmentService


def create_link_signer(config: StorefrontConfig) -> DownloadLinkSigner:
    return DownloadLinkSigner(
        secret_key=config.download_link_secret,
        ttl_days=config.download_link_ttl_days,
        base_url=config.storefront_base_url,
    )


def create_notification_client(config: StorefrontConfig) -> NotificationClient:
    return NotificationClient(base_url=config.notification_service_url)


def create_order_repository(config: StorefrontConfig):
    # Import real repository here (not at module level)
    from .order_repository import OrderRepository

    return OrderRepository(config=config.infra)


def create_order_service(
    config: Optional[StorefrontConfig] = None,
    event_bus=None,
    repository=None,
    shipping=None,
    notification_client=None,
    link_signer: Optional[DownloadLinkSigner] = None,
) -> OrderFulfillmentService:
    """
    Create OrderFulfillmentService with real dependencies.

    Use this in production, NOT in tests.

    Args:
        config: Storefront configuration
        event_bus: Request-scoped event bus, shared with the shipping service
        repository: Shared order repository (built if omitted)
        shipping: Shipment creator (in-process shipping service if omitted)
        notification_client: Notification collaborator (built if omitted)
        link_signer: Download link signer (built if omitted)

    Returns:
        Configured OrderFulfillmentService instance
    """
    config = config or get_settings()
    return OrderFulfillmentService(
        repository=repository or create_order_repository(config),
        shipping=shipping or create_shipping_service(config, event_bus=event_bus),
        notification_client=notification_client or create_notification_client(config),
        link_signer=link_signer or create_link_signer(config),
        event_bus=event_bus,
    )
