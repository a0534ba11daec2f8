#!/usr/bin/env python3
"""Storefront main configuration

Combines all sub-configs and adds the fulfillment and returns settings
(return window, download link signing, notification endpoint, service ports).
"""
import os
from dataclasses import dataclass, field

from .carrier_config import CarrierConfig
from .infra_config import InfraConfig
from .logging_config import LoggingConfig


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class StorefrontConfig:
    """Main storefront fulfillment configuration"""

    environment: str = "development"

    # Returns
    return_window_days: int = 7
    returns_notification_email: str = "returns@artstore.local"

    # Digital downloads
    download_link_secret: str = "change-me-download-secret"
    download_link_ttl_days: int = 30
    storefront_base_url: str = "http://localhost:5173"

    # Notification collaborator
    notification_service_url: str = "http://localhost:8206"

    # Service ports
    order_service_port: int = 8210
    shipping_service_port: int = 8240
    return_service_port: int = 8241

    # Sub-configs
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infra: InfraConfig = field(default_factory=InfraConfig)
    carrier: CarrierConfig = field(default_factory=CarrierConfig)

    @classmethod
    def from_env(cls) -> 'StorefrontConfig':
        """Load storefront config from environment variables"""
        return cls(
            environment=os.getenv("ENV") or os.getenv("ENVIRONMENT", "development"),
            return_window_days=_int(os.getenv("RETURN_WINDOW_DAYS", "7"), 7),
            returns_notification_email=os.getenv("RETURNS_NOTIFICATION_EMAIL", "returns@artstore.local"),
            download_link_secret=os.getenv("DOWNLOAD_LINK_SECRET", "change-me-download-secret"),
            download_link_ttl_days=_int(os.getenv("DOWNLOAD_LINK_TTL_DAYS", "30"), 30),
            storefront_base_url=os.getenv("STOREFRONT_BASE_URL", "http://localhost:5173"),
            notification_service_url=os.getenv("NOTIFICATION_SERVICE_URL", "http://localhost:8206"),
            order_service_port=_int(os.getenv("ORDER_SERVICE_PORT", "8210"), 8210),
            shipping_service_port=_int(os.getenv("SHIPPING_SERVICE_PORT", "8240"), 8240),
            return_service_port=_int(os.getenv("RETURN_SERVICE_PORT", "8241"), 8241),
            logging=LoggingConfig.from_env(),
            infra=InfraConfig.from_env(),
            carrier=CarrierConfig.from_env(),
        )
