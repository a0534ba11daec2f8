#!/usr/bin/env python3
"""
Core Module for the Storefront Fulfillment Services

Shared infrastructure used by the order, shipping and return services.

COMPONENTS:
    - config/: Dataclass configuration loaded from environment (+ dotenv)
    - logger.py: Service logger setup
    - postgres_client.py: asyncpg pool wrapper
    - service_client_base.py: Base HTTP client for peer services
    - notification_client.py: Templated notification sender
    - event_bus.py: Request-scoped in-process event bus

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("shipping_service")
"""
