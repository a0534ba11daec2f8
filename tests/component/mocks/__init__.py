"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (database, carrier, notifications).
"""

from .db_mock import MockPostgresClient
from .event_bus_mock import MockEventBus
from .order_mocks import MockNotificationClient, MockOrderRepository
from .return_mocks import MockReturnRepository
from .shipping_mocks import MockCarrierGateway, MockShipmentLedgerRepository

__all__ = [
    'MockPostgresClient',
    'MockEventBus',
    'MockNotificationClient',
    'MockOrderRepository',
    'MockReturnRepository',
    'MockCarrierGateway',
    'MockShipmentLedgerRepository',
]
