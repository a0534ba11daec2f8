"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── mocks/                 Mock implementations
    ├── test_*_component.py    Service tests with mocked dependencies

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from microservices.order_service.download_links import DownloadLinkSigner
from microservices.shipping_service.shipment_ledger import ShipmentLedger
from microservices.shipping_service.shipping_service import ShippingService

from tests.component.mocks import (
    MockCarrierGateway,
    MockEventBus,
    MockNotificationClient,
    MockOrderRepository,
    MockPostgresClient,
    MockReturnRepository,
    MockShipmentLedgerRepository,
)
from tests.fixtures import make_warehouse


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Database Mocks
# =============================================================================

@pytest.fixture
def mock_db() -> MockPostgresClient:
    """Mock PostgreSQL client"""
    return MockPostgresClient()


# =============================================================================
# Event Bus Mocks
# =============================================================================

@pytest.fixture
def mock_event_bus() -> MockEventBus:
    """Mock request-scoped event bus"""
    return MockEventBus()


# =============================================================================
# Carrier and Ledger Mocks
# =============================================================================

@pytest.fixture
def mock_gateway() -> MockCarrierGateway:
    """Carrier gateway that accepts every request"""
    return MockCarrierGateway()


@pytest.fixture
def mock_ledger_repo() -> MockShipmentLedgerRepository:
    """Empty ledger store"""
    return MockShipmentLedgerRepository()


@pytest.fixture
def mock_ledger_repo_with_warehouse(mock_ledger_repo) -> MockShipmentLedgerRepository:
    """Ledger store with the active Mumbai warehouse"""
    mock_ledger_repo.set_warehouse(make_warehouse())
    return mock_ledger_repo


@pytest.fixture
def ledger(mock_ledger_repo_with_warehouse) -> ShipmentLedger:
    return ShipmentLedger(mock_ledger_repo_with_warehouse)


@pytest.fixture
def shipping_service(ledger, mock_gateway, mock_event_bus) -> ShippingService:
    return ShippingService(ledger=ledger, gateway=mock_gateway, event_bus=mock_event_bus)


# =============================================================================
# Order / Return Mocks
# =============================================================================

@pytest.fixture
def mock_order_repo() -> MockOrderRepository:
    return MockOrderRepository()


@pytest.fixture
def mock_return_repo() -> MockReturnRepository:
    return MockReturnRepository()


@pytest.fixture
def mock_notifications() -> MockNotificationClient:
    return MockNotificationClient()


@pytest.fixture
def link_signer() -> DownloadLinkSigner:
    """Signer with a test secret"""
    return DownloadLinkSigner(
        secret_key="component-test-secret",
        ttl_days=30,
        base_url="https://artstore.test",
    )
