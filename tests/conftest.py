"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (services with mocked dependencies)
    - unit/       : Unit tests (pure functions, models, no I/O)
"""
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Keep the developer's .env out of test runs
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("CARRIER_API_TOKEN", "")

# Import shared fixtures from tests/fixtures
from tests.fixtures import (
    make_order,
    make_warehouse,
)


# =============================================================================
# Test Configuration
# =============================================================================

class TestConfig:
    """Centralized test configuration"""

    SERVICES = {
        "notification_service": 8206,
        "order_service": 8210,
        "shipping_service": 8240,
        "return_service": 8241,
    }

    # Fixed "now" shared by clock-driven tests
    FIXED_NOW = datetime(2026, 3, 15, 10, 30, tzinfo=timezone.utc)

    @classmethod
    def get_service_url(cls, service_name: str) -> str:
        port = cls.SERVICES.get(service_name)
        if not port:
            raise ValueError(f"Unknown service: {service_name}")
        return f"http://localhost:{port}"


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration"""
    return TestConfig()


@pytest.fixture
def fixed_clock():
    """Clock returning TestConfig.FIXED_NOW"""
    return lambda: TestConfig.FIXED_NOW


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_order():
    """Completed, in-window poster order"""
    return make_order()


@pytest.fixture
def sample_warehouse():
    """Active warehouse registered with the carrier"""
    return make_warehouse()


# =============================================================================
# Assertion Helpers
# =============================================================================

class AssertionHelpers:
    """Custom assertion helpers for tests"""

    @staticmethod
    def assert_has_fields(data: Dict, fields: List[str]):
        """Assert dict has required fields"""
        missing = [f for f in fields if f not in data]
        assert not missing, f"Missing fields: {missing}"

    @staticmethod
    def assert_event_published(events: List[Dict], event_type: str, **kwargs):
        """Assert an event was published with expected data"""
        matching = [e for e in events if e.get("type") == event_type]
        assert matching, f"Event '{event_type}' not found in {events}"

        if kwargs:
            for event in matching:
                if all(event.get("data", {}).get(k) == v for k, v in kwargs.items()):
                    return event
            assert False, f"No event matched criteria: {kwargs}"

        return matching[0]


@pytest.fixture
def assertions() -> AssertionHelpers:
    """Provide assertion helpers"""
    return AssertionHelpers()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
