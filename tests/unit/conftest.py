"""
Unit Test Layer Configuration

Structure:
    tests/unit/
    ├── shipping/    Carrier classification, diagnostics, fallback, validation
    ├── orders/      Order status rules, parcel weight, download links
    ├── returns/     Return transitions and tracking mapping
    └── events/      Request-scoped event bus

Usage:
    pytest tests/unit -v                 # All unit tests
    pytest tests/unit/shipping -v        # One area
    pytest tests/unit -m unit -v         # By marker
"""
import os
import sys

import pytest

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
