"""
Common/Shared Fixtures

Base factories and generators used across multiple services.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def make_order_id() -> str:
    """Generate a unique order ID"""
    return f"order_test_{uuid.uuid4().hex[:12]}"


def make_item_id() -> str:
    """Generate a unique order item ID"""
    return f"item_test_{uuid.uuid4().hex[:12]}"


def make_return_id() -> str:
    """Generate a unique return ID"""
    return f"return_test_{uuid.uuid4().hex[:12]}"


def make_email(prefix: Optional[str] = None) -> str:
    """Generate a unique email"""
    prefix = prefix or f"test_{uuid.uuid4().hex[:8]}"
    return f"{prefix}@example.com"


def make_timestamp() -> datetime:
    """Current UTC timestamp"""
    return datetime.now(timezone.utc)
