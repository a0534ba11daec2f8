#!/usr/bin/env python3
"""Logistics carrier configuration

Credentials, endpoint families and API version for the shipping carrier.
A missing token means the carrier is unconfigured; read-only lookups then
answer from the deterministic local responder.
"""
import os
from dataclasses import dataclass
from typing import Optional

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class CarrierConfig:
    """Carrier API settings"""

    api_token: Optional[str] = None
    auth_scheme: str = "Token"

    # Endpoint families
    base_url: str = "https://staging-express.delhivery.com"
    express_base_url: str = "https://express-dev-test.delhivery.com"
    track_base_url: str = "https://track.delhivery.com"

    # "express" or "ltl"
    api_version: str = "express"
    timeout_seconds: float = 10.0
    client_name: str = "artstore"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token and self.api_token.strip())

    @classmethod
    def from_env(cls) -> 'CarrierConfig':
        """Load carrier config from environment variables"""
        return cls(
            api_token=os.getenv("CARRIER_API_TOKEN") or None,
            auth_scheme=os.getenv("CARRIER_AUTH_SCHEME", "Token"),
            base_url=os.getenv("CARRIER_BASE_URL", "https://staging-express.delhivery.com"),
            express_base_url=os.getenv("CARRIER_EXPRESS_BASE_URL", "https://express-dev-test.delhivery.com"),
            track_base_url=os.getenv("CARRIER_TRACK_BASE_URL", "https://track.delhivery.com"),
            api_version=os.getenv("CARRIER_API_VERSION", "express").lower(),
            timeout_seconds=_float(os.getenv("CARRIER_TIMEOUT_SECONDS", "10"), 10.0),
            client_name=os.getenv("CARRIER_CLIENT_NAME", "artstore"),
        )
