"""
Base Service Client for Internal Microservice Communication

Base class for HTTP clients that call peer services (notification, catalog).
"""

import httpx
import logging
from typing import Optional, Dict, Any
from abc import ABC

logger = logging.getLogger(__name__)


class BaseServiceClient(ABC):
    """
    Microservice client base class

    Handles:
    1. Base URL resolution (explicit URL or localhost default port)
    2. HTTP client management
    3. Timeout control

    Example:
        class NotificationClient(BaseServiceClient):
            service_name = "notification_service"
            default_port = 8206

            async def send(self, payload):
                response = await self.post("/api/v1/notifications/send", json=payload)
                return response.json()
    """

    # Subclasses define these
    service_name: str = None
    default_port: int = None

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize service client

        Args:
            base_url: Service base URL (defaults to localhost:<default_port>)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not self.service_name:
            raise ValueError(f"{self.__class__.__name__} must define 'service_name'")

        if base_url:
            self.base_url = base_url.rstrip('/')
        else:
            self.base_url = f"http://localhost:{self.default_port}" if self.default_port else "http://localhost:8000"

        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers=self._build_default_headers(),
            transport=transport,
        )

        logger.debug(f"Initialized {self.service_name} client: {self.base_url}")

    def _build_default_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": f"artstore-internal-client/{self.service_name}",
        }

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()
        logger.debug(f"Closed {self.service_name} client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """GET request"""
        url = f"{self.base_url}{path}"
        return await self.client.get(url, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """POST request"""
        url = f"{self.base_url}{path}"
        return await self.client.post(url, json=json, headers=headers)

    async def health_check(self) -> bool:
        """Check whether the peer service answers /health"""
        try:
            response = await self.get("/health")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"{self.service_name} health check failed: {e}")
            return False


__all__ = ["BaseServiceClient"]
