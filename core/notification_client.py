"""
Notification Service Client

Sends templated notifications (order confirmation, return updates) through
the notification service. Template rendering happens on the other side;
callers only learn whether the send succeeded.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from .service_client_base import BaseServiceClient

logger = logging.getLogger(__name__)


class NotificationResult(BaseModel):
    """Outcome of a notification send"""
    success: bool
    error: Optional[str] = None
    notification_id: Optional[str] = None


class NotificationClient(BaseServiceClient):
    """HTTP client for the notification service"""

    service_name = "notification_service"
    default_port = 8206

    async def notify(
        self,
        kind: str,
        recipient: str,
        template_data: Dict[str, Any],
    ) -> NotificationResult:
        """
        Send a templated notification.

        Args:
            kind: Template key, e.g. "order_confirmation"
            recipient: Email address
            template_data: Values for the template

        Returns:
            NotificationResult; transport failures are reported, not raised
        """
        payload = {
            "type": "email",
            "template": kind,
            "recipient_email": recipient,
            "variables": template_data,
        }
        try:
            response = await self.post("/api/v1/notifications/send", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Notification {kind} to {recipient} failed: {e}")
            return NotificationResult(success=False, error=f"notification service unreachable: {e}")

        if response.status_code >= 400:
            logger.error(f"Notification service error: {response.status_code} - {response.text}")
            return NotificationResult(success=False, error=f"notification service returned {response.status_code}")

        body = response.json() if response.content else {}
        if body.get("success") is False:
            return NotificationResult(success=False, error=body.get("error") or body.get("message"))

        notification = body.get("notification") or {}
        return NotificationResult(
            success=True,
            notification_id=notification.get("notification_id") or body.get("notification_id"),
        )


__all__ = ["NotificationClient", "NotificationResult"]
