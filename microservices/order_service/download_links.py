"""
Digital Download Links

Signs one HS256 token per digital order item and verifies it when the
customer follows the link.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from .models import DownloadLink, DownloadVerification, OrderItem

logger = logging.getLogger(__name__)

TOKEN_TYPE = "download"
ISSUER = "artstore"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DownloadLinkSigner:
    """
    Issues and verifies download tokens

    Args:
        secret_key: HMAC secret shared by issuer and verifier
        ttl_days: Link lifetime
        base_url: Storefront origin the link points at
        clock: Time source used for iat/exp
    """

    def __init__(
        self,
        secret_key: str,
        ttl_days: int = 30,
        base_url: str = "http://localhost:5173",
        clock: Callable[[], datetime] = _utc_now,
        algorithm: str = "HS256",
    ):
        self.secret_key = secret_key
        self.ttl_days = ttl_days
        self.base_url = base_url.rstrip("/")
        self.clock = clock
        self.algorithm = algorithm

    def issue(self, order_id: str, item: OrderItem) -> DownloadLink:
        """Signed link for one digital item"""
        now = self.clock()
        expires = now + timedelta(days=self.ttl_days)
        payload = {
            "iss": ISSUER,
            "sub": f"{order_id}:{item.item_id}",
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
            "type": TOKEN_TYPE,
            "order_id": order_id,
            "item_id": item.item_id,
            "product_id": item.product_id,
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        url = f"{self.base_url}/download/{item.product_id}?token={token}&order={order_id}"

        logger.debug(f"Issued download link for order {order_id} item {item.item_id}, expires: {expires}")
        return DownloadLink(
            item_id=item.item_id,
            product_id=item.product_id,
            product_title=item.product_title,
            url=url,
            token=token,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def verify(self, token: str, product_id: Optional[str] = None) -> DownloadVerification:
        """Check signature, expiry and (optionally) the product the link is used for"""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=ISSUER,
            )
        except jwt.ExpiredSignatureError:
            return DownloadVerification(valid=False, error="Download link has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected download token: {e}")
            return DownloadVerification(valid=False, error="Invalid download link")

        if payload.get("type") != TOKEN_TYPE:
            return DownloadVerification(valid=False, error="Invalid download link")
        if product_id and payload.get("product_id") != product_id:
            return DownloadVerification(valid=False, error="Download link is for a different product")

        return DownloadVerification(
            valid=True,
            order_id=payload.get("order_id"),
            item_id=payload.get("item_id"),
            product_id=payload.get("product_id"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
