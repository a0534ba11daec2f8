"""
Download Link Unit Tests

DownloadLinkSigner issue/verify behaviour.

Usage:
    pytest tests/unit/orders/test_download_links.py -v
"""
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import jwt
import pytest

from microservices.order_service.download_links import DownloadLinkSigner
from microservices.order_service.models import ProductType
from tests.fixtures import make_order_item

pytestmark = [pytest.mark.unit]

SECRET = "test-download-secret"


@pytest.fixture
def signer():
    return DownloadLinkSigner(secret_key=SECRET, base_url="https://artstore.test/")


@pytest.fixture
def digital_item():
    return make_order_item("order_test_dl", ProductType.DIGITAL, item_id="item_test_dl")


class TestIssue:
    """DownloadLinkSigner.issue()"""

    def test_url_points_at_product(self, signer, digital_item):
        link = signer.issue("order_test_dl", digital_item)

        parsed = urlparse(link.url)
        assert parsed.netloc == "artstore.test"
        assert parsed.path == f"/download/{digital_item.product_id}"
        query = parse_qs(parsed.query)
        assert query["token"] == [link.token]
        assert query["order"] == ["order_test_dl"]

    def test_expiry_follows_ttl(self, digital_item):
        issued_at = datetime(2026, 3, 15, 10, 30, tzinfo=timezone.utc)
        signer = DownloadLinkSigner(secret_key=SECRET, ttl_days=7, clock=lambda: issued_at)

        link = signer.issue("order_test_dl", digital_item)

        assert link.expires_at == issued_at + timedelta(days=7)
        assert link.item_id == "item_test_dl"


class TestVerify:
    """DownloadLinkSigner.verify()"""

    def test_round_trip(self, signer, digital_item):
        link = signer.issue("order_test_dl", digital_item)

        result = signer.verify(link.token, product_id=digital_item.product_id)

        assert result.valid is True
        assert result.order_id == "order_test_dl"
        assert result.item_id == "item_test_dl"
        assert result.error is None

    def test_expired_link(self, digital_item):
        long_ago = datetime.now(timezone.utc) - timedelta(days=60)
        signer = DownloadLinkSigner(secret_key=SECRET, ttl_days=30, clock=lambda: long_ago)
        link = signer.issue("order_test_dl", digital_item)

        result = signer.verify(link.token)

        assert result.valid is False
        assert result.error == "Download link has expired"

    def test_wrong_product(self, signer, digital_item):
        link = signer.issue("order_test_dl", digital_item)

        result = signer.verify(link.token, product_id="prod_someone_else")

        assert result.valid is False
        assert result.error == "Download link is for a different product"

    def test_garbage_token(self, signer):
        result = signer.verify("not-a-token")

        assert result.valid is False
        assert result.error == "Invalid download link"

    def test_wrong_secret(self, signer, digital_item):
        link = DownloadLinkSigner(secret_key="other-secret").issue("order_test_dl", digital_item)

        assert signer.verify(link.token).error == "Invalid download link"

    def test_other_token_type_rejected(self, signer):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "iss": "artstore",
                "sub": "user_1",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(hours=1)).timestamp()),
                "type": "session",
            },
            SECRET,
            algorithm="HS256",
        )

        assert signer.verify(token).error == "Invalid download link"
