"""
Service API Component Tests

FastAPI endpoints of the order, shipping and return services with mocked
stores, carrier and notifications. The lifespan is not run; each test
installs its mocks on the module-level microservice instance.

Usage:
    pytest tests/component/test_service_api_component.py -v
"""
import pytest
from fastapi.testclient import TestClient

from microservices.order_service import main as order_main
from microservices.order_service.models import ProductType
from microservices.return_service import main as return_main
from microservices.shipping_service import main as shipping_main
from microservices.shipping_service.carrier.models import CarrierCapability, CarrierOutcome
from tests.fixtures import make_order

pytestmark = [pytest.mark.component]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def order_client(monkeypatch, mock_order_repo, ledger, mock_gateway, mock_notifications, link_signer):
    service = order_main.order_microservice
    monkeypatch.setattr(service, "repository", mock_order_repo)
    monkeypatch.setattr(service, "ledger", ledger)
    monkeypatch.setattr(service, "gateway", mock_gateway)
    monkeypatch.setattr(service, "notification_client", mock_notifications)
    monkeypatch.setattr(service, "link_signer", link_signer)
    return TestClient(order_main.app)


@pytest.fixture
def shipping_client(monkeypatch, ledger, mock_gateway):
    service = shipping_main.shipping_microservice
    monkeypatch.setattr(service, "ledger", ledger)
    monkeypatch.setattr(service, "gateway", mock_gateway)
    return TestClient(shipping_main.app)


@pytest.fixture
def return_client(monkeypatch, mock_return_repo, mock_order_repo, ledger, mock_gateway, mock_notifications):
    service = return_main.return_microservice
    monkeypatch.setattr(service, "repository", mock_return_repo)
    monkeypatch.setattr(service, "order_repository", mock_order_repo)
    monkeypatch.setattr(service, "ledger", ledger)
    monkeypatch.setattr(service, "gateway", mock_gateway)
    monkeypatch.setattr(service, "notification_client", mock_notifications)
    return TestClient(return_main.app)


def _checkout_payload(product_type="poster", **overrides):
    data = {
        "customer_name": "Asha Rao",
        "customer_email": "asha@example.com",
        "customer_phone": "9876543210",
        "shipping_address": {
            "address": "12 Carter Road, Bandra West",
            "city": "Mumbai",
            "state": "Maharashtra",
            "pincode": "400050",
        },
        "items": [
            {
                "product_id": f"prod_{product_type}_1",
                "product_title": "Monsoon Print",
                "quantity": 1,
                "unit_price": "1500",
                "product_type": product_type,
            }
        ],
        "total_amount": "1500",
        "payment_method": "card",
        "payment_id": "pay_test_123",
    }
    data.update(overrides)
    return data


# =============================================================================
# Order API
# =============================================================================

class TestOrderApi:
    """order_service endpoints"""

    def test_health(self, order_client):
        response = order_client.get("/health")

        assert response.status_code == 200
        assert response.json()["service"] == "order_service"

    def test_complete_poster_order_reports_events(self, order_client, mock_order_repo):
        response = order_client.post("/api/v1/orders/complete", json=_checkout_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["order_status"] == "processing"
        assert data["shipment"]["delivery_pincode"] == "400050"
        assert "shipment.created" in data["events"]
        assert "order.completed" in data["events"]
        assert len(mock_order_repo.orders) == 1

    def test_physical_order_without_address_is_422(self, order_client):
        response = order_client.post("/api/v1/orders/complete", json=_checkout_payload(shipping_address=None))

        assert response.status_code == 422

    def test_download_link_verifies(self, order_client):
        payload = _checkout_payload("digital", shipping_address=None, customer_phone=None)
        completed = order_client.post("/api/v1/orders/complete", json=payload).json()
        link = completed["download_links"][0]

        response = order_client.get(
            "/api/v1/downloads/verify", params={"token": link["token"], "product_id": "prod_digital_1"}
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert response.json()["order_id"] == completed["order_id"]

    def test_unknown_order_is_404(self, order_client):
        assert order_client.get("/api/v1/orders/order_missing").status_code == 404

    def test_uninitialized_service_is_503(self, monkeypatch):
        monkeypatch.setattr(order_main.order_microservice, "repository", None)

        response = TestClient(order_main.app).get("/api/v1/orders/order_x")

        assert response.status_code == 503


# =============================================================================
# Shipping API
# =============================================================================

class TestShippingApi:
    """shipping_service endpoints"""

    def test_pickup_auth_failure_keeps_401(self, shipping_client, mock_gateway):
        mock_gateway.set_failure(
            "request_pickup",
            CarrierCapability.REQUEST_PICKUP,
            CarrierOutcome.AUTH_ERROR,
            error="Unauthorized",
            status_code=401,
        )

        response = shipping_client.post(
            "/api/v1/pickups",
            json={"warehouse_id": "wh_test_mumbai", "pickup_date": "2026-03-16", "pickup_time": "11:00:00"},
        )

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["diagnostics"]["warehouse_name"] == "Mumbai Warehouse"

    def test_create_and_fetch_shipment(self, shipping_client):
        created = shipping_client.post(
            "/api/v1/shipments",
            json={
                "order_id": "order_api_1",
                "customer_name": "Asha Rao",
                "customer_phone": "9876543210",
                "delivery_address": "12 Carter Road",
                "delivery_pincode": "400050",
            },
        )
        waybill = created.json()["shipment"]["waybill"]

        response = shipping_client.get(f"/api/v1/shipments/{waybill}")

        assert created.status_code == 200
        assert response.status_code == 200
        assert response.json()["order_id"] == "order_api_1"

    def test_unknown_shipment_is_404(self, shipping_client):
        assert shipping_client.get("/api/v1/shipments/1490119999999").status_code == 404

    def test_serviceability(self, shipping_client):
        response = shipping_client.get("/api/v1/serviceability/400050")

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_bulk_serviceability(self, shipping_client):
        response = shipping_client.post("/api/v1/serviceability/bulk", json={"pincodes": ["400050", "560001"]})

        assert response.status_code == 200
        assert len(response.json()["data"]["results"]) == 2

    def test_expected_tat(self, shipping_client):
        response = shipping_client.post("/api/v1/expected-tat", json={
            "origin_pincode": "400069", "destination_pincode": "560001", "expected_pickup_date": "2026-03-16",
        })

        assert response.status_code == 200
        assert response.json()["data"]["expected_delivery_date"] == "2026-03-21"

    def test_delete_unknown_warehouse_is_404(self, shipping_client):
        response = shipping_client.delete("/api/v1/warehouses/wh_missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "RECORD_NOT_FOUND"

    def test_delete_warehouse(self, shipping_client, mock_ledger_repo):
        response = shipping_client.delete("/api/v1/warehouses/wh_test_mumbai")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert mock_ledger_repo.warehouses == {}


# =============================================================================
# Return API
# =============================================================================

class TestReturnApi:
    """return_service endpoints"""

    def test_create_and_fetch_return(self, return_client, mock_order_repo):
        order = make_order()
        mock_order_repo.set_order(order)

        created = return_client.post(
            "/api/v1/returns",
            json={
                "order_id": order.order_id,
                "item_id": order.items[0].item_id,
                "reason": "Print arrived creased",
                "requested_by": order.customer_email,
            },
        )
        return_id = created.json()["return_request"]["return_id"]

        response = return_client.get(f"/api/v1/returns/{return_id}")

        assert created.status_code == 200
        assert created.json()["success"] is True
        assert response.json()["status"] == "pending"

    def test_digital_item_not_eligible(self, return_client, mock_order_repo):
        order = make_order(product_types=[ProductType.DIGITAL])
        mock_order_repo.set_order(order)

        response = return_client.get(
            "/api/v1/returns/eligibility", params={"order_id": order.order_id, "item_id": order.items[0].item_id}
        )

        assert response.json() == {"eligible": False, "reason": "Digital products are not eligible for return"}

    def test_pickup_slots_validate_pincode(self, return_client):
        response = return_client.get("/api/v1/returns/pickup-slots", params={"pincode": "4000", "date": "2099-01-01"})

        assert response.status_code == 200
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_unknown_return_is_404(self, return_client):
        assert return_client.get("/api/v1/returns/return_missing").status_code == 404
