# tests/test_routes/test_webhook_routes.py
import pytest


@pytest.mark.parametrize("path", [
    "/api/webhooks/customers/data_request",
    "/api/webhooks/customers/redact",
    "/api/webhooks/shop/redact",
])
def test_gdpr_webhooks_always_acknowledge(test_client, path):
    response = test_client.post(
        path,
        json={"shop_domain": "my-store.myshopify.com"},
        headers={"X-Shopify-Shop-Domain": "my-store.myshopify.com"},
    )

    assert response.status_code == 200
    assert response.json() == {"status": "received"}


def test_gdpr_webhook_without_body(test_client):
    response = test_client.post("/api/webhooks/shop/redact")
    assert response.status_code == 200


def test_health(test_client):
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["storage"] == "memory"
