# tests/test_routes/test_paypal_routes.py
import asyncio

import pytest

from app.core.exceptions import DatabaseError, PayPalAPIError
from app.services.paypal.client import PayPalClient, PayPalResponse


def captured(value="9.99", currency="USD", custom_id="my-store.myshopify.com"):
    return PayPalResponse(status_code=201, body={
        "id": "ORDER-1",
        "status": "COMPLETED",
        "purchase_units": [{
            "payments": {"captures": [{
                "status": "COMPLETED",
                "amount": {"currency_code": currency, "value": value},
                "custom_id": custom_id,
            }]},
        }],
    })


def test_setup_returns_client_token(test_client, mocker):
    mocker.patch.object(PayPalClient, "get_client_token", return_value="client-token-1")

    response = test_client.get("/api/paypal/setup")

    assert response.status_code == 200
    assert response.json() == {"clientToken": "client-token-1"}


def test_setup_without_credentials(test_client, settings):
    settings.PAYPAL_CLIENT_SECRET = ""

    response = test_client.get("/api/paypal/setup")

    assert response.status_code == 503
    assert response.json()["error"] == "PayPal not configured"


def test_setup_upstream_failure(test_client, mocker):
    mocker.patch.object(PayPalClient, "get_client_token", side_effect=PayPalAPIError("denied", 401))

    response = test_client.get("/api/paypal/setup")

    assert response.status_code == 500
    assert response.json()["details"] == "denied"


@pytest.mark.parametrize("body, error", [
    ({"amount": "abc", "currency": "USD", "intent": "CAPTURE"}, "Invalid amount"),
    ({"amount": "0", "currency": "USD", "intent": "CAPTURE"}, "Invalid amount"),
    ({"amount": "-5", "currency": "USD", "intent": "CAPTURE"}, "Invalid amount"),
    ({"currency": "USD", "intent": "CAPTURE"}, "Invalid amount"),
    ({"amount": "9.99", "intent": "CAPTURE"}, "Currency is required"),
    ({"amount": "9.99", "currency": "USD"}, "Intent is required"),
])
def test_create_order_validation(test_client, mocker, body, error):
    create = mocker.patch.object(PayPalClient, "create_order")

    response = test_client.post("/api/paypal/order", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": error}
    create.assert_not_called()


def test_create_order_proxies_paypal(test_client, mocker):
    create = mocker.patch.object(
        PayPalClient, "create_order",
        return_value=PayPalResponse(status_code=201, body={"id": "ORDER-1", "status": "CREATED"}),
    )

    response = test_client.post("/api/paypal/order", json={"amount": "9.99", "currency": "USD", "intent": "CAPTURE"})

    assert response.status_code == 201
    assert response.json()["id"] == "ORDER-1"
    create.assert_awaited_once_with("9.99", "USD", "CAPTURE", custom_id=None)


def test_capture_marks_shop_pro(test_client, app_storage, mocker):
    shop = asyncio.run(app_storage.create_shop("my-store.myshopify.com"))
    mocker.patch.object(PayPalClient, "capture_order", return_value=captured())

    response = test_client.post("/api/paypal/order/ORDER-1/capture", params={"shop": "my-store.myshopify.com"})

    assert response.status_code == 201
    assert asyncio.run(app_storage.get_shop_by_id(shop.id)).is_pro == 1


def test_incomplete_capture_leaves_shop_free(test_client, app_storage, mocker):
    shop = asyncio.run(app_storage.create_shop("my-store.myshopify.com"))
    mocker.patch.object(
        PayPalClient, "capture_order",
        return_value=PayPalResponse(status_code=422, body={"name": "UNPROCESSABLE_ENTITY"}),
    )

    response = test_client.post("/api/paypal/order/ORDER-1/capture", params={"shop": "my-store.myshopify.com"})

    assert response.status_code == 422
    assert asyncio.run(app_storage.get_shop_by_id(shop.id)).is_pro == 0


def test_capture_failure(test_client, mocker):
    mocker.patch.object(PayPalClient, "capture_order", side_effect=PayPalAPIError("timeout"))

    response = test_client.post("/api/paypal/order/ORDER-1/capture")

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to capture order"


@pytest.mark.parametrize("body", [
    None,
    {"amount": "9.99", "currency": 5, "intent": "CAPTURE"},
    {"amount": True, "currency": "USD", "intent": "CAPTURE"},
    {"amount": "9.99", "currency": "USD", "intent": ["CAPTURE"]},
])
def test_create_order_malformed_body_is_400(test_client, mocker, body):
    create = mocker.patch.object(PayPalClient, "create_order")

    response = test_client.post("/api/paypal/order", json=body)

    assert response.status_code == 400
    create.assert_not_called()


def test_create_order_tags_the_shop(test_client, mocker):
    create = mocker.patch.object(
        PayPalClient, "create_order",
        return_value=PayPalResponse(status_code=201, body={"id": "ORDER-1", "status": "CREATED"}),
    )

    test_client.post(
        "/api/paypal/order",
        json={"amount": "9.99", "currency": "USD", "intent": "CAPTURE", "shop": "my-store.myshopify.com"},
    )

    create.assert_awaited_once_with("9.99", "USD", "CAPTURE", custom_id="my-store.myshopify.com")


@pytest.mark.parametrize("response_body", [
    captured(value="0.01").body,
    captured(currency="EUR").body,
    captured(custom_id="other-store.myshopify.com").body,
    {"id": "ORDER-1", "status": "COMPLETED"},
])
def test_capture_that_does_not_pay_for_pro_leaves_shop_free(test_client, app_storage, mocker, response_body):
    shop = asyncio.run(app_storage.create_shop("my-store.myshopify.com"))
    mocker.patch.object(
        PayPalClient, "capture_order",
        return_value=PayPalResponse(status_code=201, body=response_body),
    )

    response = test_client.post("/api/paypal/order/ORDER-1/capture", params={"shop": "my-store.myshopify.com"})

    assert response.status_code == 201
    assert asyncio.run(app_storage.get_shop_by_id(shop.id)).is_pro == 0


def test_capture_storage_failure_is_500(test_client, app_storage, mocker):
    mocker.patch.object(PayPalClient, "capture_order", return_value=captured())
    mocker.patch.object(app_storage, "get_shop_by_domain", side_effect=DatabaseError("connection lost"))

    response = test_client.post("/api/paypal/order/ORDER-1/capture", params={"shop": "my-store.myshopify.com"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Payment captured but the upgrade failed"
