# tests/unit/services/paypal/test_paypal_client.py
from decimal import Decimal

import httpx
import pytest

from app.core.exceptions import PayPalAPIError, PayPalConfigError
from app.services.paypal.client import PayPalClient, parse_captured_payment


def test_sandbox_by_default(settings):
    client = PayPalClient(settings)
    assert client.BASE_URL == "https://api-m.sandbox.paypal.com"


def test_live_mode(settings):
    settings.PAYPAL_MODE = "live"
    client = PayPalClient(settings)
    assert client.BASE_URL == "https://api-m.paypal.com"


@pytest.mark.asyncio
async def test_missing_credentials(settings, mock_httpx):
    settings.PAYPAL_CLIENT_ID = ""
    client = PayPalClient(settings)

    assert client.is_configured is False
    with pytest.raises(PayPalConfigError):
        await client.get_client_token()
    mock_httpx.request.assert_not_called()


@pytest.mark.asyncio
async def test_get_client_token(settings, mock_httpx, make_response):
    mock_httpx.request.return_value = make_response(json_data={"access_token": "client-token-1"})
    client = PayPalClient(settings)

    token = await client.get_client_token()

    assert token == "client-token-1"
    _, kwargs = mock_httpx.request.call_args
    assert kwargs["url"] == "https://api-m.sandbox.paypal.com/v1/oauth2/token"
    assert kwargs["auth"] == ("paypal_id", "paypal_secret")
    assert kwargs["data"] == {
        "grant_type": "client_credentials",
        "response_type": "client_token",
        "intent": "sdk_init",
    }


@pytest.mark.asyncio
async def test_token_failure_raises(settings, mock_httpx, make_response):
    mock_httpx.request.return_value = make_response(status_code=401, text="invalid_client")
    client = PayPalClient(settings)

    with pytest.raises(PayPalAPIError) as exc_info:
        await client.get_access_token()
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_create_order(settings, mock_httpx, make_response):
    mock_httpx.request.side_effect = [
        make_response(json_data={"access_token": "bearer-1"}),
        make_response(status_code=201, json_data={"id": "ORDER-1", "status": "CREATED"}),
    ]
    client = PayPalClient(settings)

    result = await client.create_order("9.99", "USD", "CAPTURE")

    assert result.status_code == 201
    assert result.body["id"] == "ORDER-1"
    order_call = mock_httpx.request.call_args_list[1]
    assert order_call.kwargs["url"] == "https://api-m.sandbox.paypal.com/v2/checkout/orders"
    assert order_call.kwargs["headers"]["Authorization"] == "Bearer bearer-1"
    assert order_call.kwargs["json"] == {
        "intent": "CAPTURE",
        "purchase_units": [{"amount": {"currency_code": "USD", "value": "9.99"}}],
    }


@pytest.mark.asyncio
async def test_capture_order_passes_through_errors(settings, mock_httpx, make_response):
    mock_httpx.request.side_effect = [
        make_response(json_data={"access_token": "bearer-1"}),
        make_response(status_code=422, json_data={"name": "UNPROCESSABLE_ENTITY"}),
    ]
    client = PayPalClient(settings)

    result = await client.capture_order("ORDER-1")

    assert result.status_code == 422
    assert result.body["name"] == "UNPROCESSABLE_ENTITY"
    assert mock_httpx.request.call_args_list[1].kwargs["url"].endswith("/v2/checkout/orders/ORDER-1/capture")
    assert mock_httpx.request.call_args_list[1].kwargs["headers"]["Prefer"] == "return=representation"


@pytest.mark.asyncio
async def test_network_error(settings, mock_httpx):
    mock_httpx.request.side_effect = httpx.ConnectError("unreachable")
    client = PayPalClient(settings)

    with pytest.raises(PayPalAPIError):
        await client.get_access_token()


@pytest.mark.asyncio
async def test_create_order_tags_shop(settings, mock_httpx, make_response):
    mock_httpx.request.side_effect = [
        make_response(json_data={"access_token": "bearer-1"}),
        make_response(status_code=201, json_data={"id": "ORDER-1", "status": "CREATED"}),
    ]
    client = PayPalClient(settings)

    await client.create_order("9.99", "USD", "CAPTURE", custom_id="my-store.myshopify.com")

    purchase_unit = mock_httpx.request.call_args_list[1].kwargs["json"]["purchase_units"][0]
    assert purchase_unit["custom_id"] == "my-store.myshopify.com"


def captured_body(value="9.99", currency="USD", custom_id="my-store.myshopify.com", status="COMPLETED"):
    return {
        "id": "ORDER-1",
        "status": "COMPLETED",
        "purchase_units": [{
            "payments": {"captures": [{
                "status": status,
                "amount": {"currency_code": currency, "value": value},
                "custom_id": custom_id,
            }]},
        }],
    }


def test_parse_captured_payment():
    payment = parse_captured_payment(captured_body())

    assert payment.value == Decimal("9.99")
    assert payment.currency == "USD"
    assert payment.custom_id == "my-store.myshopify.com"


@pytest.mark.parametrize("body", [
    {"status": "COMPLETED"},
    {"purchase_units": []},
    {"purchase_units": [{"payments": {"captures": []}}]},
    captured_body(value="not-a-number"),
    captured_body(status="PENDING"),
])
def test_parse_captured_payment_without_a_completed_capture(body):
    assert parse_captured_payment(body) is None
