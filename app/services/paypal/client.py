import logging
import httpx
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from app.core.config import Settings, get_settings
from app.core.exceptions import PayPalAPIError, PayPalConfigError

logger = logging.getLogger(__name__)


@dataclass
class PayPalResponse:
    """Upstream status and body, passed through to the caller unchanged."""
    status_code: int
    body: Dict[str, Any]


class PayPalClient:
    """
    Asynchronous client for the PayPal REST API (httpx).

    - get_client_token(): browser SDK client token
    - create_order() / capture_order(): Orders v2, returned as-is so the
      route can mirror PayPal's status code and body

    Documentation: https://developer.paypal.com/api/rest/
    """

    LIVE_BASE_URL = "https://api-m.paypal.com"
    SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"

    def __init__(self, settings: Optional[Settings] = None, timeout: float = 30.0):
        self.settings = settings or get_settings()
        self.client_id = self.settings.PAYPAL_CLIENT_ID
        self.client_secret = self.settings.PAYPAL_CLIENT_SECRET
        self.use_sandbox = self.settings.PAYPAL_MODE.lower() != "live"
        self.BASE_URL = self.SANDBOX_BASE_URL if self.use_sandbox else self.LIVE_BASE_URL
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_credentials(self) -> None:
        if not self.is_configured:
            raise PayPalConfigError("PayPal credentials not configured")

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> httpx.Response:
        url = f"{self.BASE_URL}/{endpoint.lstrip('/')}"
        logger.debug(f"Making {method} request to {url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method=method, url=url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"PayPal network error: {str(e)}")
            raise PayPalAPIError(f"Network error: {str(e)}")

    async def _request_token(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        self._require_credentials()
        form = {"grant_type": "client_credentials"}
        form.update(extra or {})

        response = await self._make_request(
            "POST",
            "/v1/oauth2/token",
            headers={"Accept": "application/json"},
            data=form,
            auth=(self.client_id, self.client_secret),
        )
        if response.status_code != 200:
            logger.error(f"PayPal token request failed ({response.status_code}): {response.text[:300]}")
            raise PayPalAPIError(
                f"Token request failed ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )
        return response.json()

    async def get_access_token(self) -> str:
        return (await self._request_token())["access_token"]

    async def get_client_token(self) -> str:
        token_data = await self._request_token({"response_type": "client_token", "intent": "sdk_init"})
        logger.info("PayPal client token issued")
        return token_data["access_token"]

    async def _orders_request(
        self,
        endpoint: str,
        payload: Optional[Dict[str, Any]] = None,
        prefer: str = "return=minimal",
    ) -> PayPalResponse:
        access_token = await self.get_access_token()
        response = await self._make_request(
            "POST",
            endpoint,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "Prefer": prefer,
            },
            json=payload,
        )
        try:
            body = response.json() if response.content else {}
        except ValueError:
            raise PayPalAPIError(
                f"Unreadable PayPal response ({response.status_code})",
                status_code=response.status_code,
            )
        return PayPalResponse(status_code=response.status_code, body=body)

    async def create_order(
        self, amount: str, currency: str, intent: str, custom_id: Optional[str] = None
    ) -> PayPalResponse:
        purchase_unit: Dict[str, Any] = {"amount": {"currency_code": currency, "value": amount}}
        if custom_id:
            purchase_unit["custom_id"] = custom_id
        payload = {"intent": intent, "purchase_units": [purchase_unit]}
        result = await self._orders_request("/v2/checkout/orders", payload)
        logger.info(f"PayPal order created: {result.body.get('id')} ({result.status_code})")
        return result

    async def capture_order(self, order_id: str) -> PayPalResponse:
        # return=representation carries purchase_units with the captured amount
        result = await self._orders_request(
            f"/v2/checkout/orders/{order_id}/capture", prefer="return=representation"
        )
        logger.info(f"PayPal order captured: {order_id} ({result.body.get('status')})")
        return result


@dataclass
class CapturedPayment:
    value: Decimal
    currency: str
    custom_id: Optional[str] = None


def parse_captured_payment(body: Dict[str, Any]) -> Optional[CapturedPayment]:
    """First completed capture of a captured order, or None when the body has none."""
    try:
        capture = body["purchase_units"][0]["payments"]["captures"][0]
        amount = capture["amount"]
        value = Decimal(str(amount["value"]))
        currency = amount["currency_code"]
    except (KeyError, IndexError, TypeError, InvalidOperation):
        return None
    if capture.get("status", "COMPLETED") != "COMPLETED":
        return None
    custom_id = capture.get("custom_id") or body["purchase_units"][0].get("custom_id")
    return CapturedPayment(value=value, currency=currency, custom_id=custom_id)
