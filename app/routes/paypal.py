# app/routes/paypal.py
"""
PayPal checkout for the Pro upgrade.

Order create/capture responses mirror PayPal's status code and JSON body.
A shop is upgraded only when the capture pays PRO_PRICE in PRO_CURRENCY
and the order was created for that shop (custom_id).
"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings
from app.core.exceptions import PayPalAPIError, PayPalConfigError
from app.dependencies import get_paypal_client, get_storage
from app.schemas.paypal import PayPalOrderCreate
from app.services.paypal.client import CapturedPayment, PayPalClient, parse_captured_payment
from app.services.storage import ShopStorage

router = APIRouter(prefix="/api/paypal", tags=["paypal"])

logger = logging.getLogger(__name__)


def _parse_amount(amount) -> Optional[float]:
    if isinstance(amount, bool):
        return None
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


@router.get("/setup")
async def paypal_setup(paypal_client: PayPalClient = Depends(get_paypal_client)):
    if not paypal_client.is_configured:
        return JSONResponse(
            status_code=503,
            content={
                "error": "PayPal not configured",
                "message": "PayPal credentials are missing. Please contact support.",
            },
        )

    try:
        client_token = await paypal_client.get_client_token()
    except (PayPalAPIError, PayPalConfigError, KeyError) as e:
        logger.error(f"Failed to get PayPal client token: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to initialize PayPal", "details": str(e)},
        )

    return {"clientToken": client_token}


@router.post("/order")
async def create_order(
    payload: Optional[PayPalOrderCreate] = Body(None),
    paypal_client: PayPalClient = Depends(get_paypal_client),
):
    payload = payload or PayPalOrderCreate()
    if _parse_amount(payload.amount) is None:
        return JSONResponse(status_code=400, content={"error": "Invalid amount"})
    if not isinstance(payload.currency, str) or not payload.currency:
        return JSONResponse(status_code=400, content={"error": "Currency is required"})
    if not isinstance(payload.intent, str) or not payload.intent:
        return JSONResponse(status_code=400, content={"error": "Intent is required"})
    custom_id = payload.shop if isinstance(payload.shop, str) and payload.shop else None

    try:
        result = await paypal_client.create_order(
            str(payload.amount), payload.currency, payload.intent, custom_id=custom_id
        )
    except (PayPalAPIError, PayPalConfigError, KeyError) as e:
        logger.error(f"Failed to create PayPal order: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to create order", "details": str(e)})

    return JSONResponse(status_code=result.status_code, content=result.body)


def _pays_for_pro(payment: Optional[CapturedPayment], shop: str, settings: Settings) -> bool:
    if payment is None:
        return False
    if payment.currency != settings.PRO_CURRENCY or payment.value < Decimal(settings.PRO_PRICE):
        return False
    return payment.custom_id == shop


@router.post("/order/{order_id}/capture")
async def capture_order(
    order_id: str,
    shop: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    paypal_client: PayPalClient = Depends(get_paypal_client),
    storage: ShopStorage = Depends(get_storage),
):
    try:
        result = await paypal_client.capture_order(order_id)
    except (PayPalAPIError, PayPalConfigError, KeyError) as e:
        logger.error(f"Failed to capture PayPal order {order_id}: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to capture order", "details": str(e)})

    if shop and result.body.get("status") == "COMPLETED":
        payment = parse_captured_payment(result.body)
        if not _pays_for_pro(payment, shop, settings):
            logger.warning(f"Captured order {order_id} does not cover Pro for {shop}, shop left unchanged")
        else:
            try:
                shop_record = await storage.get_shop_by_domain(shop)
                if shop_record:
                    await storage.update_shop_pro_status(shop_record.id, True)
                    logger.info(f"{shop} upgraded to Pro (order {order_id})")
                else:
                    logger.warning(f"Captured order {order_id} for unknown shop {shop}")
            except Exception:
                logger.exception(f"Failed to upgrade {shop} after capturing order {order_id}")
                raise HTTPException(status_code=500, detail="Payment captured but the upgrade failed")

    return JSONResponse(status_code=result.status_code, content=result.body)
