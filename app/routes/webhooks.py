"""
Shopify's mandatory GDPR webhooks.

No customer data is stored, so every request is acknowledged and logged.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Header

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

logger = logging.getLogger(__name__)


def _acknowledge(topic: str, shop_domain: Optional[str]):
    logger.info(f"GDPR webhook {topic} received for {shop_domain or 'unknown shop'}")
    return {"status": "received"}


@router.post("/customers/data_request")
async def customers_data_request(x_shopify_shop_domain: Optional[str] = Header(None)):
    return _acknowledge("customers/data_request", x_shopify_shop_domain)


@router.post("/customers/redact")
async def customers_redact(x_shopify_shop_domain: Optional[str] = Header(None)):
    return _acknowledge("customers/redact", x_shopify_shop_domain)


@router.post("/shop/redact")
async def shop_redact(x_shopify_shop_domain: Optional[str] = Header(None)):
    return _acknowledge("shop/redact", x_shopify_shop_domain)
