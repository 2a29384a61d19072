# app/routes/platforms/shopify.py
"""
Shopify app install flow.

- /shopify/install: redirect the merchant to Shopify's OAuth consent screen
- /shopify/callback: exchange the code for an offline token and store it
- /shopify/session: tell the embedded app whether the shop is installed
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.core.config import Settings, get_settings
from app.core.exceptions import ShopifyAPIError
from app.dependencies import get_nonce_store, get_shopify_client, get_storage
from app.services.shopify.client import ShopifyClient
from app.services.shopify.oauth import (
    NonceStore,
    build_app_install_hint,
    build_install_url,
    generate_nonce,
    get_base_url,
    verify_hmac,
    verify_timestamp,
)
from app.services.shopify.utils import validate_shop_domain
from app.services.storage import ShopStorage

router = APIRouter(prefix="/api", tags=["shopify"])

logger = logging.getLogger(__name__)


@router.get("/shopify/install")
async def install(
    shop: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    nonce_store: NonceStore = Depends(get_nonce_store),
):
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop parameter")
    if not validate_shop_domain(shop):
        raise HTTPException(status_code=400, detail="Invalid shop domain")
    if not settings.SHOPIFY_API_KEY:
        logger.error("SHOPIFY_API_KEY is not configured")
        raise HTTPException(status_code=500, detail="Shopify app is not configured")

    nonce = generate_nonce()
    nonce_store.store(nonce, shop)

    logger.info(f"Starting OAuth install for {shop}")
    return RedirectResponse(url=build_install_url(shop, nonce, settings), status_code=302)


@router.get("/shopify/callback")
async def callback(
    request: Request,
    shop: Optional[str] = None,
    code: Optional[str] = None,
    state: Optional[str] = None,
    timestamp: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    nonce_store: NonceStore = Depends(get_nonce_store),
    storage: ShopStorage = Depends(get_storage),
    shopify_client: ShopifyClient = Depends(get_shopify_client),
):
    if not shop or not code or not state:
        raise HTTPException(status_code=400, detail="Missing required parameters")
    if not validate_shop_domain(shop):
        raise HTTPException(status_code=400, detail="Invalid shop domain")

    if settings.SHOPIFY_VERIFY_CALLBACK:
        if not nonce_store.validate(state, shop):
            logger.warning(f"OAuth callback for {shop} has an unknown or expired state")
            raise HTTPException(status_code=401, detail="Invalid state parameter")
        if not verify_timestamp(timestamp):
            logger.warning(f"OAuth callback for {shop} has a stale timestamp")
            raise HTTPException(status_code=401, detail="Request expired")
        if not verify_hmac(dict(request.query_params), settings.SHOPIFY_API_SECRET):
            logger.warning(f"OAuth callback for {shop} failed HMAC verification")
            raise HTTPException(status_code=401, detail="Invalid HMAC signature")
    else:
        logger.warning("OAuth callback verification (state/timestamp/HMAC) is disabled")

    if not settings.SHOPIFY_API_KEY or not settings.SHOPIFY_API_SECRET:
        logger.error("Shopify API credentials are not configured")
        raise HTTPException(status_code=500, detail="Shopify app is not configured")

    try:
        token_data = await shopify_client.exchange_access_token(shop, code)
    except ShopifyAPIError as e:
        logger.error(f"Token exchange failed for {shop}: {e}")
        raise HTTPException(status_code=500, detail="Failed to get access token")

    access_token = token_data["access_token"]
    scope = token_data.get("scope") or ""

    try:
        existing = await storage.get_shop_by_domain(shop)
        if existing:
            await storage.update_shop_token(existing.id, access_token, scope)
        else:
            await storage.create_shop(shop, access_token=access_token, scope=scope)
    except Exception:
        logger.exception(f"Failed to store token for {shop}")
        raise HTTPException(status_code=500, detail="Failed to complete installation")

    logger.info(f"App installed for {shop}")
    query = urlencode({"shop": shop, "installed": "true"})
    return RedirectResponse(url=f"{get_base_url(settings)}/?{query}", status_code=302)


@router.get("/shopify/session")
async def session(
    shop: Optional[str] = None,
    x_shopify_shop_domain: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    storage: ShopStorage = Depends(get_storage),
):
    shop = shop or x_shopify_shop_domain
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop parameter")
    if not validate_shop_domain(shop):
        raise HTTPException(status_code=400, detail="Invalid shop domain")

    try:
        shop_record = await storage.get_shop_by_domain(shop)
    except Exception:
        logger.exception(f"Failed to load session for {shop}")
        raise HTTPException(status_code=500, detail="Failed to load session")

    if not shop_record or not shop_record.access_token:
        return JSONResponse(
            status_code=401,
            content={
                "error": "App not installed",
                "installUrl": build_app_install_hint(shop, settings),
            },
        )

    return {
        "shop": shop_record.domain,
        "isPro": bool(shop_record.is_pro),
        "installed": True,
    }
