from fastapi import Depends, Request

from app.core.config import Settings, get_settings
from app.services.image_service import ImageService
from app.services.optimizer import ImageOptimizer
from app.services.pagespeed import PageSpeedClient
from app.services.paypal.client import PayPalClient
from app.services.scan_service import ScanService
from app.services.shopify.client import ShopifyClient
from app.services.shopify.oauth import NonceStore
from app.services.storage import ShopStorage


def get_storage(request: Request) -> ShopStorage:
    """Storage backend chosen at startup (see app.main.lifespan)."""
    return request.app.state.storage


def get_nonce_store(request: Request) -> NonceStore:
    return request.app.state.nonce_store


def get_shopify_client(settings: Settings = Depends(get_settings)) -> ShopifyClient:
    return ShopifyClient(settings)


def get_paypal_client(settings: Settings = Depends(get_settings)) -> PayPalClient:
    return PayPalClient(settings)


def get_scan_service(
    storage: ShopStorage = Depends(get_storage),
    shopify_client: ShopifyClient = Depends(get_shopify_client),
    settings: Settings = Depends(get_settings),
) -> ScanService:
    return ScanService(storage, shopify_client, PageSpeedClient(settings), settings)


def get_image_service(
    storage: ShopStorage = Depends(get_storage),
    shopify_client: ShopifyClient = Depends(get_shopify_client),
    settings: Settings = Depends(get_settings),
) -> ImageService:
    return ImageService(storage, ImageOptimizer(settings), shopify_client)
