# app.services.shopify.client

import base64
import logging
import httpx
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any

from app.core.config import Settings, get_settings
from app.core.enums import CatalogSource, FallbackReason, ImageFormat
from app.core.exceptions import ShopifyAPIError, ShopifyAuthError
from app.services.shopify.utils import image_gid

logger = logging.getLogger(__name__)


# Fixed demo catalog served whenever live product data is unavailable.
# Same names, sizes and order on every call.
MOCK_PRODUCT_IMAGES = [
    {"name": "product_hero_1.jpg", "size": 2621440, "format": "JPG"},
    {"name": "collection_banner.png", "size": 3145728, "format": "PNG"},
    {"name": "product_detail_2.jpg", "size": 1887436, "format": "JPG"},
    {"name": "lifestyle_shot_3.png", "size": 2359296, "format": "PNG"},
    {"name": "product_zoom_4.jpg", "size": 1572864, "format": "JPG"},
    {"name": "hero_banner.png", "size": 4194304, "format": "PNG"},
    {"name": "category_thumb_5.jpg", "size": 1048576, "format": "JPG"},
    {"name": "product_variant_6.jpg", "size": 943718, "format": "JPG"},
    {"name": "promotional_banner.png", "size": 2097152, "format": "PNG"},
    {"name": "feature_image_7.jpg", "size": 786432, "format": "JPG"},
]

MOCK_PLACEHOLDER_URLS = [
    "https://images.unsplash.com/photo-1542291026-7eec264c27ff?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1526170375885-4d8ecf77b99f?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1585386959984-a4155224a1ad?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1560343090-f0409e92791a?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1572635196237-14b3f281503f?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1491553895911-0055eca6402d?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1583394838336-acd977736f90?w=200&h=200&fit=crop",
    "https://images.unsplash.com/photo-1546868871-7041f2a55e12?w=200&h=200&fit=crop",
]

MOCK_ASSET_ID_BASE = 1000000

# Byte-size heuristic: width x height x bytes-per-pixel x density
SIZE_DENSITY_FACTOR = 0.15
DEFAULT_IMAGE_DIMENSION = 800


@dataclass
class ShopifyImage:
    image_url: str
    image_name: str
    original_size: int
    format: str
    shopify_asset_id: str
    shopify_product_id: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProductFetchResult:
    """Outcome of a catalog fetch: live data, or the mock catalog plus why."""
    images: List[ShopifyImage] = field(default_factory=list)
    source: CatalogSource = CatalogSource.LIVE
    fallback_reason: Optional[FallbackReason] = None

    @property
    def is_live(self) -> bool:
        return self.source == CatalogSource.LIVE


def generate_mock_images(domain: str) -> List[ShopifyImage]:
    return [
        ShopifyImage(
            image_url=MOCK_PLACEHOLDER_URLS[index % len(MOCK_PLACEHOLDER_URLS)],
            image_name=img["name"],
            original_size=img["size"],
            format=img["format"],
            shopify_asset_id=image_gid(MOCK_ASSET_ID_BASE + index),
        )
        for index, img in enumerate(MOCK_PRODUCT_IMAGES)
    ]


def estimate_image_size(width: Optional[int], height: Optional[int], image_format: ImageFormat) -> int:
    """Heuristic byte count from pixel dimensions - not a measurement."""
    width = width or DEFAULT_IMAGE_DIMENSION
    height = height or DEFAULT_IMAGE_DIMENSION
    return round(width * height * image_format.bytes_per_pixel * SIZE_DENSITY_FACTOR)


def images_from_products(products: List[Dict[str, Any]]) -> List[ShopifyImage]:
    """Flatten REST products.json payloads into image descriptors."""
    images: List[ShopifyImage] = []
    for product in products:
        title = (product.get("title") or "")[:30]
        for image in product.get("images") or []:
            image_format = ImageFormat.from_url(image.get("src", ""))
            images.append(
                ShopifyImage(
                    image_url=image.get("src", ""),
                    image_name=f"{title}_{image.get('id')}.{image_format.value.lower()}",
                    original_size=estimate_image_size(image.get("width"), image.get("height"), image_format),
                    format=image_format.value,
                    shopify_asset_id=image_gid(image.get("id")),
                    shopify_product_id=str(image.get("product_id") or product.get("id") or "") or None,
                )
            )
    return images


class ShopifyClient:
    """
    Asynchronous client for the Shopify Admin REST API (httpx).

    - fetch_shopify_products(): paged products.json read, falling back to a
      deterministic mock catalog when no token is available or the call fails
    - get_shop_info(): shop.json
    - update_product_image(): write optimized bytes back to a product image
    - exchange_access_token(): OAuth code -> offline access token
    """

    PAGE_LIMIT = 50
    MAX_PAGES = 20

    def __init__(self, settings: Optional[Settings] = None, timeout: float = 30.0):
        self.settings = settings or get_settings()
        self.api_version = self.settings.SHOPIFY_API_VERSION
        self.timeout = timeout

    def _get_headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if access_token:
            headers["X-Shopify-Access-Token"] = access_token
        return headers

    def _admin_url(self, domain: str, path: str) -> str:
        return f"https://{domain.rstrip('/')}/admin/api/{self.api_version}/{path.lstrip('/')}"

    def resolve_token(self, access_token: Optional[str] = None) -> Optional[str]:
        """Per-shop token first, then the process-wide fallback."""
        return access_token or self.settings.SHOPIFY_ACCESS_TOKEN or None

    async def _make_request(
        self,
        method: str,
        url: str,
        access_token: Optional[str] = None,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> httpx.Response:
        """
        Make a request to Shopify.

        Raises:
            ShopifyAuthError: on 401/403
            ShopifyAPIError: on any other non-2xx status or a network failure
                (status_code is None for network failures)
        """
        logger.debug(f"Making {method} request to {url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._get_headers(access_token),
                    json=data,
                    params=params,
                )
        except httpx.RequestError as e:
            logger.error(f"Shopify network error: {str(e)}")
            raise ShopifyAPIError(f"Network error: {str(e)}")

        if response.status_code in (401, 403):
            logger.warning(f"Shopify rejected credentials ({response.status_code}) for {url}")
            raise ShopifyAuthError(f"Unauthorized: {response.text[:200]}", status_code=response.status_code)

        if response.status_code not in (200, 201, 202, 204):
            logger.error(f"Shopify API error {response.status_code}: {response.text[:500]}")
            raise ShopifyAPIError(
                f"Request failed ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )

        return response

    # --- Catalog ---

    async def fetch_shopify_products(self, domain: str, access_token: Optional[str] = None) -> ProductFetchResult:
        """Return every product image for a shop, or the mock catalog with the reason."""
        token = self.resolve_token(access_token)

        if not token:
            logger.info(f"No Shopify access token for {domain}, using demo catalog")
            return self._fallback(domain, FallbackReason.NO_TOKEN)

        products: List[Dict[str, Any]] = []
        url = self._admin_url(domain, "products.json")
        params: Optional[Dict] = {"limit": self.PAGE_LIMIT}

        try:
            for _ in range(self.MAX_PAGES):
                response = await self._make_request("GET", url, access_token=token, params=params)
                products.extend(response.json().get("products") or [])

                next_url = self._next_page_url(response)
                if not next_url:
                    break
                # page_info cursors carry their own limit
                url, params = next_url, None
        except ShopifyAPIError as e:
            reason = FallbackReason.NETWORK_ERROR if e.status_code is None else FallbackReason.HTTP_ERROR
            logger.warning(f"Falling back to demo catalog for {domain}: {e}")
            return self._fallback(domain, reason)
        except ValueError as e:
            logger.warning(f"Unreadable products payload from {domain}: {e}")
            return self._fallback(domain, FallbackReason.HTTP_ERROR)

        images = images_from_products(products)
        logger.info(f"Found {len(products)} products / {len(images)} images for {domain}")

        if not images:
            return self._fallback(domain, FallbackReason.EMPTY_RESULT)

        return ProductFetchResult(images=images, source=CatalogSource.LIVE)

    @staticmethod
    def _next_page_url(response: httpx.Response) -> Optional[str]:
        next_link = (response.links or {}).get("next")
        if isinstance(next_link, dict):
            return next_link.get("url")
        return None

    @staticmethod
    def _fallback(domain: str, reason: FallbackReason) -> ProductFetchResult:
        return ProductFetchResult(
            images=generate_mock_images(domain),
            source=CatalogSource.MOCK,
            fallback_reason=reason,
        )

    # --- Shop ---

    async def get_shop_info(self, domain: str, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """shop.json, or None when no token is available."""
        token = self.resolve_token(access_token)
        if not token:
            return None
        response = await self._make_request("GET", self._admin_url(domain, "shop.json"), access_token=token)
        return response.json().get("shop")

    # --- Write-back ---

    async def update_product_image(
        self,
        domain: str,
        access_token: str,
        product_id: str,
        image_id: str,
        data: bytes,
        filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Replace a product image's bytes with a base64 attachment."""
        payload: Dict[str, Any] = {
            "image": {
                "id": int(image_id),
                "attachment": base64.b64encode(data).decode("ascii"),
            }
        }
        if filename:
            payload["image"]["filename"] = filename

        url = self._admin_url(domain, f"products/{product_id}/images/{image_id}.json")
        response = await self._make_request("PUT", url, access_token=access_token, data=payload)
        logger.info(f"Updated Shopify image {image_id} on product {product_id} ({len(data)} bytes)")
        return response.json().get("image", {}) if response.status_code != 204 else {}

    # --- OAuth ---

    async def exchange_access_token(self, shop: str, code: str) -> Dict[str, Any]:
        """Exchange an OAuth authorization code for an access token."""
        url = f"https://{shop}/admin/oauth/access_token"
        response = await self._make_request(
            "POST",
            url,
            data={
                "client_id": self.settings.SHOPIFY_API_KEY,
                "client_secret": self.settings.SHOPIFY_API_SECRET,
                "code": code,
            },
        )
        token_data = response.json()
        if not token_data.get("access_token"):
            raise ShopifyAPIError("Token exchange returned no access_token", status_code=response.status_code)
        return token_data
