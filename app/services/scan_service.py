# app/services/scan_service.py
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from app.core.config import Settings, get_settings
from app.core.enums import CatalogSource, FallbackReason, ImageStatus
from app.core.exceptions import ShopifyAPIError, ValidationError
from app.core.utils import format_bytes
from app.models.image_log import ImageLog
from app.models.shop import Shop
from app.services.pagespeed import PageSpeedClient, WebVitals
from app.services.shopify.client import ShopifyClient
from app.services.shopify.utils import extract_domain
from app.services.storage import ShopStorage

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

# (grade, max heavy images, total heavy bytes strictly below); rows are checked in order
GRADE_TABLE: Tuple[Tuple[str, int, int], ...] = (
    ("A", 0, 0),
    ("B", 2, 5 * MIB),
    ("C", 5, 10 * MIB),
    ("D", 10, 20 * MIB),
)
FAILING_GRADE = "F"

# Assumed transfer rate used to turn saved bytes into seconds
BYTES_PER_SECOND = 1.5 * MIB

# Shop-info latency heuristic
BASE_LATENCY_MS = 80
LATENCY_MS_PER_THRESHOLD = 150
MAX_LATENCY_MS = 500


def calculate_grade(
    heavy_count: int,
    total_heavy_bytes: int,
    table: Sequence[Tuple[str, int, int]] = GRADE_TABLE,
) -> str:
    """Letter grade for a store; more or bigger heavy images never improve it."""
    if heavy_count == 0:
        return table[0][0]
    for grade, max_count, max_bytes in table[1:]:
        if heavy_count <= max_count and total_heavy_bytes < max_bytes:
            return grade
    return FAILING_GRADE


def potential_savings(image_logs: Sequence[ImageLog], ratio: float) -> float:
    return sum(log.original_size - log.original_size * ratio for log in image_logs)


def estimate_latency(image_logs: Sequence[ImageLog], threshold_bytes: int) -> int:
    if not image_logs:
        average = 0.0
    else:
        average = sum(log.original_size for log in image_logs) / len(image_logs)
    return min(MAX_LATENCY_MS, round(BASE_LATENCY_MS + (average / threshold_bytes) * LATENCY_MS_PER_THRESHOLD))


@dataclass
class ScanResult:
    shop: Shop
    images: List[ImageLog]
    total_heavy_images: int
    potential_time_saved: float
    grade: str
    source: CatalogSource
    fallback_reason: Optional[FallbackReason] = None
    web_vitals: Optional[WebVitals] = None


@dataclass
class ShopInfo:
    name: str
    domain: str
    latency: int
    images_optimized: int
    total_images: int
    space_saved: int


class ScanService:
    """Runs a store scan and derives the summary numbers shown on the dashboard."""

    def __init__(
        self,
        storage: ShopStorage,
        shopify_client: ShopifyClient,
        pagespeed_client: Optional[PageSpeedClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.storage = storage
        self.shopify_client = shopify_client
        self.pagespeed_client = pagespeed_client
        self.settings = settings or get_settings()
        self.heavy_threshold = self.settings.HEAVY_IMAGE_THRESHOLD_BYTES
        self.ratio = self.settings.OPTIMIZATION_RATIO

    async def _get_or_create_shop(self, domain: str) -> Shop:
        shop = await self.storage.get_shop_by_domain(domain)
        if not shop:
            logger.info(f"First scan for {domain}, creating shop")
            try:
                shop = await self.storage.create_shop(domain)
            except ValidationError:
                # Created by a concurrent scan
                shop = await self.storage.get_shop_by_domain(domain)
                if not shop:
                    raise
        await self.storage.update_shop_scan_time(shop.id)
        return shop

    async def _get_web_vitals(self, domain: str) -> Optional[WebVitals]:
        if self.pagespeed_client is None:
            return None
        return await self.pagespeed_client.get_web_vitals(domain)

    async def run_scan(self, url) -> ScanResult:
        if not isinstance(url, str) or not url.strip():
            raise ValidationError("Invalid URL provided")

        domain = extract_domain(url)
        if not domain:
            raise ValidationError("Invalid URL provided")

        shop = await self._get_or_create_shop(domain)

        fetch_result, web_vitals = await asyncio.gather(
            self.shopify_client.fetch_shopify_products(domain, shop.access_token),
            self._get_web_vitals(domain),
        )
        if not fetch_result.is_live:
            logger.info(f"Scan of {domain} is using the demo catalog ({fetch_result.fallback_reason.value})")

        # Not atomic: rows are dropped before the new set is written
        await self.storage.delete_image_logs_by_shop_id(shop.id)
        image_logs = [
            await self.storage.create_image_log(shop.id, image.to_record())
            for image in fetch_result.images
        ]

        heavy = [log for log in image_logs if log.original_size > self.heavy_threshold]
        heavy.sort(key=lambda log: log.original_size, reverse=True)
        total_heavy_bytes = sum(log.original_size for log in heavy)
        time_saved = round(potential_savings(heavy, self.ratio) / BYTES_PER_SECOND, 2)
        grade = calculate_grade(len(heavy), total_heavy_bytes)

        logger.info(
            f"Scanned {domain}: {len(image_logs)} images, {len(heavy)} heavy "
            f"({format_bytes(total_heavy_bytes)}), grade {grade}"
        )

        return ScanResult(
            shop=shop,
            images=heavy,
            total_heavy_images=len(heavy),
            potential_time_saved=time_saved,
            grade=grade,
            source=fetch_result.source,
            fallback_reason=fetch_result.fallback_reason,
            web_vitals=web_vitals,
        )

    async def get_shop_info(self, domain: Optional[str] = None) -> ShopInfo:
        domain = domain or self.settings.DEFAULT_SHOP_DOMAIN
        shop = await self.storage.get_shop_by_domain(domain)

        name = self.settings.DEFAULT_SHOP_NAME
        display_domain = domain
        try:
            shop_data = await self.shopify_client.get_shop_info(domain, shop.access_token if shop else None)
        except ShopifyAPIError as e:
            logger.info(f"Could not fetch shop info for {domain}, using defaults: {e}")
            shop_data = None
        if shop_data:
            name = shop_data.get("name") or name
            display_domain = shop_data.get("myshopify_domain") or display_domain

        image_logs = await self.storage.get_image_logs_by_shop_id(shop.id) if shop else []
        optimized = [
            log for log in image_logs
            if log.status == ImageStatus.OPTIMIZED.value and log.optimized_size is not None
        ]

        return ShopInfo(
            name=name,
            domain=display_domain,
            latency=estimate_latency(image_logs, self.heavy_threshold),
            images_optimized=len(optimized),
            total_images=len(image_logs),
            space_saved=sum(log.bytes_saved for log in optimized),
        )

    async def get_shop_with_images(self, domain: str) -> Tuple[Optional[Shop], List[ImageLog]]:
        shop = await self.storage.get_shop_by_domain(domain)
        if not shop:
            return None, []
        return shop, await self.storage.get_image_logs_by_shop_id(shop.id)
