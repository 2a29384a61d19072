# app/services/image_service.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from app.core.enums import ImageStatus, SyncFallbackReason, SyncMode
from app.core.exceptions import (
    ImageNotFoundError,
    ImageStateError,
    ShopifyAPIError,
    ShopifyAuthError,
    ShopNotFoundError,
)
from app.models.image_log import ImageLog
from app.models.shop import Shop
from app.services.optimizer import ImageOptimizer
from app.services.shopify.client import ShopifyClient
from app.services.shopify.utils import parse_image_id, parse_product_id
from app.services.storage import ShopStorage

logger = logging.getLogger(__name__)


@dataclass
class SyncOutcome:
    image: ImageLog
    mode: SyncMode
    reason: Optional[SyncFallbackReason] = None

    @property
    def is_live(self) -> bool:
        return self.mode == SyncMode.LIVE


@dataclass
class BulkOptimizeResult:
    optimized_count: int = 0
    total_saved: int = 0
    images: List[ImageLog] = field(default_factory=list)


@dataclass
class BulkSyncResult:
    synced_count: int = 0
    live_count: int = 0
    images: List[ImageLog] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.synced_count and self.live_count == self.synced_count:
            return f"Successfully synced {self.synced_count} images to your Shopify store"
        if self.live_count:
            return (
                f"Synced {self.synced_count} images "
                f"({self.live_count} written to Shopify, {self.synced_count - self.live_count} in demo mode)"
            )
        return f"Successfully synced {self.synced_count} images to your Shopify store (demo mode)"


class ImageService:
    """
    Status transitions for scanned images.

    pending/reverted --fix--> optimized --revert--> reverted
    optimized --sync--> optimized + synced flag

    Sync is best-effort: whenever the Shopify write cannot happen the row is
    still flagged as synced and the outcome reports demo mode.
    """

    def __init__(self, storage: ShopStorage, optimizer: ImageOptimizer, shopify_client: ShopifyClient):
        self.storage = storage
        self.optimizer = optimizer
        self.shopify_client = shopify_client

    async def _get_image(self, image_id: str) -> ImageLog:
        image_log = await self.storage.get_image_log_by_id(image_id)
        if not image_log:
            raise ImageNotFoundError(f"Image {image_id} not found")
        return image_log

    async def _get_shop(self, shop_id: str) -> Shop:
        shop = await self.storage.get_shop_by_id(shop_id)
        if not shop:
            raise ShopNotFoundError(f"Shop {shop_id} not found")
        return shop

    async def _optimize(self, image_log: ImageLog) -> ImageLog:
        result = await self.optimizer.optimize(image_log)
        logger.info(
            f"Optimized {image_log.image_name}: {image_log.original_size} -> "
            f"{result.optimized_size} bytes ({result.method})"
        )
        return await self.storage.update_image_log_status(
            image_log.id, ImageStatus.OPTIMIZED, result.optimized_size
        )

    async def fix_image(self, image_id: str) -> ImageLog:
        image_log = await self._get_image(image_id)
        if image_log.status == ImageStatus.OPTIMIZED.value:
            raise ImageStateError("Image already optimized")
        return await self._optimize(image_log)

    async def revert_image(self, image_id: str) -> ImageLog:
        image_log = await self._get_image(image_id)
        if image_log.status != ImageStatus.OPTIMIZED.value:
            raise ImageStateError("Image is not optimized")
        logger.info(f"Reverting {image_log.image_name}")
        return await self.storage.update_image_log_status(image_id, ImageStatus.REVERTED)

    async def optimize_all(self, shop_id: str) -> BulkOptimizeResult:
        await self._get_shop(shop_id)
        image_logs = await self.storage.get_image_logs_by_shop_id(shop_id)

        result = BulkOptimizeResult()
        for image_log in image_logs:
            if image_log.status != ImageStatus.PENDING.value:
                continue
            updated = await self._optimize(image_log)
            result.images.append(updated)
            result.optimized_count += 1
            result.total_saved += updated.bytes_saved

        logger.info(f"Bulk optimized {result.optimized_count} images for shop {shop_id}, saved {result.total_saved} bytes")
        return result

    async def _push_to_shopify(self, shop: Optional[Shop], image_log: ImageLog) -> Optional[SyncFallbackReason]:
        """Write the re-encoded image to Shopify; returns the reason when it could not."""
        token = self.shopify_client.resolve_token(shop.access_token) if shop else None
        if not token:
            return SyncFallbackReason.NO_TOKEN

        product_id = parse_product_id(image_log.shopify_product_id)
        if not product_id:
            return SyncFallbackReason.MISSING_PRODUCT_ID

        image_id = parse_image_id(image_log.shopify_asset_id)
        if not image_id:
            return SyncFallbackReason.MISSING_IMAGE_ID

        encoded = await self.optimizer.encode(image_log)
        if encoded is None:
            return SyncFallbackReason.ENCODING_FAILED

        filename = image_log.image_name.rsplit(".", 1)[0] + ".webp"
        try:
            await self.shopify_client.update_product_image(
                shop.domain, token, product_id, image_id, encoded, filename=filename
            )
        except ShopifyAuthError as e:
            logger.warning(f"Shopify rejected the write for {image_log.image_name}: {e}")
            return SyncFallbackReason.UNAUTHORIZED
        except ShopifyAPIError as e:
            logger.warning(f"Shopify write failed for {image_log.image_name}: {e}")
            return SyncFallbackReason.UPSTREAM_ERROR

        return None

    async def _sync(self, shop: Optional[Shop], image_log: ImageLog) -> SyncOutcome:
        reason = await self._push_to_shopify(shop, image_log)
        updated = await self.storage.update_image_log_sync_status(image_log.id, True)

        if reason is None:
            logger.info(f"Synced {image_log.image_name} to Shopify")
            return SyncOutcome(image=updated, mode=SyncMode.LIVE)

        logger.info(f"Demo mode: marked {image_log.image_name} as synced without writing to Shopify ({reason.value})")
        return SyncOutcome(image=updated, mode=SyncMode.DEMO, reason=reason)

    async def sync_image(self, image_id: str) -> SyncOutcome:
        image_log = await self._get_image(image_id)
        if image_log.status != ImageStatus.OPTIMIZED.value:
            raise ImageStateError("Image is not optimized")
        shop = await self.storage.get_shop_by_id(image_log.shop_id)
        return await self._sync(shop, image_log)

    async def sync_all(self, shop_id: str) -> BulkSyncResult:
        shop = await self._get_shop(shop_id)
        image_logs = await self.storage.get_image_logs_by_shop_id(shop_id)

        result = BulkSyncResult()
        for image_log in image_logs:
            if image_log.status != ImageStatus.OPTIMIZED.value:
                continue
            outcome = await self._sync(shop, image_log)
            result.images.append(outcome.image)
            result.synced_count += 1
            if outcome.is_live:
                result.live_count += 1

        logger.info(f"Bulk synced {result.synced_count} images for {shop.domain} ({result.live_count} live)")
        return result
