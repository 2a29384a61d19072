"""
Schemas for shops and their scanned images.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from app.core.enums import ImageStatus, SyncStatus
from .base import BaseSchema


class ShopRead(BaseSchema):
    """Shop as returned by the API. The access token is never exposed."""
    id: str
    domain: str
    is_pro: bool = False
    installed: bool = False
    last_scan_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator('is_pro', mode='before')
    @classmethod
    def coerce_is_pro(cls, v):
        return bool(v)


class ImageLogRead(BaseSchema):
    id: str
    shop_id: str
    shopify_asset_id: str
    shopify_product_id: Optional[str] = None
    image_url: str
    image_name: str
    format: str
    original_size: int
    optimized_size: Optional[int] = None
    status: ImageStatus
    sync_status: SyncStatus = SyncStatus.NOT_SYNCED
    synced_at: Optional[datetime] = None
    original_s3_key: Optional[str] = None
    created_at: Optional[datetime] = None
    optimized_at: Optional[datetime] = None


class ShopWithImages(BaseSchema):
    shop: ShopRead
    images: List[ImageLogRead]
