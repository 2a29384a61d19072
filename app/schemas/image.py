"""
Schemas for optimize / revert / sync responses.
"""
from typing import List, Optional

from app.core.enums import SyncFallbackReason, SyncMode
from .base import BaseSchema
from .shop import ImageLogRead


class SyncResponse(BaseSchema):
    image: ImageLogRead
    mode: SyncMode
    reason: Optional[SyncFallbackReason] = None
    message: str


class BulkOptimizeResponse(BaseSchema):
    optimized_count: int
    total_saved: int
    images: List[ImageLogRead]


class BulkSyncResponse(BaseSchema):
    synced_count: int
    live_count: int
    message: str
    images: List[ImageLogRead]
