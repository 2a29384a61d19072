"""
Schemas for the scan pipeline and the shop summary.
"""
from typing import Any, List, Optional

from app.core.enums import CatalogSource, FallbackReason, VitalsStatus
from .base import BaseSchema
from .shop import ImageLogRead, ShopRead


class ScanRequest(BaseSchema):
    """Loosely typed so a bad url is a 400 from the service, not a 422."""
    url: Optional[Any] = None


class WebVitalsRead(BaseSchema):
    lcp: Optional[float] = None
    inp: Optional[float] = None
    cls: Optional[float] = None
    performance_score: Optional[int] = None
    status: VitalsStatus


class ScanResponse(BaseSchema):
    shop: ShopRead
    images: List[ImageLogRead]
    total_heavy_images: int
    potential_time_saved: float
    grade: str
    source: CatalogSource
    fallback_reason: Optional[FallbackReason] = None
    web_vitals: Optional[WebVitalsRead] = None


class SpeedMetrics(BaseSchema):
    latency: int


class ShopInfoResponse(BaseSchema):
    name: str
    domain: str
    speed_metrics: SpeedMetrics
    images_optimized: int
    total_images: int
    space_saved: int
