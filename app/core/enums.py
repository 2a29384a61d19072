"""
Shared enums and constants used across the application.
"""

from enum import Enum


class ImageStatus(str, Enum):
    """Lifecycle of a scanned image row"""
    PENDING = "pending"
    OPTIMIZED = "optimized"
    REVERTED = "reverted"


class SyncStatus(str, Enum):
    """Write-back state, layered on top of ImageStatus"""
    NOT_SYNCED = "not_synced"
    SYNCED = "synced"


class ImageFormat(str, Enum):
    JPG = "JPG"
    PNG = "PNG"

    @classmethod
    def from_url(cls, url: str) -> "ImageFormat":
        return cls.PNG if ".png" in (url or "").lower() else cls.JPG

    @property
    def bytes_per_pixel(self) -> int:
        return 4 if self is ImageFormat.PNG else 3


class CatalogSource(str, Enum):
    """Where a scan's image list came from"""
    LIVE = "live"
    MOCK = "mock"


class FallbackReason(str, Enum):
    """Why the Shopify client served the mock catalog instead of live data"""
    NO_TOKEN = "no_token"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    EMPTY_RESULT = "empty_result"


class OptimizerMode(str, Enum):
    ESTIMATE = "estimate"
    ENCODE = "encode"


class SyncMode(str, Enum):
    """Whether a sync actually wrote to Shopify"""
    LIVE = "live"
    DEMO = "demo"


class VitalsStatus(str, Enum):
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"


class SyncFallbackReason(str, Enum):
    """Why a sync was recorded without writing to Shopify"""
    NO_TOKEN = "no_token"
    MISSING_PRODUCT_ID = "missing_product_id"
    MISSING_IMAGE_ID = "missing_image_id"
    ENCODING_FAILED = "encoding_failed"
    UNAUTHORIZED = "unauthorized"
    UPSTREAM_ERROR = "upstream_error"
