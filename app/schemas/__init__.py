"""
Schema exports for the application.
"""

# Base schemas
from .base import BaseSchema

# Shop / image schemas
from .shop import ShopRead, ImageLogRead, ShopWithImages

# Scan schemas
from .scan import (
    ScanRequest,
    ScanResponse,
    WebVitalsRead,
    SpeedMetrics,
    ShopInfoResponse,
)

# Optimize / sync schemas
from .image import SyncResponse, BulkOptimizeResponse, BulkSyncResponse

# Payment schemas
from .paypal import PayPalOrderCreate
