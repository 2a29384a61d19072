"""
Core module exports.
"""
from .enums import (
    ImageStatus,
    SyncStatus,
    ImageFormat,
    CatalogSource,
    FallbackReason,
    OptimizerMode,
    SyncMode,
    SyncFallbackReason,
    VitalsStatus,
)

from .exceptions import (
    BaseServiceError,
    ValidationError,
    ShopNotFoundError,
    ImageNotFoundError,
    ImageStateError,
    PlatformServiceError,
    ShopifyServiceError,
    ShopifyAPIError,
    ShopifyAuthError,
    PayPalServiceError,
    PayPalAPIError,
    PayPalConfigError,
    DatabaseError,
)
