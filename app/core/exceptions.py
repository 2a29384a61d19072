class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class ValidationError(BaseServiceError):
    """Raised when data validation fails."""
    pass

class ShopNotFoundError(BaseServiceError):
    """Raised when a shop is not found."""
    pass

class ImageNotFoundError(BaseServiceError):
    """Raised when an image log is not found."""
    pass

class ImageStateError(BaseServiceError):
    """Raised when an image is not in a state that allows the requested transition."""
    pass

class PlatformServiceError(BaseServiceError):
    """Base exception for third-party platform errors."""
    pass

class ShopifyServiceError(PlatformServiceError):
    """Base exception for Shopify-specific errors."""
    pass

class ShopifyAPIError(ShopifyServiceError):
    """Raised when Shopify API calls fail."""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class ShopifyAuthError(ShopifyAPIError):
    """Raised when Shopify rejects the access token (401/403)."""
    pass

class PayPalServiceError(PlatformServiceError):
    """Base exception for PayPal-specific errors."""
    pass

class PayPalConfigError(PayPalServiceError):
    """Raised when PayPal credentials are not configured."""
    pass

class PayPalAPIError(PayPalServiceError):
    """Raised when PayPal API calls fail."""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class DatabaseError(Exception):
    """Exception raised for database-related errors."""
    pass
