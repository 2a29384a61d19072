from .shop import Shop
from .image_log import ImageLog

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'Shop',
    'ImageLog',
]
