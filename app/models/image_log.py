# app/models/image_log.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship

from ..database import Base
from app.core.enums import ImageStatus, SyncStatus
from app.core.utils import utc_now
from app.models.shop import generate_id


class ImageLog(Base):
    """
    One product image found by a scan.

    optimized_size and optimized_at are set if and only if status is OPTIMIZED.
    The whole set of rows for a shop is replaced on every scan.
    """
    __tablename__ = "image_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    shop_id = Column(String(36), ForeignKey("shops.id"), nullable=False, index=True)

    # Shopify-side identifiers (gid://shopify/ProductImage/<n>)
    shopify_asset_id = Column(Text, nullable=False)
    shopify_product_id = Column(String(32), nullable=True)

    image_url = Column(Text, nullable=False)
    image_name = Column(Text, nullable=False)
    format = Column(String(8), nullable=False)

    original_size = Column(Integer, nullable=False)
    optimized_size = Column(Integer, nullable=True)

    status = Column(String(16), nullable=False, default=ImageStatus.PENDING.value, index=True)
    sync_status = Column(String(16), nullable=False, default=SyncStatus.NOT_SYNCED.value)
    synced_at = Column(TIMESTAMP(timezone=False), nullable=True)

    # Reserved for a backup of the original bytes
    original_s3_key = Column(Text, nullable=True)

    created_at = Column(
        TIMESTAMP(timezone=False),
        default=utc_now,
        nullable=False
    )
    optimized_at = Column(TIMESTAMP(timezone=False), nullable=True)

    shop = relationship("Shop", back_populates="image_logs", lazy="noload")

    @property
    def bytes_saved(self) -> int:
        if self.status == ImageStatus.OPTIMIZED.value and self.optimized_size is not None:
            return self.original_size - self.optimized_size
        return 0

    def __repr__(self):
        return f"<ImageLog(id={self.id}, name='{self.image_name}', status={self.status})>"
