# app/models/shop.py
import uuid

from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.orm import relationship

from ..database import Base
from app.core.utils import utc_now


def generate_id() -> str:
    return str(uuid.uuid4())


class Shop(Base):
    """A merchant store, keyed by its canonical hostname."""
    __tablename__ = "shops"

    id = Column(String(36), primary_key=True, default=generate_id)
    domain = Column(String(255), nullable=False, unique=True, index=True)

    # Populated only by a completed OAuth callback
    access_token = Column(Text, nullable=True)
    scope = Column(Text, nullable=True)

    is_pro = Column(Integer, nullable=False, default=0)  # 0/1
    last_scan_at = Column(TIMESTAMP(timezone=False), nullable=True)

    created_at = Column(
        TIMESTAMP(timezone=False),
        default=utc_now,
        nullable=False
    )

    image_logs = relationship("ImageLog", back_populates="shop", lazy="noload")

    @property
    def installed(self) -> bool:
        return bool(self.access_token)

    def __repr__(self):
        return f"<Shop(id={self.id}, domain='{self.domain}', is_pro={self.is_pro})>"
