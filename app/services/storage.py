# app/services/storage.py
"""
Persistence for shops and their scanned images.

Two interchangeable backends implement ShopStorage:
- MemoryStorage: process-local dicts, used in demo mode (lost on restart)
- DatabaseStorage: SQLAlchemy async sessions, used when DATABASE_URL is set

create_storage() picks one at application start.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncEngine

from app.core.config import Settings
from app.core.enums import ImageStatus, SyncStatus
from app.core.exceptions import DatabaseError, ImageNotFoundError, ValidationError
from app.core.utils import utc_now
from app.database import build_engine, build_sessionmaker, get_session
from app.models.image_log import ImageLog
from app.models.shop import Shop, generate_id

logger = logging.getLogger(__name__)


def _apply_status(image_log: ImageLog, status: ImageStatus, optimized_size: Optional[int]) -> None:
    """Set status keeping size/timestamp present exactly when optimized."""
    if status == ImageStatus.OPTIMIZED:
        if optimized_size is None:
            raise ValidationError("optimized_size is required when marking an image optimized")
        image_log.optimized_size = int(optimized_size)
        image_log.optimized_at = utc_now()
    else:
        image_log.optimized_size = None
        image_log.optimized_at = None
        image_log.sync_status = SyncStatus.NOT_SYNCED.value
        image_log.synced_at = None
    image_log.status = status.value


def _apply_sync(image_log: ImageLog, synced: bool) -> None:
    if synced:
        image_log.sync_status = SyncStatus.SYNCED.value
        image_log.synced_at = utc_now()
    else:
        image_log.sync_status = SyncStatus.NOT_SYNCED.value
        image_log.synced_at = None


def _new_image_log(shop_id: str, data: Dict) -> ImageLog:
    return ImageLog(
        id=generate_id(),
        shop_id=shop_id,
        shopify_asset_id=data["shopify_asset_id"],
        shopify_product_id=data.get("shopify_product_id"),
        image_url=data["image_url"],
        image_name=data["image_name"],
        format=data["format"],
        original_size=int(data["original_size"]),
        optimized_size=None,
        status=ImageStatus.PENDING.value,
        sync_status=SyncStatus.NOT_SYNCED.value,
        synced_at=None,
        original_s3_key=None,
        created_at=utc_now(),
        optimized_at=None,
    )


class ShopStorage(ABC):
    """Storage contract shared by both backends."""

    @abstractmethod
    async def get_shop_by_domain(self, domain: str) -> Optional[Shop]: ...

    @abstractmethod
    async def get_shop_by_id(self, shop_id: str) -> Optional[Shop]: ...

    @abstractmethod
    async def create_shop(
        self,
        domain: str,
        access_token: Optional[str] = None,
        scope: Optional[str] = None,
    ) -> Shop: ...

    @abstractmethod
    async def update_shop_scan_time(self, shop_id: str) -> None: ...

    @abstractmethod
    async def update_shop_token(self, shop_id: str, access_token: str, scope: str) -> None: ...

    @abstractmethod
    async def update_shop_pro_status(self, shop_id: str, is_pro: bool) -> None: ...

    @abstractmethod
    async def get_image_logs_by_shop_id(self, shop_id: str) -> List[ImageLog]: ...

    @abstractmethod
    async def create_image_log(self, shop_id: str, data: Dict) -> ImageLog: ...

    @abstractmethod
    async def update_image_log_status(
        self,
        image_id: str,
        status: ImageStatus,
        optimized_size: Optional[int] = None,
    ) -> ImageLog: ...

    @abstractmethod
    async def update_image_log_sync_status(self, image_id: str, synced: bool) -> ImageLog: ...

    @abstractmethod
    async def get_image_log_by_id(self, image_id: str) -> Optional[ImageLog]: ...

    @abstractmethod
    async def delete_image_logs_by_shop_id(self, shop_id: str) -> None: ...

    async def close(self) -> None:
        return None


class MemoryStorage(ShopStorage):
    """In-memory storage for demo mode (no database required)."""

    def __init__(self):
        self._shops: Dict[str, Shop] = {}
        self._image_logs: Dict[str, ImageLog] = {}

    async def get_shop_by_domain(self, domain: str) -> Optional[Shop]:
        for shop in self._shops.values():
            if shop.domain == domain:
                return shop
        return None

    async def get_shop_by_id(self, shop_id: str) -> Optional[Shop]:
        return self._shops.get(shop_id)

    async def create_shop(self, domain, access_token=None, scope=None) -> Shop:
        if await self.get_shop_by_domain(domain):
            raise ValidationError(f"Shop {domain} already exists")
        shop = Shop(
            id=generate_id(),
            domain=domain,
            access_token=access_token,
            scope=scope,
            is_pro=0,
            last_scan_at=None,
            created_at=utc_now(),
        )
        self._shops[shop.id] = shop
        return shop

    async def update_shop_scan_time(self, shop_id: str) -> None:
        shop = self._shops.get(shop_id)
        if shop:
            shop.last_scan_at = utc_now()

    async def update_shop_token(self, shop_id: str, access_token: str, scope: str) -> None:
        shop = self._shops.get(shop_id)
        if shop:
            shop.access_token = access_token
            shop.scope = scope

    async def update_shop_pro_status(self, shop_id: str, is_pro: bool) -> None:
        shop = self._shops.get(shop_id)
        if shop:
            shop.is_pro = 1 if is_pro else 0

    async def get_image_logs_by_shop_id(self, shop_id: str) -> List[ImageLog]:
        return [log for log in self._image_logs.values() if log.shop_id == shop_id]

    async def create_image_log(self, shop_id: str, data: Dict) -> ImageLog:
        image_log = _new_image_log(shop_id, data)
        self._image_logs[image_log.id] = image_log
        return image_log

    async def update_image_log_status(self, image_id, status, optimized_size=None) -> ImageLog:
        image_log = self._image_logs.get(image_id)
        if not image_log:
            raise ImageNotFoundError(f"Image log {image_id} not found")
        _apply_status(image_log, ImageStatus(status), optimized_size)
        return image_log

    async def update_image_log_sync_status(self, image_id: str, synced: bool) -> ImageLog:
        image_log = self._image_logs.get(image_id)
        if not image_log:
            raise ImageNotFoundError(f"Image log {image_id} not found")
        _apply_sync(image_log, synced)
        return image_log

    async def get_image_log_by_id(self, image_id: str) -> Optional[ImageLog]:
        return self._image_logs.get(image_id)

    async def delete_image_logs_by_shop_id(self, shop_id: str) -> None:
        for image_id in [i for i, log in self._image_logs.items() if log.shop_id == shop_id]:
            del self._image_logs[image_id]


class DatabaseStorage(ShopStorage):
    """Relational storage over the shops / image_logs tables."""

    def __init__(self, session_factory: async_sessionmaker, engine: Optional[AsyncEngine] = None):
        self.session_factory = session_factory
        self.engine = engine

    async def get_shop_by_domain(self, domain: str) -> Optional[Shop]:
        async with get_session(self.session_factory) as session:
            result = await session.execute(select(Shop).where(Shop.domain == domain))
            return result.scalar_one_or_none()

    async def get_shop_by_id(self, shop_id: str) -> Optional[Shop]:
        async with get_session(self.session_factory) as session:
            return await session.get(Shop, shop_id)

    async def create_shop(self, domain, access_token=None, scope=None) -> Shop:
        shop = Shop(
            id=generate_id(),
            domain=domain,
            access_token=access_token,
            scope=scope,
            is_pro=0,
            last_scan_at=None,
            created_at=utc_now(),
        )
        async with get_session(self.session_factory) as session:
            try:
                session.add(shop)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ValidationError(f"Shop {domain} already exists") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to create shop {domain}: {e}")
                raise DatabaseError(f"Failed to create shop {domain}") from e
        return shop

    async def _update_shop(self, shop_id: str, **values) -> None:
        async with get_session(self.session_factory) as session:
            shop = await session.get(Shop, shop_id)
            if not shop:
                return
            for key, value in values.items():
                setattr(shop, key, value)
            await session.commit()

    async def update_shop_scan_time(self, shop_id: str) -> None:
        await self._update_shop(shop_id, last_scan_at=utc_now())

    async def update_shop_token(self, shop_id: str, access_token: str, scope: str) -> None:
        await self._update_shop(shop_id, access_token=access_token, scope=scope)

    async def update_shop_pro_status(self, shop_id: str, is_pro: bool) -> None:
        await self._update_shop(shop_id, is_pro=1 if is_pro else 0)

    async def get_image_logs_by_shop_id(self, shop_id: str) -> List[ImageLog]:
        async with get_session(self.session_factory) as session:
            result = await session.execute(
                select(ImageLog)
                .where(ImageLog.shop_id == shop_id)
                .order_by(ImageLog.created_at, ImageLog.shopify_asset_id)
            )
            return list(result.scalars().all())

    async def create_image_log(self, shop_id: str, data: Dict) -> ImageLog:
        image_log = _new_image_log(shop_id, data)
        async with get_session(self.session_factory) as session:
            session.add(image_log)
            await session.commit()
        return image_log

    async def update_image_log_status(self, image_id, status, optimized_size=None) -> ImageLog:
        async with get_session(self.session_factory) as session:
            image_log = await session.get(ImageLog, image_id)
            if not image_log:
                raise ImageNotFoundError(f"Image log {image_id} not found")
            _apply_status(image_log, ImageStatus(status), optimized_size)
            await session.commit()
            return image_log

    async def update_image_log_sync_status(self, image_id: str, synced: bool) -> ImageLog:
        async with get_session(self.session_factory) as session:
            image_log = await session.get(ImageLog, image_id)
            if not image_log:
                raise ImageNotFoundError(f"Image log {image_id} not found")
            _apply_sync(image_log, synced)
            await session.commit()
            return image_log

    async def get_image_log_by_id(self, image_id: str) -> Optional[ImageLog]:
        async with get_session(self.session_factory) as session:
            return await session.get(ImageLog, image_id)

    async def delete_image_logs_by_shop_id(self, shop_id: str) -> None:
        async with get_session(self.session_factory) as session:
            await session.execute(delete(ImageLog).where(ImageLog.shop_id == shop_id))
            await session.commit()

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def create_storage(settings: Settings) -> ShopStorage:
    """Pick the storage backend once, at process start."""
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL is not set - using in-memory storage (demo mode)")
        return MemoryStorage()

    engine = build_engine(settings.DATABASE_URL)
    logger.info("Using database storage")
    return DatabaseStorage(build_sessionmaker(engine), engine=engine)
