# app/routes/images.py
"""
Optimise, revert and sync endpoints for single images and whole shops.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.core.enums import SyncMode
from app.core.exceptions import ImageNotFoundError, ImageStateError, ShopNotFoundError
from app.dependencies import get_image_service
from app.schemas.image import BulkOptimizeResponse, BulkSyncResponse, SyncResponse
from app.schemas.shop import ImageLogRead
from app.services.image_service import ImageService

router = APIRouter(prefix="/api", tags=["images"])

logger = logging.getLogger(__name__)


@router.post("/images/{image_id}/fix", response_model=ImageLogRead)
async def fix_image(image_id: str, image_service: ImageService = Depends(get_image_service)):
    try:
        image_log = await image_service.fix_image(image_id)
    except ImageNotFoundError:
        raise HTTPException(status_code=404, detail="Image not found")
    except ImageStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Fix failed for image {image_id}")
        raise HTTPException(status_code=500, detail="Failed to optimize the image")
    return ImageLogRead.from_orm_model(image_log)


@router.post("/images/{image_id}/revert", response_model=ImageLogRead)
async def revert_image(image_id: str, image_service: ImageService = Depends(get_image_service)):
    try:
        image_log = await image_service.revert_image(image_id)
    except ImageNotFoundError:
        raise HTTPException(status_code=404, detail="Image not found")
    except ImageStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Revert failed for image {image_id}")
        raise HTTPException(status_code=500, detail="Failed to revert the image")
    return ImageLogRead.from_orm_model(image_log)


@router.post("/images/{image_id}/sync", response_model=SyncResponse)
async def sync_image(image_id: str, image_service: ImageService = Depends(get_image_service)):
    """Push an optimised image to Shopify, degrading to demo mode when that is not possible"""
    try:
        outcome = await image_service.sync_image(image_id)
    except ImageNotFoundError:
        raise HTTPException(status_code=404, detail="Image not found")
    except ImageStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(f"Sync failed for image {image_id}")
        raise HTTPException(status_code=500, detail="Failed to sync to Shopify")

    if outcome.mode == SyncMode.LIVE:
        message = "Image synced to your Shopify store"
    else:
        message = "Image marked as synced (demo mode)"

    return SyncResponse(
        image=ImageLogRead.from_orm_model(outcome.image),
        mode=outcome.mode,
        reason=outcome.reason,
        message=message,
    )


@router.post("/shops/{shop_id}/optimize-all", response_model=BulkOptimizeResponse)
async def optimize_all(shop_id: str, image_service: ImageService = Depends(get_image_service)):
    """Optimise every pending image of a shop"""
    try:
        result = await image_service.optimize_all(shop_id)
    except ShopNotFoundError:
        raise HTTPException(status_code=404, detail="Shop not found")
    except Exception:
        logger.exception(f"Bulk optimize failed for shop {shop_id}")
        raise HTTPException(status_code=500, detail="Failed to optimize images")

    return BulkOptimizeResponse(
        optimized_count=result.optimized_count,
        total_saved=result.total_saved,
        images=[ImageLogRead.from_orm_model(img) for img in result.images],
    )


@router.post("/shops/{shop_id}/sync-all", response_model=BulkSyncResponse)
@router.post("/shops/{shop_id}/sync", response_model=BulkSyncResponse)
async def sync_all(shop_id: str, image_service: ImageService = Depends(get_image_service)):
    """Sync every optimised image of a shop"""
    try:
        result = await image_service.sync_all(shop_id)
    except ShopNotFoundError:
        raise HTTPException(status_code=404, detail="Shop not found")
    except Exception:
        logger.exception(f"Bulk sync failed for shop {shop_id}")
        raise HTTPException(status_code=500, detail="Failed to sync to Shopify")

    return BulkSyncResponse(
        synced_count=result.synced_count,
        live_count=result.live_count,
        message=result.message,
        images=[ImageLogRead.from_orm_model(img) for img in result.images],
    )
