# app/routes/scan.py
"""
Store scan, shop summary and shop lookup endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException

from app.core.exceptions import ValidationError
from app.dependencies import get_scan_service
from app.schemas.scan import ScanRequest, ScanResponse, ShopInfoResponse, SpeedMetrics, WebVitalsRead
from app.schemas.shop import ImageLogRead, ShopRead, ShopWithImages
from app.services.scan_service import ScanService

router = APIRouter(prefix="/api", tags=["scan"])

logger = logging.getLogger(__name__)


@router.post("/scan", response_model=ScanResponse)
async def scan_store(
    payload: Optional[ScanRequest] = Body(None),
    scan_service: ScanService = Depends(get_scan_service),
):
    """Scan a store's product images and grade it"""
    try:
        result = await scan_service.run_scan(payload.url if payload else None)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Scan failed")
        raise HTTPException(status_code=500, detail="Failed to scan the store")

    return ScanResponse(
        shop=ShopRead.from_orm_model(result.shop),
        images=[ImageLogRead.from_orm_model(img) for img in result.images],
        total_heavy_images=result.total_heavy_images,
        potential_time_saved=result.potential_time_saved,
        grade=result.grade,
        source=result.source,
        fallback_reason=result.fallback_reason,
        web_vitals=WebVitalsRead.from_orm_model(result.web_vitals) if result.web_vitals else None,
    )


@router.get("/shop/info", response_model=ShopInfoResponse)
async def shop_info(
    shop: Optional[str] = None,
    x_shopify_shop_domain: Optional[str] = Header(None),
    scan_service: ScanService = Depends(get_scan_service),
):
    """Summary card for the embedded app: name, latency estimate, optimisation totals"""
    try:
        info = await scan_service.get_shop_info(shop or x_shopify_shop_domain)
    except Exception:
        logger.exception("Shop info failed")
        raise HTTPException(status_code=500, detail="Failed to get shop info")

    return ShopInfoResponse(
        name=info.name,
        domain=info.domain,
        speed_metrics=SpeedMetrics(latency=info.latency),
        images_optimized=info.images_optimized,
        total_images=info.total_images,
        space_saved=info.space_saved,
    )


@router.get("/shops/{domain}", response_model=ShopWithImages)
async def get_shop(domain: str, scan_service: ScanService = Depends(get_scan_service)):
    try:
        shop, images = await scan_service.get_shop_with_images(domain)
    except Exception:
        logger.exception(f"Failed to load shop {domain}")
        raise HTTPException(status_code=500, detail="Failed to get shop data")

    if not shop:
        raise HTTPException(status_code=404, detail="Shop not found")

    return ShopWithImages(
        shop=ShopRead.from_orm_model(shop),
        images=[ImageLogRead.from_orm_model(img) for img in images],
    )
