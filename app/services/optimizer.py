# app/services/optimizer.py
"""
Image recompression.

In "estimate" mode the optimized size is a fixed fraction of the original.
In "encode" mode the original is downloaded and re-encoded to WebP with
Pillow; the estimate is used whenever that fails or does not shrink the file.
"""

import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

import httpx
from PIL import Image, UnidentifiedImageError

from app.core.config import Settings
from app.core.enums import OptimizerMode
from app.models.image_log import ImageLog

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    optimized_size: int
    method: str  # "estimate" or "encode"
    data: Optional[bytes] = None


def encode_webp(data: bytes, quality: int) -> bytes:
    """Re-encode image bytes to lossy WebP."""
    with Image.open(BytesIO(data)) as img:
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
        output = BytesIO()
        img.save(
            output,
            format="WEBP",
            quality=int(max(1, min(100, quality))),
            method=6,
        )
        return output.getvalue()


class ImageOptimizer:

    def __init__(self, settings: Settings):
        self.settings = settings
        self.ratio = settings.OPTIMIZATION_RATIO
        self.quality = settings.WEBP_QUALITY
        self.mode = OptimizerMode(settings.IMAGE_OPTIMIZER_MODE)

    def estimate_size(self, original_size: int) -> int:
        return round(original_size * self.ratio)

    async def download(self, url: str) -> bytes:
        async with httpx.AsyncClient(timeout=self.settings.IMAGE_DOWNLOAD_TIMEOUT, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    async def encode(self, image_log: ImageLog) -> Optional[bytes]:
        """Download and re-encode the original; None when either step fails."""
        try:
            original = await self.download(image_log.image_url)
        except httpx.HTTPError as e:
            logger.warning(f"Could not download {image_log.image_url}: {e}")
            return None

        loop = asyncio.get_running_loop()
        try:
            encoded = await loop.run_in_executor(None, encode_webp, original, self.quality)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Could not encode {image_log.image_name}: {e}")
            return None

        if len(encoded) >= len(original):
            logger.info(
                f"WebP output for {image_log.image_name} is not smaller "
                f"({len(encoded)} >= {len(original)} bytes)"
            )
            return None

        return encoded

    async def optimize(self, image_log: ImageLog) -> OptimizationResult:
        if self.mode == OptimizerMode.ENCODE:
            encoded = await self.encode(image_log)
            # optimized_size stays below the stored original_size
            if encoded is not None and len(encoded) < image_log.original_size:
                return OptimizationResult(optimized_size=len(encoded), method="encode", data=encoded)
            logger.info(f"Falling back to size estimate for {image_log.image_name}")

        return OptimizationResult(optimized_size=self.estimate_size(image_log.original_size), method="estimate")
