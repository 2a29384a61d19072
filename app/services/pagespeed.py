# app/services/pagespeed.py
"""
Web Vitals lookup via the PageSpeed Insights v5 API.

The lookup is optional and best-effort: any failure returns None so a scan
never fails because of it.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.core.enums import VitalsStatus

logger = logging.getLogger(__name__)

PAGESPEED_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

# LCP in seconds, CLS unitless
LCP_POOR = 4.0
LCP_NEEDS_IMPROVEMENT = 2.5
CLS_POOR = 0.25
CLS_NEEDS_IMPROVEMENT = 0.1


@dataclass
class WebVitals:
    lcp: Optional[float]
    inp: Optional[float]
    cls: Optional[float]
    performance_score: Optional[int]
    status: VitalsStatus

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def classify_vitals(lcp: Optional[float], cls: Optional[float]) -> VitalsStatus:
    lcp = lcp or 0.0
    cls = cls or 0.0
    if lcp > LCP_POOR or cls > CLS_POOR:
        return VitalsStatus.POOR
    if lcp > LCP_NEEDS_IMPROVEMENT or cls > CLS_NEEDS_IMPROVEMENT:
        return VitalsStatus.NEEDS_IMPROVEMENT
    return VitalsStatus.GOOD


def _audit_value(audits: Dict[str, Any], key: str) -> Optional[float]:
    value = (audits.get(key) or {}).get("numericValue")
    return float(value) if value is not None else None


def parse_pagespeed_response(payload: Dict[str, Any]) -> WebVitals:
    lighthouse = payload.get("lighthouseResult") or {}
    audits = lighthouse.get("audits") or {}

    lcp_ms = _audit_value(audits, "largest-contentful-paint")
    lcp = round(lcp_ms / 1000, 2) if lcp_ms is not None else None
    cls = _audit_value(audits, "cumulative-layout-shift")
    if cls is not None:
        cls = round(cls, 3)

    # INP is a field metric - only present when CrUX has data for the origin
    field_metrics = (payload.get("loadingExperience") or {}).get("metrics") or {}
    inp = (field_metrics.get("INTERACTION_TO_NEXT_PAINT") or {}).get("percentile")

    score = ((lighthouse.get("categories") or {}).get("performance") or {}).get("score")
    performance_score = round(score * 100) if score is not None else None

    return WebVitals(
        lcp=lcp,
        inp=float(inp) if inp is not None else None,
        cls=cls,
        performance_score=performance_score,
        status=classify_vitals(lcp, cls),
    )


class PageSpeedClient:

    def __init__(self, settings: Settings):
        self.settings = settings
        self.timeout = settings.PAGESPEED_TIMEOUT

    @property
    def enabled(self) -> bool:
        return self.settings.PAGESPEED_ENABLED

    async def get_web_vitals(self, domain: str) -> Optional[WebVitals]:
        if not self.enabled:
            return None

        params = {
            "url": f"https://{domain}",
            "strategy": "mobile",
            "category": "performance",
        }
        if self.settings.PAGESPEED_API_KEY:
            params["key"] = self.settings.PAGESPEED_API_KEY

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(PAGESPEED_URL, params=params)
            if response.status_code != 200:
                logger.warning(f"PageSpeed lookup for {domain} failed: {response.status_code}")
                return None
            return parse_pagespeed_response(response.json())
        except httpx.HTTPError as e:
            logger.warning(f"PageSpeed lookup for {domain} failed: {e}")
            return None
        except ValueError as e:
            logger.warning(f"PageSpeed response for {domain} was unreadable: {e}")
            return None
