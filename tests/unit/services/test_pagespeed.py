# tests/unit/services/test_pagespeed.py
import httpx
import pytest

from app.core.enums import VitalsStatus
from app.services.pagespeed import PageSpeedClient, classify_vitals, parse_pagespeed_response

PAGESPEED_PAYLOAD = {
    "lighthouseResult": {
        "audits": {
            "largest-contentful-paint": {"numericValue": 3210.4},
            "cumulative-layout-shift": {"numericValue": 0.0512},
        },
        "categories": {"performance": {"score": 0.73}},
    },
    "loadingExperience": {
        "metrics": {"INTERACTION_TO_NEXT_PAINT": {"percentile": 180}},
    },
}


@pytest.mark.parametrize("lcp, cls, status", [
    (1.2, 0.01, VitalsStatus.GOOD),
    (2.5, 0.1, VitalsStatus.GOOD),
    (2.6, 0.01, VitalsStatus.NEEDS_IMPROVEMENT),
    (1.0, 0.11, VitalsStatus.NEEDS_IMPROVEMENT),
    (4.1, 0.01, VitalsStatus.POOR),
    (1.0, 0.3, VitalsStatus.POOR),
    (None, None, VitalsStatus.GOOD),
])
def test_classify_vitals(lcp, cls, status):
    assert classify_vitals(lcp, cls) == status


def test_parse_pagespeed_response():
    vitals = parse_pagespeed_response(PAGESPEED_PAYLOAD)

    assert vitals.lcp == 3.21
    assert vitals.cls == 0.051
    assert vitals.inp == 180.0
    assert vitals.performance_score == 73
    assert vitals.status == VitalsStatus.NEEDS_IMPROVEMENT
    assert vitals.to_dict()["status"] == "needs-improvement"


def test_parse_pagespeed_response_without_field_data():
    vitals = parse_pagespeed_response({"lighthouseResult": {"audits": {}}})

    assert vitals.lcp is None
    assert vitals.inp is None
    assert vitals.performance_score is None


@pytest.mark.asyncio
async def test_disabled_client_makes_no_request(settings, mock_httpx):
    client = PageSpeedClient(settings)

    assert await client.get_web_vitals("my-store.myshopify.com") is None
    mock_httpx.get.assert_not_called()


@pytest.mark.asyncio
async def test_get_web_vitals(settings, mock_httpx, make_response):
    settings.PAGESPEED_ENABLED = True
    settings.PAGESPEED_API_KEY = "psi-key"
    mock_httpx.get.return_value = make_response(json_data=PAGESPEED_PAYLOAD)
    client = PageSpeedClient(settings)

    vitals = await client.get_web_vitals("my-store.myshopify.com")

    assert vitals.performance_score == 73
    _, kwargs = mock_httpx.get.call_args
    assert kwargs["params"]["url"] == "https://my-store.myshopify.com"
    assert kwargs["params"]["key"] == "psi-key"


@pytest.mark.asyncio
async def test_get_web_vitals_failures_return_none(settings, mock_httpx, make_response):
    settings.PAGESPEED_ENABLED = True
    client = PageSpeedClient(settings)

    mock_httpx.get.return_value = make_response(status_code=429)
    assert await client.get_web_vitals("my-store.myshopify.com") is None

    mock_httpx.get.side_effect = httpx.ReadTimeout("slow")
    assert await client.get_web_vitals("my-store.myshopify.com") is None
