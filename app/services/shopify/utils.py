"""Utility helpers for Shopify domains and identifiers."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

SHOP_DOMAIN_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*\.myshopify\.com$")

_SCHEME_WWW_PATTERN = re.compile(r"^(https?://)?(www\.)?", re.IGNORECASE)
_IMAGE_GID_PATTERN = re.compile(r"ProductImage/(\d+)")
_PRODUCT_GID_PATTERN = re.compile(r"Product/(\d+)$")


def extract_domain(url: str) -> str:
    """Reduce a free-text store URL to its bare hostname.

    "https://www.foo.myshopify.com/x" -> "foo.myshopify.com"
    "foo.myshopify.com"              -> "foo.myshopify.com"
    """
    stripped = (url or "").strip().lower()
    clean_url = stripped
    if not clean_url.startswith("http://") and not clean_url.startswith("https://"):
        clean_url = "https://" + clean_url

    try:
        hostname = urlparse(clean_url).hostname
    except ValueError:
        hostname = None

    if hostname:
        return re.sub(r"^www\.", "", hostname)

    return _SCHEME_WWW_PATTERN.sub("", stripped).split("/")[0]


def validate_shop_domain(shop: Optional[str]) -> bool:
    return bool(shop) and bool(SHOP_DOMAIN_PATTERN.match(shop))


def parse_image_id(shopify_asset_id: Optional[str]) -> Optional[str]:
    """gid://shopify/ProductImage/123 -> "123"."""
    if not shopify_asset_id:
        return None
    match = _IMAGE_GID_PATTERN.search(shopify_asset_id)
    return match.group(1) if match else None


def parse_product_id(product_ref: Optional[str]) -> Optional[str]:
    """Accepts a bare numeric id or gid://shopify/Product/123."""
    if not product_ref:
        return None
    product_ref = str(product_ref)
    if product_ref.isdigit():
        return product_ref
    match = _PRODUCT_GID_PATTERN.search(product_ref)
    return match.group(1) if match else None


def image_gid(image_id) -> str:
    return f"gid://shopify/ProductImage/{image_id}"
