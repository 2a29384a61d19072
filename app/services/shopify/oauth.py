"""
Shopify OAuth install/callback helpers.

Nonces live behind NonceStore. The bundled InMemoryNonceStore is process-local,
so state validation only holds on a single instance; a shared TTL store is
needed before SHOPIFY_VERIFY_CALLBACK can be enabled across several instances.
"""

import hashlib
import hmac
import logging
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import quote, urlencode

from app.core.config import Settings

logger = logging.getLogger(__name__)

NONCE_EXPIRY_SECONDS = 10 * 60
MAX_TIMESTAMP_AGE_SECONDS = 60
CALLBACK_PATH = "/api/shopify/callback"


@dataclass
class NonceEntry:
    shop: str
    created_at: float


class NonceStore(ABC):
    """Short-lived OAuth state values keyed by nonce."""

    @abstractmethod
    def store(self, nonce: str, shop: str) -> None: ...

    @abstractmethod
    def validate(self, nonce: str, shop: str) -> bool: ...


class InMemoryNonceStore(NonceStore):

    def __init__(self, expiry_seconds: int = NONCE_EXPIRY_SECONDS, clock: Callable[[], float] = time.time):
        self.expiry_seconds = expiry_seconds
        self._clock = clock
        self._entries: Dict[str, NonceEntry] = {}

    def __len__(self):
        return len(self._entries)

    def __contains__(self, nonce: str) -> bool:
        return nonce in self._entries

    def store(self, nonce: str, shop: str) -> None:
        now = self._clock()
        self._entries[nonce] = NonceEntry(shop=shop, created_at=now)
        # Sweep expired entries on every insert
        for key in [k for k, v in self._entries.items() if now - v.created_at > self.expiry_seconds]:
            del self._entries[key]

    def validate(self, nonce: str, shop: str) -> bool:
        """Consume the nonce if it exists, is fresh and belongs to the shop."""
        entry = self._entries.get(nonce)
        if not entry:
            return False

        if self._clock() - entry.created_at > self.expiry_seconds:
            del self._entries[nonce]
            return False

        if entry.shop != shop:
            return False

        del self._entries[nonce]
        return True


def generate_nonce() -> str:
    return secrets.token_hex(16)


def get_base_url(settings: Settings) -> str:
    """Public base URL of this deployment."""
    if settings.APP_URL:
        return settings.APP_URL.rstrip("/")
    if settings.RENDER_EXTERNAL_URL:
        return settings.RENDER_EXTERNAL_URL.rstrip("/")
    domains = settings.replit_domains
    if domains:
        return f"https://{domains[0]}"
    return "http://localhost:5000"


def build_install_url(shop: str, nonce: str, settings: Settings) -> str:
    redirect_uri = f"{get_base_url(settings)}{CALLBACK_PATH}"
    return (
        f"https://{shop}/admin/oauth/authorize?"
        f"client_id={settings.SHOPIFY_API_KEY}"
        f"&scope={settings.SHOPIFY_SCOPES}"
        f"&redirect_uri={quote(redirect_uri, safe='')}"
        f"&state={nonce}"
    )


def build_app_install_hint(shop: str, settings: Settings) -> str:
    """Where a client should send an uninstalled shop."""
    return f"{get_base_url(settings)}/api/shopify/install?{urlencode({'shop': shop})}"


def verify_hmac(query: Mapping[str, str], secret: Optional[str]) -> bool:
    """Verify the hmac param Shopify signs OAuth redirects with."""
    if not secret:
        return False

    params = {k: v for k, v in query.items() if k not in ("hmac", "signature")}
    received = query.get("hmac")
    if not received:
        return False

    message = "&".join(
        f"{quote(str(key), safe='')}={quote(str(params[key]), safe='')}"
        for key in sorted(params)
    )
    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest, str(received))


def verify_timestamp(timestamp: Optional[str], now: Optional[float] = None) -> bool:
    try:
        request_time = int(timestamp)
    except (TypeError, ValueError):
        return False
    current = int(now if now is not None else time.time())
    return abs(current - request_time) <= MAX_TIMESTAMP_AGE_SECONDS
