# tests/test_routes/test_shopify_routes.py
import asyncio
import hashlib
import hmac
import time
from urllib.parse import parse_qs, urlparse

import pytest

from app.core.exceptions import DatabaseError, ShopifyAPIError
from app.services.shopify.client import ShopifyClient

SHOP = "my-store.myshopify.com"


def signed_query(params, secret="test_secret"):
    message = "&".join(f"{k}={params[k]}" for k in sorted(params))
    digest = hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()
    return dict(params, hmac=digest)


@pytest.fixture
def token_exchange(mocker):
    return mocker.patch.object(
        ShopifyClient, "exchange_access_token",
        return_value={"access_token": "shpat_new", "scope": "read_products,write_products"},
    )


"""
1. Install
"""

def test_install_redirects_to_shopify(test_client):
    response = test_client.get("/api/shopify/install", params={"shop": SHOP}, follow_redirects=False)

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    query = parse_qs(location.query)
    assert location.netloc == SHOP
    assert query["redirect_uri"] == ["https://optimizer.example.com/api/shopify/callback"]
    assert query["state"][0] in test_client.app.state.nonce_store


@pytest.mark.parametrize("params", [{}, {"shop": "not-a-shop"}, {"shop": "evil.com"}])
def test_install_rejects_bad_shop(test_client, params):
    response = test_client.get("/api/shopify/install", params=params, follow_redirects=False)
    assert response.status_code == 400


def test_install_without_api_key(test_client, settings):
    settings.SHOPIFY_API_KEY = None
    response = test_client.get("/api/shopify/install", params={"shop": SHOP}, follow_redirects=False)
    assert response.status_code == 500


"""
2. Callback
"""

def test_callback_stores_token_and_redirects(test_client, app_storage, token_exchange):
    response = test_client.get(
        "/api/shopify/callback",
        params={"shop": SHOP, "code": "auth-code", "state": "anything"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == \
        "https://optimizer.example.com/?shop=my-store.myshopify.com&installed=true"
    token_exchange.assert_awaited_once_with(SHOP, "auth-code")
    shop = asyncio.run(app_storage.get_shop_by_domain(SHOP))
    assert shop.access_token == "shpat_new"
    assert shop.scope == "read_products,write_products"


def test_callback_updates_existing_shop(test_client, app_storage, token_exchange):
    existing = asyncio.run(app_storage.create_shop(SHOP))

    test_client.get(
        "/api/shopify/callback",
        params={"shop": SHOP, "code": "auth-code", "state": "anything"},
        follow_redirects=False,
    )

    shop = asyncio.run(app_storage.get_shop_by_id(existing.id))
    assert shop.access_token == "shpat_new"


def test_callback_missing_params(test_client, token_exchange):
    response = test_client.get("/api/shopify/callback", params={"shop": SHOP, "code": "x"})
    assert response.status_code == 400
    token_exchange.assert_not_called()


def test_callback_invalid_shop_writes_nothing(test_client, app_storage, token_exchange):
    response = test_client.get(
        "/api/shopify/callback",
        params={"shop": "not-a-shop", "code": "auth-code", "state": "n"},
        follow_redirects=False,
    )

    assert response.status_code == 400
    token_exchange.assert_not_called()
    assert asyncio.run(app_storage.get_shop_by_domain("not-a-shop")) is None


def test_callback_token_exchange_failure(test_client, mocker):
    mocker.patch.object(ShopifyClient, "exchange_access_token", side_effect=ShopifyAPIError("bad code", 400))

    response = test_client.get(
        "/api/shopify/callback",
        params={"shop": SHOP, "code": "bad", "state": "n"},
        follow_redirects=False,
    )

    assert response.status_code == 500


def test_verified_callback_full_handshake(test_client, settings, token_exchange):
    settings.SHOPIFY_VERIFY_CALLBACK = True
    install = test_client.get("/api/shopify/install", params={"shop": SHOP}, follow_redirects=False)
    state = parse_qs(urlparse(install.headers["location"]).query)["state"][0]
    params = signed_query({"shop": SHOP, "code": "auth-code", "state": state, "timestamp": str(int(time.time()))})

    response = test_client.get("/api/shopify/callback", params=params, follow_redirects=False)

    assert response.status_code == 302
    assert state not in test_client.app.state.nonce_store


def test_verified_callback_rejects_unknown_state(test_client, settings, token_exchange):
    settings.SHOPIFY_VERIFY_CALLBACK = True
    params = signed_query({"shop": SHOP, "code": "auth-code", "state": "forged", "timestamp": str(int(time.time()))})

    response = test_client.get("/api/shopify/callback", params=params, follow_redirects=False)

    assert response.status_code == 401
    token_exchange.assert_not_called()


def test_verified_callback_rejects_bad_hmac(test_client, settings, token_exchange):
    settings.SHOPIFY_VERIFY_CALLBACK = True
    install = test_client.get("/api/shopify/install", params={"shop": SHOP}, follow_redirects=False)
    state = parse_qs(urlparse(install.headers["location"]).query)["state"][0]
    params = signed_query(
        {"shop": SHOP, "code": "auth-code", "state": state, "timestamp": str(int(time.time()))},
        secret="wrong",
    )

    response = test_client.get("/api/shopify/callback", params=params, follow_redirects=False)

    assert response.status_code == 401


"""
3. Session
"""

def test_session_not_installed(test_client):
    response = test_client.get("/api/shopify/session", params={"shop": SHOP})

    assert response.status_code == 401
    assert response.json()["installUrl"] == \
        "https://optimizer.example.com/api/shopify/install?shop=my-store.myshopify.com"


def test_session_installed_via_header(test_client, app_storage):
    shop = asyncio.run(app_storage.create_shop(SHOP, access_token="shpat_1", scope="read_products"))
    asyncio.run(app_storage.update_shop_pro_status(shop.id, True))

    response = test_client.get("/api/shopify/session", headers={"X-Shopify-Shop-Domain": SHOP})

    assert response.status_code == 200
    assert response.json() == {"shop": SHOP, "isPro": True, "installed": True}


def test_session_requires_valid_shop(test_client):
    assert test_client.get("/api/shopify/session").status_code == 400
    assert test_client.get("/api/shopify/session", params={"shop": "nope"}).status_code == 400


def test_session_storage_failure_is_500(test_client, app_storage, mocker):
    mocker.patch.object(app_storage, "get_shop_by_domain", side_effect=DatabaseError("connection lost"))

    response = test_client.get("/api/shopify/session", params={"shop": SHOP})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to load session"
