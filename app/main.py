# app/main.py

import logging
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.database import create_all
from app.services.shopify.oauth import InMemoryNonceStore
from app.services.storage import DatabaseStorage, create_storage

from app.routes import health, images, paypal, scan
from app.routes.platforms.shopify import router as shopify_router
from app.routes.webhooks import router as webhook_router

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    logger.info("Running database migrations...")
    result = subprocess.run(['alembic', 'upgrade', 'head'], capture_output=True, text=True)
    if result.returncode == 0:
        logger.info("Migrations completed successfully")
    else:
        logger.error(f"Migration failed: {result.stderr}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()

    if settings.DATABASE_URL and settings.RUN_MIGRATIONS:
        run_migrations()

    storage = create_storage(settings)
    if isinstance(storage, DatabaseStorage) and not settings.RUN_MIGRATIONS:
        await create_all(storage.engine)

    app.state.storage = storage
    app.state.nonce_store = InMemoryNonceStore()

    if not settings.SHOPIFY_VERIFY_CALLBACK:
        logger.warning("SHOPIFY_VERIFY_CALLBACK is off - OAuth callbacks are not verified")

    try:
        yield  # This is where the app runs
    finally:
        await storage.close()

app = FastAPI(
    title="Shop Image Optimizer",
    lifespan=lifespan
)

# Add middleware to handle HTTPS behind proxy
@app.middleware("http")
async def proxy_headers_middleware(request: Request, call_next):
    # Render/Replit set X-Forwarded-Proto header to indicate HTTPS
    forwarded_proto = request.headers.get("x-forwarded-proto")
    if forwarded_proto == "https":
        request.scope["scheme"] = "https"
    response = await call_next(request)
    return response

app.include_router(scan.router)
app.include_router(images.router)
app.include_router(shopify_router)
app.include_router(paypal.router)
app.include_router(webhook_router)  # Shopify calls these without a session
app.include_router(health.router)
