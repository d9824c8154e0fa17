# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.data.sample_stock import SAMPLE_STOCK
from app.database import get_session, init_models
from app.routes import health, stock, websockets as websocket_router
from app.services.stock_service import StockService
from app.services.websockets.relay import relay

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.INIT_DB_ON_STARTUP:
        await init_models()

    if settings.INIT_DB_ON_STARTUP and settings.SEED_SAMPLE_DATA:
        try:
            async with get_session() as session:
                await StockService(session).seed(SAMPLE_STOCK)
        except Exception as e:
            logger.error(f"Seeding sample stock failed: {e}")

    try:
        yield  # This is where the app runs
    finally:
        await relay.close_all()

app = FastAPI(
    title="Stock Sync",
    lifespan=lifespan
)

# Add middleware to handle HTTPS behind proxy
@app.middleware("http")
async def proxy_headers_middleware(request: Request, call_next):
    forwarded_proto = request.headers.get("x-forwarded-proto")
    if forwarded_proto == "https":
        request.scope["scheme"] = "https"
    response = await call_next(request)
    return response

app.include_router(stock.router)
app.include_router(websocket_router.router)
app.include_router(health.router)
