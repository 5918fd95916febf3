"""FastAPI application for the XRP price tracker.

This module provides a minimal HTTP API service for:
- GET /price - Display-ready view of the latest XRP price
- GET /price/state - Raw price cell (canonical asset plus loading/error flags)
- POST /price/refresh - User-initiated refresh
- GET /system/health - Provider reachability and price freshness

On startup the refresh scheduler begins polling (every 30s by default);
set PRICE_POLL_ENABLED=false to serve on-demand refreshes only.

Requirements:
- Outbound HTTPS to api.coingecko.com and api.coincap.io
- No authentication (local network only)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api import dependencies
from api.routes import health, price

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = dependencies.get_config()
    scheduler = dependencies.get_scheduler()
    if config.poll_enabled:
        scheduler.start()
    else:
        logger.info("Background polling disabled (PRICE_POLL_ENABLED=false)")
    try:
        yield
    finally:
        await dependencies.shutdown()


app = FastAPI(
    title="XRP Price Tracker API",
    description="Live XRP price with CoinGecko → CoinCap fallback and stale-while-error semantics",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(price.router)
app.include_router(health.router)
