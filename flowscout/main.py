# main.py

import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from loguru import logger

from flowscout.api.deps import get_client_pool, get_market_provider, get_rate_limiter
from flowscout.api.routes.keys import router as keys_router
from flowscout.api.routes.tokens import router as tokens_router
from flowscout.api.routes.watchlist import router as watchlist_router
from flowscout.core.config import get_settings
from flowscout.core.logs import configure_logging

settings = get_settings()

PRUNE_INTERVAL_SECONDS = 5 * 60


async def _prune_rate_limits() -> None:
    limiter = get_rate_limiter()
    while True:
        await asyncio.sleep(PRUNE_INTERVAL_SECONDS)
        limiter.prune()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    logger.info(f"[Main] Starting {settings.APP_NAME} ({settings.ENV})")
    if not settings.NANSEN_API_KEY:
        logger.warning("[Main] NANSEN_API_KEY not set; callers must send X-Nansen-Api-Key")

    pruner = asyncio.create_task(_prune_rate_limits())
    yield

    pruner.cancel()
    with suppress(asyncio.CancelledError):
        await pruner
    await get_client_pool().aclose()
    await get_market_provider().aclose()


app = FastAPI(
    title="flowscout",
    description="Token lookup and smart-money flow reports from Nansen + CoinGecko",
    version="1.0.0",
    lifespan=lifespan,
)

# Routes
app.include_router(tokens_router)
app.include_router(watchlist_router)
app.include_router(keys_router)

# Health checks
@app.get("/healthz")
async def health():
    return {"status": "ok"}

@app.get("/readyz")
async def ready():
    return {"status": "ready", "nansen_key": bool(settings.NANSEN_API_KEY)}


def run() -> None:
    import uvicorn

    uvicorn.run("flowscout.main:app", host="0.0.0.0", port=8000)
