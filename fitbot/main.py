from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fitbot.config import get_settings
from fitbot.handlers import webhook_handler
from fitbot.services.llm import get_provider
from fitbot.services.whatsapp import get_whatsapp_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings.downloads_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Downloads directory: %s", settings.downloads_dir.resolve())

    provider = get_provider()
    if provider.is_enabled():
        logger.info("%s provider enabled", provider.name)
    else:
        logger.warning("LLM API key not detected. !calories, !science, !ask and captions are disabled.")
    yield

    await provider.close()
    await get_whatsapp_client().close()
    logger.info("HTTP clients closed")


app = FastAPI(title="FitBot API", lifespan=lifespan)

app.include_router(webhook_handler.router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
