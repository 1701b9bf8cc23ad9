from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from knucklebones.config import settings
from knucklebones.routers import commands, messages

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(level=settings.log_level.upper())
    logger.info(
        "Knucklebones starting (environment=%s, true_random=%s)",
        settings.environment,
        settings.true_random_enabled,
    )
    yield


app = FastAPI(title="Knucklebones", debug=settings.debug, lifespan=lifespan)

app.include_router(messages.router)
app.include_router(commands.router)
