# Run from project root: uvicorn ai_agents.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ai_agents.api.routes import close_client, router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("[main] shutdown: draining agent client")
    await close_client()


app = FastAPI(title="AI Agents Chat", lifespan=lifespan)
app.include_router(router)
