"""Punto de entrada de la API usando FastAPI.

Este módulo crea la aplicación, configura CORS, registra el router de
imágenes bajo `/api` y, al apagar, cancela los jobs que sigan pendientes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.images import router as images_router
from app.core.config import get_settings
from app.services.job_store import image_job_service

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Los temporizadores viven en este event loop; no deben sobrevivirle.
    logger.info("Shutting down, cancelling pending image jobs")
    image_job_service.shutdown()


app = FastAPI(
    title="Sticker API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configurable via `settings.allowed_origins` (definido en .env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(o) for o in settings.allowed_origins],
    allow_credentials=settings.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(images_router, prefix="/api")
