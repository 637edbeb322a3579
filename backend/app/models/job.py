"""Modelos de datos de los jobs de generación.

Un job representa una petición de cuatro stickers para un mismo prompt.
Todo vive en memoria: mientras el job está pendiente guardamos el prompt y
el temporizador que lo lanzará; después sólo queda su resultado (imágenes,
marca de cancelación o error).
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import JobStatus
from app.models.image import ImageResult


class PendingJob(BaseModel):
    """Job encolado que todavía no ha terminado."""

    id: str
    prompt: str
    # Temporizador del event loop; cancelarlo sólo tiene efecto antes de que dispare
    timer: Optional[asyncio.TimerHandle] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(arbitrary_types_allowed=True)


class FailedJob(BaseModel):
    """Job cuya generación lanzó un error."""

    id: str
    error_message: str
    failed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class JobStatusResult(BaseModel):
    """Respuesta de job-status. Los campos opcionales dependen del estado."""

    status: JobStatus
    images: Optional[List[ImageResult]] = None
    credits: Optional[int] = None
    error: Optional[str] = None
