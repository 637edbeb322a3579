"""Servicio en memoria que gestiona créditos y jobs de generación.

Guarda el saldo de créditos y las colecciones de jobs (pendientes,
completados, cancelados y fallidos). Un job pendiente lleva asociado un
temporizador del event loop; cuando dispara se lanzan las generaciones en
paralelo y, al terminar, el job pasa a completado (o fallido) siempre que
nadie lo haya cancelado entre medias.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set
from uuid import uuid4

from app.core.config import get_settings
from app.core.enums import JobStatus
from app.models.image import ImageResult
from app.models.job import FailedJob, JobStatusResult, PendingJob
from app.services.image_generation_service import ImageGenerationService

logger = logging.getLogger(__name__)


class InvalidRequestError(ValueError):
    """Falta un parámetro obligatorio."""


class InsufficientCreditsError(RuntimeError):
    """No quedan créditos para encolar otro job."""


class JobNotFoundError(LookupError):
    """El id no corresponde a ningún job (o no está en el estado esperado)."""


class ImageJobService:
    """
    Gestión de jobs de generación y del saldo de créditos.
    MVP: todo en memoria, un único proceso, sin locks.
    """

    def __init__(
        self,
        image_service: ImageGenerationService | None = None,
        initial_credits: int | None = None,
        credits_in_bundle: int | None = None,
        images_per_job: int | None = None,
        delay_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        self.image_service = image_service or ImageGenerationService()
        self.credits = settings.initial_credits if initial_credits is None else initial_credits
        self.credits_in_bundle = (
            settings.credits_in_bundle if credits_in_bundle is None else credits_in_bundle
        )
        self.images_per_job = settings.images_per_job if images_per_job is None else images_per_job
        self.delay_seconds = settings.job_delay_seconds if delay_seconds is None else delay_seconds

        self._pending: List[PendingJob] = []
        self._completed: Dict[str, List[ImageResult]] = {}
        self._cancelled: Dict[str, datetime] = {}
        self._failed: Dict[str, FailedJob] = {}
        # Referencias a las tareas en curso para que el GC no se las lleve
        self._tasks: Set[asyncio.Task] = set()

    # ---------- CRÉDITOS ----------

    def get_credits(self) -> int:
        return self.credits

    def purchase_credits(self) -> int:
        """Suma un paquete de créditos. No hay pasarela de pago: sólo contabilidad."""
        self.credits += self.credits_in_bundle
        logger.info("Credits purchased, balance is now %s", self.credits)
        return self.credits

    # ---------- CICLO DE VIDA DE LOS JOBS ----------

    def queue_job(self, prompt: Optional[str]) -> str:
        """
        Encola un job y programa su ejecución tras `delay_seconds`.

        Debe llamarse desde dentro de un event loop en marcha (un endpoint
        async de FastAPI, por ejemplo).
        """
        if self.credits <= 0:
            raise InsufficientCreditsError("Not enough credits required to generate images.")
        if not prompt:
            raise InvalidRequestError("Missing prompt parameter.")

        job_id = uuid4().hex
        loop = asyncio.get_running_loop()
        timer = loop.call_later(self.delay_seconds, self._start_job, job_id, prompt)

        self._pending.append(PendingJob(id=job_id, prompt=prompt, timer=timer))
        logger.info("Queued job %s (prompt=%r)", job_id, prompt)
        return job_id

    def get_status(self, job_id: Optional[str]) -> JobStatusResult:
        """Devuelve el estado del job o lanza `JobNotFoundError`."""
        if not job_id:
            raise InvalidRequestError("Missing jobId parameter.")

        if job_id in self._completed:
            return JobStatusResult(
                status=JobStatus.COMPLETED,
                images=self._completed[job_id],
                credits=self.credits,
            )
        if self._find_pending(job_id) is not None:
            return JobStatusResult(status=JobStatus.PROCESSING)
        if job_id in self._cancelled:
            return JobStatusResult(status=JobStatus.CANCELLED)
        if job_id in self._failed:
            return JobStatusResult(
                status=JobStatus.FAILED, error=self._failed[job_id].error_message
            )

        raise JobNotFoundError("Job not found.")

    def cancel_job(self, job_id: Optional[str]) -> None:
        """
        Cancela un job pendiente.

        Si el temporizador ya disparó, la generación en curso no se detiene:
        sus resultados se descartan cuando termine y no encuentre el job.
        """
        if not job_id:
            raise InvalidRequestError("Missing jobId parameter.")

        job = self._find_pending(job_id)
        if job is None:
            raise JobNotFoundError("Job not found.")

        if job.timer is not None:
            job.timer.cancel()
        self._pending.remove(job)
        self._cancelled[job_id] = datetime.now(timezone.utc)
        logger.info("Cancelled job %s", job_id)

    def shutdown(self) -> None:
        """Cancela temporizadores y tareas pendientes (apagado de la app)."""
        for job in self._pending:
            if job.timer is not None:
                job.timer.cancel()
        for task in list(self._tasks):
            task.cancel()

    # ---------- EJECUCIÓN DIFERIDA ----------

    def _find_pending(self, job_id: str) -> Optional[PendingJob]:
        for job in self._pending:
            if job.id == job_id:
                return job
        return None

    def _start_job(self, job_id: str, prompt: str) -> None:
        """Callback del temporizador: lanza la generación como tarea async."""
        task = asyncio.ensure_future(self._run_job(job_id, prompt))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_job(self, job_id: str, prompt: str) -> None:
        logger.info("Generating %s images for job %s", self.images_per_job, job_id)
        tasks = [
            asyncio.ensure_future(self.image_service.generate_image(prompt))
            for _ in range(self.images_per_job)
        ]
        try:
            images = await asyncio.gather(*tasks)
        except Exception as e:
            # El primer fallo aborta el lote: el resto de llamadas no sirven
            for task in tasks:
                if not task.done():
                    task.cancel()
            logger.exception("Image generation failed for job %s", job_id)
            self._fail_job(job_id, str(e))
            return

        self._complete_job(job_id, list(images))

    def _complete_job(self, job_id: str, images: List[ImageResult]) -> None:
        job = self._find_pending(job_id)
        if job is None:
            # Cancelado mientras se generaba
            logger.debug("Discarding results for job %s (no longer pending)", job_id)
            return

        self._pending.remove(job)
        self._completed[job_id] = images
        self.credits -= 1
        logger.info("Completed job %s, balance is now %s", job_id, self.credits)

    def _fail_job(self, job_id: str, error_message: str) -> None:
        job = self._find_pending(job_id)
        if job is None:
            return

        self._pending.remove(job)
        self._failed[job_id] = FailedJob(id=job_id, error_message=error_message)
