from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from app.services.job_service import (
    ImageJobService,
    InsufficientCreditsError,
    InvalidRequestError,
    JobNotFoundError,
)
from app.services.job_store import get_image_job_service

router = APIRouter(tags=["images"])


def _bad_request(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/credits", summary="Get the current credit balance")
async def get_credits(
    service: ImageJobService = Depends(get_image_job_service),
) -> dict:
    return {"credits": service.get_credits()}


@router.post("/purchase-credits", summary="Add a bundle of credits")
async def purchase_credits(
    service: ImageJobService = Depends(get_image_job_service),
) -> dict:
    return {"credits": service.purchase_credits()}


@router.get("/queue-image-generation", summary="Queue a sticker generation job")
async def queue_image_generation(
    prompt: Optional[str] = Query(default=None),
    service: ImageJobService = Depends(get_image_job_service),
) -> dict:
    # Los parámetros son opcionales para FastAPI: si faltan respondemos 400, no 422.
    try:
        job_id = service.queue_job(prompt)
    except InsufficientCreditsError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidRequestError as e:
        raise _bad_request(e)

    return {"jobId": job_id}


@router.get("/job-status", summary="Get job status")
async def get_job_status(
    job_id: Optional[str] = Query(default=None, alias="jobId"),
    service: ImageJobService = Depends(get_image_job_service),
) -> dict:
    try:
        result = service.get_status(job_id)
    except InvalidRequestError as e:
        raise _bad_request(e)
    except JobNotFoundError as e:
        raise _not_found(e)

    return result.model_dump(mode="json", exclude_none=True)


@router.post(
    "/job-status/cancel",
    summary="Cancel a pending job",
    response_class=PlainTextResponse,
)
async def cancel_job(
    job_id: Optional[str] = Query(default=None, alias="jobId"),
    service: ImageJobService = Depends(get_image_job_service),
) -> str:
    try:
        service.cancel_job(job_id)
    except InvalidRequestError as e:
        raise _bad_request(e)
    except JobNotFoundError as e:
        raise _not_found(e)

    return "Job successfully cancelled."
