import time

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.image import ImageResult
from app.services.image_generation_service import ImageGenerationError
from app.services.job_service import ImageJobService
from app.services.job_store import get_image_job_service


class StubImageService:
    async def generate_image(self, prompt: str) -> ImageResult:  # type: ignore[override]
        return ImageResult.from_data_url("data:image/png;base64,AAAA", label=prompt)


def override_service(**kwargs) -> ImageJobService:
    kwargs.setdefault("initial_credits", 10)
    kwargs.setdefault("delay_seconds", 60)
    service = ImageJobService(image_service=StubImageService(), **kwargs)
    app.dependency_overrides[get_image_job_service] = lambda: service
    return service


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


def test_health():
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_credits_and_purchase():
    override_service()
    client = TestClient(app)

    assert client.get("/api/credits").json() == {"credits": 10}
    assert client.post("/api/purchase-credits").json() == {"credits": 20}
    assert client.post("/api/purchase-credits").json() == {"credits": 30}
    assert client.get("/api/credits").json() == {"credits": 30}


def test_queue_requires_prompt():
    service = override_service()
    client = TestClient(app)

    response = client.get("/api/queue-image-generation")

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing prompt parameter."
    assert service._pending == []


def test_no_credits_blocks_queue_and_fabricated_ids_are_not_found():
    service = override_service(initial_credits=0)
    client = TestClient(app)

    response = client.get("/api/queue-image-generation", params={"prompt": "cat"})
    assert response.status_code == 403
    assert service._pending == []

    response = client.get("/api/job-status", params={"jobId": "made-up"})
    assert response.status_code == 404


def test_job_status_requires_job_id():
    override_service()
    client = TestClient(app)

    assert client.get("/api/job-status").status_code == 400
    assert client.post("/api/job-status/cancel").status_code == 400


def test_queue_then_cancel():
    override_service()

    with TestClient(app) as client:
        response = client.get("/api/queue-image-generation", params={"prompt": "dog"})
        assert response.status_code == 200
        job_id = response.json()["jobId"]

        status_response = client.get("/api/job-status", params={"jobId": job_id})
        assert status_response.json() == {"status": "processing"}

        cancel_response = client.post("/api/job-status/cancel", params={"jobId": job_id})
        assert cancel_response.status_code == 200
        assert cancel_response.text == "Job successfully cancelled."

        status_response = client.get("/api/job-status", params={"jobId": job_id})
        assert status_response.json() == {"status": "cancelled"}

        again = client.post("/api/job-status/cancel", params={"jobId": job_id})
        assert again.status_code == 404

        assert client.get("/api/credits").json() == {"credits": 10}


def test_queued_job_completes_with_four_images():
    override_service(delay_seconds=0.05)

    with TestClient(app) as client:
        job_id = client.get(
            "/api/queue-image-generation", params={"prompt": "cat"}
        ).json()["jobId"]

        deadline = time.monotonic() + 5
        data = {}
        while time.monotonic() < deadline:
            data = client.get("/api/job-status", params={"jobId": job_id}).json()
            if data["status"] != "processing":
                break
            time.sleep(0.05)

    assert data["status"] == "completed"
    assert data["credits"] == 9
    assert len(data["images"]) == 4
    for image in data["images"]:
        assert image["fullsize"] == {
            "width": 1024,
            "height": 1024,
            "url": "data:image/png;base64,AAAA",
        }
        assert image["thumbnail"]["width"] == 512
        assert image["label"] == "cat"


class FailingImageService:
    async def generate_image(self, prompt: str) -> ImageResult:  # type: ignore[override]
        raise ImageGenerationError("No candidates returned from Gemini API")


def test_failed_job_reports_error():
    service = ImageJobService(
        image_service=FailingImageService(), initial_credits=10, delay_seconds=0.05
    )
    app.dependency_overrides[get_image_job_service] = lambda: service

    with TestClient(app) as client:
        job_id = client.get(
            "/api/queue-image-generation", params={"prompt": "cat"}
        ).json()["jobId"]

        deadline = time.monotonic() + 5
        response = None
        while time.monotonic() < deadline:
            response = client.get("/api/job-status", params={"jobId": job_id})
            if response.json()["status"] != "processing":
                break
            time.sleep(0.05)

        credits = client.get("/api/credits").json()

    assert response.status_code == 200
    assert response.json() == {
        "status": "failed",
        "error": "No candidates returned from Gemini API",
    }
    assert credits == {"credits": 10}
