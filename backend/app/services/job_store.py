"""Almacén global de jobs en memoria.

No hay base de datos, así que exponemos una instancia única de
`ImageJobService` que vive mientras el proceso está en marcha. Los routers
la reciben mediante `get_image_job_service`, que los tests pueden
sustituir con `app.dependency_overrides`.
"""

from app.services.job_service import ImageJobService

# Instancia global única para toda la app (MVP en memoria)
image_job_service = ImageJobService()


def get_image_job_service() -> ImageJobService:
    return image_job_service
