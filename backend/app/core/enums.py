"""Enumeraciones compartidas que describen el estado de los trabajos."""

from enum import Enum


class JobStatus(str, Enum):
    """Estados que devuelve el endpoint de job-status."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
