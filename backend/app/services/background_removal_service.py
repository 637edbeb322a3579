"""Eliminación de fondo de los stickers usando rembg."""

from __future__ import annotations

import io
import logging

from PIL import Image

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class BackgroundRemovalService:
    """
    Quita el fondo de una imagen y la devuelve como PNG con transparencia.
    """

    def __init__(self, model_name: str | None = None) -> None:
        settings = get_settings()
        self.model_name = model_name or settings.background_removal_model
        self._session = None

    def _get_session(self):
        """Crea la sesión de rembg la primera vez (descarga el modelo si hace falta)."""
        if self._session is None:
            from rembg import new_session

            logger.info("Initializing rembg session (%s)", self.model_name)
            self._session = new_session(self.model_name)
        return self._session

    def _remove(self, image: Image.Image) -> Image.Image:
        from rembg import remove

        return remove(image, session=self._get_session())

    def remove_background(self, image_bytes: bytes) -> bytes:
        """
        Devuelve los bytes PNG (RGBA) de la imagen sin fondo.

        Es una operación bloqueante y costosa en CPU; desde código async hay
        que llamarla en un hilo aparte.
        """
        with Image.open(io.BytesIO(image_bytes)) as input_image:
            output_image = self._remove(input_image)

        if output_image.mode != "RGBA":
            output_image = output_image.convert("RGBA")

        buffer = io.BytesIO()
        output_image.save(buffer, format="PNG")
        return buffer.getvalue()
