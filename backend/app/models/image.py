"""Modelos de las imágenes que devuelve un job completado."""

from __future__ import annotations

from pydantic import BaseModel

FULLSIZE_PX = 1024
THUMBNAIL_PX = 512


class ImageVariant(BaseModel):
    """
    Una representación concreta de la imagen (tamaño completo o miniatura).
    """

    width: int
    height: int
    url: str  # data URL con la imagen en base64


class ImageResult(BaseModel):
    """
    Sticker generado para un prompt.
    """

    fullsize: ImageVariant
    thumbnail: ImageVariant
    label: str  # el prompt original

    @classmethod
    def from_data_url(cls, data_url: str, label: str) -> "ImageResult":
        """Ambas variantes apuntan a la misma data URL; sólo cambian las dimensiones."""
        return cls(
            fullsize=ImageVariant(width=FULLSIZE_PX, height=FULLSIZE_PX, url=data_url),
            thumbnail=ImageVariant(width=THUMBNAIL_PX, height=THUMBNAIL_PX, url=data_url),
            label=label,
        )
