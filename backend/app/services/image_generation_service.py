"""Generación de stickers con la API de Gemini (google-genai)."""

from __future__ import annotations

import asyncio
import base64
import logging

from google import genai
from google.genai import types

from app.core.config import get_settings
from app.models.image import ImageResult
from app.services.background_removal_service import BackgroundRemovalService

logger = logging.getLogger(__name__)

STICKER_PROMPT_TEMPLATE = (
    "Create a fun, colorful, work-safe PNG sticker of: {prompt}.\n"
    "Only the subject should be visible with white background.\n"
    "Use vector art style, bold outlines, and no shadows.\n"
    "Return only a PNG image."
)

BLOCKED_HARM_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
)


class ImageGenerationError(RuntimeError):
    """La respuesta de Gemini no trae una imagen utilizable."""


def build_sticker_prompt(prompt: str) -> str:
    return STICKER_PROMPT_TEMPLATE.format(prompt=prompt)


def to_data_url(image_bytes: bytes, mime_type: str = "image/png") -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class ImageGenerationService:
    """
    Encapsula las llamadas a Gemini para convertir un prompt en un sticker.
    """

    def __init__(
        self,
        model: str | None = None,
        background_removal: BackgroundRemovalService | None = None,
    ) -> None:
        """
        model: nombre del modelo de imagen de Gemini. Por defecto, el de settings.
        """
        self.settings = get_settings()
        self.model = model or self.settings.gemini_image_model
        self.background_removal = background_removal or BackgroundRemovalService()
        self.background_removal_enabled = self.settings.background_removal_enabled
        # El cliente se crea bajo demanda para no exigir credenciales al importar.
        self.client = None

    def _get_client(self):
        if self.client is None:
            self.client = genai.Client(api_key=self.settings.gemini_api_key)
        return self.client

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            safety_settings=[
                types.SafetySetting(
                    category=category,
                    threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
                )
                for category in BLOCKED_HARM_CATEGORIES
            ],
        )

    async def generate_image(self, prompt: str) -> ImageResult:
        """
        Pide a Gemini un sticker para `prompt` y devuelve la imagen sin fondo.

        Si la eliminación de fondo falla, se devuelve la imagen original.
        Lanza `ImageGenerationError` si la respuesta no contiene imagen.
        """
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=build_sticker_prompt(prompt),
            config=self._build_config(),
        )

        if not response.candidates:
            raise ImageGenerationError("No candidates returned from Gemini API")

        candidate = response.candidates[0]
        if not candidate or not candidate.content or not candidate.content.parts:
            raise ImageGenerationError("Invalid candidate structure from Gemini API")

        for part in candidate.content.parts:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is None or not inline_data.data:
                continue

            image_bytes = inline_data.data
            data_url = await self._process_image(prompt, image_bytes, inline_data.mime_type)
            return ImageResult.from_data_url(data_url, label=prompt)

        raise ImageGenerationError("No image generated")

    async def _process_image(
        self, prompt: str, image_bytes: bytes, mime_type: str | None
    ) -> str:
        """Intenta quitar el fondo; si no se puede, usa los bytes tal cual."""
        original_url = to_data_url(image_bytes, mime_type or "image/png")
        if not self.background_removal_enabled:
            return original_url

        try:
            processed = await asyncio.to_thread(
                self.background_removal.remove_background, image_bytes
            )
        except Exception:
            logger.exception("Background removal failed for %r", prompt)
            return original_url

        return to_data_url(processed, "image/png")
