"""Carga de configuración de la aplicación.

Usa `pydantic-settings` para leer valores desde `.env` o variables de
entorno. Cada campo lleva un comentario corto que explica qué controla
dentro del flujo de generación de stickers.
"""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Contenedor tipado para todas las opciones configurables."""

    app_name: str = "Sticker API"
    environment: str = "development"

    # Credencial de Gemini. Sin ella usamos un placeholder y las llamadas fallan.
    gemini_api_key: str = "YOUR_API_KEY"
    gemini_image_model: str = "gemini-2.0-flash-preview-image-generation"

    # Créditos
    initial_credits: int = 10
    credits_in_bundle: int = 10

    # Cola de generación
    images_per_job: int = 4
    job_delay_seconds: float = 5.0

    # Eliminación de fondo (modelo de rembg)
    background_removal_enabled: bool = True
    background_removal_model: str = "u2net"

    # CORS. Acepta "http://a.com,http://b.com" o una lista JSON
    allowed_origins: Annotated[list[str], NoDecode] = ["*"]
    allow_credentials: bool = False

    # Le indicamos a Pydantic que lea automáticamente las variables de entorno
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_allowed_origins(cls, value):
        """Convierte la cadena del entorno en lista de orígenes."""
        if not isinstance(value, str):
            return value
        if value.strip().startswith("["):
            return json.loads(value)
        return [s.strip() for s in value.split(",") if s.strip()]


@lru_cache
def get_settings() -> Settings:
    """Crea (y memoriza) la configuración de forma perezosa.

    Usamos `lru_cache` para que sólo se construya una instancia por proceso,
    evitando relecturas repetidas de `.env`.
    """
    return Settings()
