"""Configuration management for the Montage Generator.

Configuration is resolved once, at process start, using Pydantic Settings.
Values are loaded from environment variables with the ``MONTAGE_`` prefix,
allowing easy customization without code changes.  The resulting
:class:`MontageConfig` is passed explicitly into the generation client, the
image client, and the pipeline, so core logic never reads the environment
at request time.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (MONTAGE_* prefix)
2. .env file in the project root
3. Default values defined in MontageConfig

The two service credentials also accept the names the vendors document,
so existing deployments keep working:

- ``MONTAGE_GOOGLE_API_KEY`` or ``GOOGLE_API_KEY``
- ``MONTAGE_FAL_KEY``, ``FAL_KEY`` or ``FAL_AI_API_KEY``

Example .env file:
    GOOGLE_API_KEY=...
    FAL_KEY=...
    MONTAGE_GENERATION_MODEL=gemini-2.5-flash
    MONTAGE_MAX_SEGMENTS=5
    MONTAGE_FANOUT_POLICY=atomic

Missing credentials do not prevent start-up.  They are reported as a
:class:`~montagegen.core.errors.ConfigurationError` when a request first
needs them.

Global Configuration Instance
------------------------------
A global ``config`` instance is created at module import time and is the
default used by :mod:`montagegen.api.main`.  Tests build their own instances.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MontageConfig(BaseSettings):
    """Main configuration for the Montage Generator.

    Attributes
    ----------
    Credentials:
        google_api_key : str | None
            API key for the Gemini generation service
        fal_key : str | None
            API key for the fal.ai image service

    Generation Settings:
        generation_model : str
            Gemini model identifier used for montage descriptors
        generation_timeout_seconds : float
            Deadline for a single generation call

    Image Settings:
        image_application : str
            fal.ai application invoked once per segment prompt
        image_timeout_seconds : float
            Deadline for a single image call
        max_segments : int
            Maximum number of segment prompts sent to the image service
        fanout_policy : Literal["atomic", "partial"]
            What to do when some image calls fail

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Root logging level used by ``main()``

    Examples
    --------
        >>> custom = MontageConfig(google_api_key="k", fal_key="f", max_segments=3)
        >>> custom.max_segments
        3
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MONTAGE_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Credentials
    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("google_api_key", "MONTAGE_GOOGLE_API_KEY", "GOOGLE_API_KEY"),
        description="API key for the Gemini generation service",
    )
    fal_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("fal_key", "MONTAGE_FAL_KEY", "FAL_KEY", "FAL_AI_API_KEY"),
        description="API key for the fal.ai image service",
    )

    # Generation settings
    generation_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model identifier",
    )
    generation_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Deadline for a single generation call",
    )

    # Image fan-out settings
    image_application: str = Field(
        default="fal-ai/flux/dev",
        description="fal.ai application invoked per segment prompt",
    )
    image_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Deadline for a single image call",
    )
    max_segments: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum number of segment prompts fanned out to the image service",
    )
    fanout_policy: Literal["atomic", "partial"] = Field(
        default="atomic",
        description="atomic: any image failure fails the request; partial: return placeholders",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root logging level",
    )


# Global configuration instance, loaded from MONTAGE_* variables and .env.
config = MontageConfig()
