"""Montage Generator: FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, the REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application is stateless between requests:

- **Configuration** is resolved once from the environment into
  :data:`~montagegen.core.config.config`.
- **Montage generation** is performed by
  :class:`~montagegen.core.pipeline.MontagePipeline`, built at start-up and
  stored on ``app.state.pipeline``.
- **Error reporting** happens in one place: the generate route maps every
  :class:`~montagegen.core.errors.MontageError` to its status and public
  message, and anything else to a generic 500.  The original error is
  logged; the caller never learns which upstream service failed.

Endpoints
---------
========  ==========================  ======================================
Method    Path                        Purpose
========  ==========================  ======================================
POST      ``/api/generate-montage``   Generate a montage and its images
GET       ``/api/config``             Non-secret runtime configuration
GET       ``/api/schema``             Montage JSON schema used in prompts
GET       ``/api/health``             Liveness check
========  ==========================  ======================================

Usage
-----
CLI (installed entry point)::

    montagegen

Direct invocation::

    python -m montagegen.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from montagegen import __version__
from montagegen.api.models import ErrorResponse, MontageResponse
from montagegen.core.config import config
from montagegen.core.errors import GENERIC_ERROR_MESSAGE, InputError, MontageError
from montagegen.core.pipeline import MontagePipeline
from montagegen.core.schema import montage_json_schema

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle: pipeline setup.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the montage pipeline on startup.

    Missing credentials are not checked here; they surface per request as
    a logged 500 so the service can still answer health checks.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.config = config
    app.state.pipeline = MontagePipeline.from_config(config)
    logger.info(
        f"MontagePipeline initialised (model={config.generation_model}, "
        f"images={config.image_application}, policy={config.fanout_policy})."
    )

    yield


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Montage Generator",
    description="Turns a creative direction into a segmented montage with generated visuals.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so a separately served frontend can call the
# API during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(error: MontageError) -> JSONResponse:
    """Render a pipeline error as ``{"error": <public message>}``."""
    return JSONResponse({"error": error.public_message}, status_code=error.status_code)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post(
    "/api/generate-montage",
    responses={
        200: {"model": MontageResponse},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_montage(request: Request) -> JSONResponse:
    """Generate a montage descriptor and one image per segment.

    This endpoint:

    1. Reads ``{"text": str}`` from the body (400 if unusable).
    2. Runs the montage pipeline: LLM generation, validation, prompt
       extraction, concurrent image fan-out.
    3. Returns ``{"montage": ..., "falOutputs": [...]}``.

    Args:
        request: The incoming request.  The body is parsed here rather than
            through a Pydantic model so that a bad ``text`` yields the fixed
            400 body.

    Returns:
        JSON response with the montage on success, or ``{"error": ...}``.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str) or not text:
        logger.warning("Rejected montage request without a usable `text` field")
        return _error_response(InputError())

    pipeline: MontagePipeline = request.app.state.pipeline
    try:
        result = await pipeline.run(text)
        # Rendered inside the try so serialisation errors also become a 500.
        return JSONResponse(result)
    except MontageError as e:
        logger.error(f"Montage generation failed ({type(e).__name__}): {e}", exc_info=True)
        return _error_response(e)
    except Exception as e:
        logger.error(f"Error generating montage or processing image prompts: {e}", exc_info=True)
        return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=500)


@app.get("/api/config")
async def get_config(request: Request) -> dict:
    """Return non-secret runtime configuration.

    Credentials are reported only as booleans.

    Returns:
        Dictionary with ``version``, model and application identifiers,
        fan-out settings, timeouts, and credential presence flags.
    """
    cfg = request.app.state.config
    return {
        "version": __version__,
        "generation_model": cfg.generation_model,
        "image_application": cfg.image_application,
        "max_segments": cfg.max_segments,
        "fanout_policy": cfg.fanout_policy,
        "generation_timeout_seconds": cfg.generation_timeout_seconds,
        "image_timeout_seconds": cfg.image_timeout_seconds,
        "credentials": {
            "generation": bool(cfg.google_api_key),
            "images": bool(cfg.fal_key),
        },
    }


@app.get("/api/schema")
async def get_schema() -> dict:
    """Return the montage JSON schema embedded in generation prompts."""
    return montage_json_schema()


@app.get("/api/health")
async def health() -> dict:
    """Liveness check."""
    return {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~montagegen.core.config.config`
    (``MONTAGE_SERVER_HOST``, ``MONTAGE_SERVER_PORT``, ``MONTAGE_LOG_LEVEL``).
    Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``montagegen`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting Montage Generator {__version__}")

    uvicorn.run(
        "montagegen.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
