"""Montage Generator - LLM-planned montages with concurrently generated visuals."""

__version__ = "0.1.0"

from montagegen.core.config import MontageConfig, config
from montagegen.core.pipeline import MontagePipeline

__all__ = [
    "MontageConfig",
    "MontagePipeline",
    "config",
]
