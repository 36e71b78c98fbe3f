"""Core montage generation pipeline.

Architecture Overview
---------------------
1. **Configuration** (config.py): Pydantic Settings, ``MONTAGE_`` prefix.
2. **Schema** (schema.py): the montage contract, embedded in prompts and
   enforced on LLM output.
3. **Generation** (prompt_builder.py, generation.py, validator.py): prompt
   compilation, the Gemini client, and output parsing.
4. **Images** (extractor.py, images.py, fanout.py): segment prompt
   extraction, the fal.ai client, and concurrent settle-all fan-out.
5. **Orchestration** (pipeline.py, aggregator.py): the per-request stage
   sequence and final response assembly.
6. **Errors** (errors.py): the failure taxonomy mapped to HTTP statuses.
"""

from montagegen.core.config import MontageConfig, config
from montagegen.core.errors import MontageError
from montagegen.core.pipeline import MontagePipeline, PipelineStage

__all__ = [
    "MontageConfig",
    "MontageError",
    "MontagePipeline",
    "PipelineStage",
    "config",
]
