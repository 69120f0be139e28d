# SPDX-License-Identifier: Apache-2.0
"""Extraction and regeneration pipeline package."""

from .errors import (
    ExtractionError,
    FontLoadError,
    PipelineError,
    RegenerationError,
    RenderError,
)
from .extraction import DocumentExtractor, ExtractionConfig
from .progress import ProgressCallback
from .regeneration import DocumentRegenerator, RegenerationConfig, RegenerationResult

__all__ = [
    "DocumentExtractor",
    "DocumentRegenerator",
    "ExtractionConfig",
    "ExtractionError",
    "FontLoadError",
    "PipelineError",
    "ProgressCallback",
    "RegenerationConfig",
    "RegenerationError",
    "RegenerationResult",
    "RenderError",
]
