# SPDX-License-Identifier: Apache-2.0
"""Pipeline error definitions."""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline errors.

    Attributes:
        stage: Pipeline stage that failed (``open``, ``page``,
            ``metadata``, ``layout``, ``render``, ``fonts``)
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        stage: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause


class ExtractionError(PipelineError):
    """Text extraction error."""


class RegenerationError(PipelineError):
    """Regeneration error."""


class RenderError(RegenerationError):
    """Drawing or serializing the output document failed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, stage="render", cause=cause)


class FontLoadError(PipelineError):
    """Fetching or validating font data failed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, stage="fonts", cause=cause)
