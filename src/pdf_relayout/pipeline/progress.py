# SPDX-License-Identifier: Apache-2.0
"""Progress reporting for extraction and regeneration."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

# Stage names passed to ProgressCallback
STAGE_EXTRACT = "extract"
STAGE_FONTS = "fonts"
STAGE_REGENERATE = "regenerate"


@runtime_checkable
class ProgressCallback(Protocol):
    """Receives ``(stage, current, total, message)`` as work completes.

    ``extract`` and ``regenerate`` count pages, ``fonts`` counts font
    requests. ``current`` is 1-based.
    """

    def __call__(
        self,
        stage: str,
        current: int,
        total: int,
        message: str = "",
    ) -> None: ...
