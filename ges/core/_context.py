from __future__ import annotations

from typing import Any

from .data_model import DataModel


class Context(DataModel):
    """
    Call context.

    Passed through to the engine unmodified.
    """

    id: str | None = None
    timeout: float | None = None
    """Per-call deadline in seconds."""

    data: dict[str, Any] | None = None
