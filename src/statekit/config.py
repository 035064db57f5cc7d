"""Configuration types for statekit containers."""

from __future__ import annotations

from pydantic import BaseModel, Field


class StoreConfig(BaseModel, frozen=True):
    """Immutable configuration for a snapshot store.

    Args:
        name: Label used in log records and ``repr``.
        skip_identical: When true, publishing the very object that is already
            current is ignored (no swap, no notification).
    """

    name: str = Field(default="map", min_length=1, description="Container label for logs")
    skip_identical: bool = Field(
        default=True,
        description="Ignore publish() of the snapshot object that is already current",
    )
