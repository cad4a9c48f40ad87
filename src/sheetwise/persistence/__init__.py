"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from sheetwise.core.config import AppSettings
from sheetwise.persistence.memory_backend import MemoryOperationStore


def create_persistence(settings: AppSettings | None = None) -> MemoryOperationStore:
    """Create the operation store from application settings.

    The sweep is not started here; the caller owns its lifecycle.
    """
    if settings is None:
        settings = AppSettings()

    return MemoryOperationStore(config=settings.operations)
