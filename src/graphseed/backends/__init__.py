"""Backend implementations for persisting resolved rows."""

from graphseed.backends.base import Backend
from graphseed.backends.direct import DirectBackend
from graphseed.backends.staging import StagingBackend

__all__ = ["Backend", "DirectBackend", "StagingBackend"]
