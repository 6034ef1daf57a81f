"""Job store interface and backends."""

from .base import JobStore
from .file import FileJobStore
from .memory import InMemoryJobStore

__all__ = ["FileJobStore", "InMemoryJobStore", "JobStore"]
