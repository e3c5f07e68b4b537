"""Storage backends for batch certificate generation."""

from __future__ import annotations

from labcert.storage.file_backend import (
    DirectoryRecordSource,
    FileAssetStore,
    FileReportStore,
    JsonlEventPublisher,
)
from labcert.storage.protocols import (
    CompletionEvent,
    IAssetStore,
    IEventPublisher,
    IRecordSource,
    IReportStore,
)

__all__ = [
    "CompletionEvent",
    "DirectoryRecordSource",
    "FileAssetStore",
    "FileReportStore",
    "IAssetStore",
    "IEventPublisher",
    "IRecordSource",
    "IReportStore",
    "JsonlEventPublisher",
]
