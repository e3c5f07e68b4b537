"""File-system storage backends for batch generation."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from labcert.exceptions import AssetNotFoundError
from labcert.models import ReportRecord
from labcert.storage.protocols import CompletionEvent

log = logging.getLogger(__name__)


def _safe_name(name: str) -> str:
    return name.replace("/", "_").replace("\\", "_")


class DirectoryRecordSource:
    """Reads pending records from ``*.json`` files (one record or a list per file)."""

    def __init__(self, inbox: Path) -> None:
        self._inbox = inbox

    def fetch_pending(self) -> list[ReportRecord]:
        if not self._inbox.is_dir():
            log.info(f"Record inbox {self._inbox} does not exist")
            return []

        records: list[ReportRecord] = []
        for path in sorted(self._inbox.glob("*.json")):
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                log.error(f"Skipping unreadable record file {path.name}: {exc}")
                continue
            items = raw if isinstance(raw, list) else [raw]
            for index, item in enumerate(items):
                try:
                    records.append(ReportRecord.model_validate(item))
                except ValidationError as exc:
                    log.error(f"Skipping invalid record {path.name}[{index}]: {exc.error_count()} errors")
        return records


class FileAssetStore:
    """Assets stored as ``<root>/<container>/<name>``."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def get(self, container: str, name: str) -> bytes:
        path = self._root / _safe_name(container) / _safe_name(name)
        if not path.is_file():
            raise AssetNotFoundError(f"Asset not found: {container}/{name} (path: {path})")
        return path.read_bytes()


class FileReportStore:
    """Writes rendered reports into an outbox directory."""

    def __init__(self, outbox: Path) -> None:
        self._outbox = outbox
        self._outbox.mkdir(parents=True, exist_ok=True)

    def save(self, name: str, data: bytes) -> None:
        path = self._outbox / _safe_name(name)
        path.write_bytes(data)
        log.debug(f"Saved {name} to {path}")


class JsonlEventPublisher:
    """Appends completion events to a JSON-lines file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def publish(self, events: list[CompletionEvent]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as fh:
            for event in events:
                fh.write(event.model_dump_json(by_alias=True) + "\n")
