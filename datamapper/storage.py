from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

logger = logging.getLogger("datamapper.storage")


def utcnow() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. ``2024-05-01T12:00:00.123Z``."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class StorageError(OSError):
    """Raised when a file cannot be written to or read from disk."""


class NotFoundError(StorageError):
    """Raised when a requested file does not exist."""


@dataclass(frozen=True)
class UploadedFile:
    field_name: str
    generated_name: str
    original_name: str
    stored_path: Path

    def to_dict(self) -> Dict[str, str]:
        return {
            "filename": self.generated_name,
            "originalName": self.original_name,
            "path": str(self.stored_path),
        }


class FileStore:
    """
    Flat on-disk storage for uploads and saved mapping results.

    Uploads land in ``upload_dir`` as ``<epoch-millis>-<original name>``; results are
    written to ``results_dir`` under the caller's filename. Neither directory is ever
    cleaned up, and result filenames are joined as given.
    """

    def __init__(self, upload_dir: Path, results_dir: Path) -> None:
        self.upload_dir = Path(upload_dir)
        self.results_dir = Path(results_dir)
        self._lock = threading.Lock()
        self._last_stamp = 0

    def _next_stamp(self) -> int:
        # Millisecond prefix, strictly increasing within this process.
        with self._lock:
            stamp = max(int(time.time() * 1000), self._last_stamp + 1)
            self._last_stamp = stamp
            return stamp

    def store(self, field_name: str, original_name: str, data: bytes) -> UploadedFile:
        generated_name = f"{self._next_stamp()}-{original_name}"
        path = self.upload_dir / generated_name
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store {original_name}: {exc}") from exc
        logger.debug("Stored %s upload %s (%d bytes)", field_name, path, len(data))
        return UploadedFile(
            field_name=field_name,
            generated_name=generated_name,
            original_name=original_name,
            stored_path=path,
        )

    def read(self, path: str | Path) -> str:
        target = Path(path)
        try:
            return target.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NotFoundError(f"File not found: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to read {path}: {exc}") from exc

    def save(self, filename: str, content: str) -> Path:
        # Filenames are not sanitised; "../" segments resolve outside results_dir.
        path = self.results_dir / filename
        try:
            self.results_dir.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(content)
        except OSError as exc:
            raise StorageError(f"Failed to save {filename}: {exc}") from exc
        logger.debug("Saved result %s (%d chars)", path, len(content))
        return path

    def locate(self, filename: str) -> Path:
        path = self.results_dir / filename
        if not path.is_file():
            raise NotFoundError(f"File not found: {filename}")
        return path
