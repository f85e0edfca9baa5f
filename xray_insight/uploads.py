import os
import time
import random
import logging
from pathlib import Path
from typing import Iterable, Optional

FIELD_NAME = "xrayImage"


def is_allowed_extension(filename: str, allowed_extensions: Iterable[str]) -> bool:
    return os.path.splitext(filename or "")[1].lower() in tuple(allowed_extensions)


class UploadStore:
    """
    The directory holding uploaded images.

    Every file gets a unique name, so concurrent requests never write the same
    path. Files older than the retention window are removed by cleanup().
    """

    def __init__(self, directory, allowed_extensions: Iterable[str], retention_hours: float = 24):
        self.directory = Path(directory)
        self.allowed_extensions = tuple(allowed_extensions)
        self.retention_seconds = retention_hours * 60 * 60
        self.directory.mkdir(parents=True, exist_ok=True)

    def unique_name(self, original_name: str) -> str:
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{FIELD_NAME}-{suffix}{os.path.splitext(original_name or '')[1].lower()}"

    def save(self, original_name: str, data: bytes) -> Path:
        path = self.directory / self.unique_name(original_name)
        path.write_bytes(data)
        logging.info(f"Saved upload '{original_name}' as {path.name} ({len(data)} bytes)")
        return path

    def remove(self, path: Optional[Path]) -> None:
        if path is None:
            return
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logging.error(f"Could not delete uploaded file {path}: {e}")

    def count_images(self) -> int:
        return sum(1 for p in self.directory.iterdir()
                   if p.is_file() and p.suffix.lower() in self.allowed_extensions)

    def cleanup(self, now: Optional[float] = None) -> int:
        """Deletes files whose modification time is older than the retention window."""
        cutoff = (now if now is not None else time.time()) - self.retention_seconds
        deleted = 0
        for path in self.directory.iterdir():
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                deleted += 1
        logging.info(f"Cleanup removed {deleted} files from {self.directory}")
        return deleted
