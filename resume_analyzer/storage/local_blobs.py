"""Local disk blob store with TTL-based cleanup, for development without Supabase."""

import os
import shutil
import tempfile
import time
from typing import Optional

from resume_analyzer.pipeline.contracts import BlobStore, StoredBlob
from resume_analyzer.pipeline.models import ResumeFile
from resume_analyzer.storage.naming import object_path


class LocalBlobStore(BlobStore):
    """Stores uploads under a base directory, one subdirectory per upload."""

    def __init__(self, base_dir: Optional[str] = None, ttl_hours: int = 24):
        if base_dir:
            self._base_dir = base_dir
        else:
            self._base_dir = os.path.join(tempfile.gettempdir(), "resume_analyzer_blobs")
        os.makedirs(self._base_dir, exist_ok=True)
        self._ttl_seconds = ttl_hours * 3600

    async def upload(self, blob: ResumeFile) -> Optional[StoredBlob]:
        path = object_path(blob.filename)
        full_path = self._full_path(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as dst:
            dst.write(blob.data)
        return StoredBlob(path=path)

    async def download(self, path: str) -> bytes:
        full_path = self._full_path(path)
        if not os.path.exists(full_path):
            raise FileNotFoundError(f"Blob '{path}' not found")
        with open(full_path, "rb") as src:
            return src.read()

    def exists(self, path: str) -> bool:
        return os.path.exists(self._full_path(path))

    def cleanup_expired(self) -> int:
        """Remove upload directories older than TTL. Returns count of removed dirs."""
        now = time.time()
        removed = 0
        if not os.path.exists(self._base_dir):
            return 0
        for entry in os.listdir(self._base_dir):
            upload_dir = os.path.join(self._base_dir, entry)
            if not os.path.isdir(upload_dir):
                continue
            mtime = os.path.getmtime(upload_dir)
            if now - mtime > self._ttl_seconds:
                shutil.rmtree(upload_dir, ignore_errors=True)
                removed += 1
        return removed

    def _full_path(self, path: str) -> str:
        full_path = os.path.normpath(os.path.join(self._base_dir, path))
        if not full_path.startswith(os.path.normpath(self._base_dir) + os.sep):
            raise ValueError(f"Invalid blob path '{path}'")
        return full_path
