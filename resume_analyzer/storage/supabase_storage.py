"""Supabase-backed blob and record stores."""

from typing import Optional

from supabase import Client

from resume_analyzer.pipeline.contracts import BlobStore, RecordStore, StoredBlob
from resume_analyzer.pipeline.models import ResumeFile
from resume_analyzer.storage.naming import object_path


class SupabaseBlobStore(BlobStore):
    """Uploads binaries to a Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str):
        self._client = client
        self._bucket = bucket

    async def upload(self, blob: ResumeFile) -> Optional[StoredBlob]:
        path = object_path(blob.filename)
        response = self._client.storage.from_(self._bucket).upload(
            path=path,
            file=blob.data,
            file_options={
                "content-type": blob.content_type or "application/octet-stream",
                "upsert": "false",
            },
        )
        if response is None:
            return None
        return StoredBlob(path=getattr(response, "path", None) or path)

    async def download(self, path: str) -> bytes:
        return self._client.storage.from_(self._bucket).download(path)


class SupabaseRecordStore(RecordStore):
    """Key/value records in a two-column (``key``, ``value``) table."""

    def __init__(self, client: Client, table: str):
        self._client = client
        self._table = table

    async def set(self, key: str, value: str) -> None:
        (
            self._client.table(self._table)
            .upsert({"key": key, "value": value}, on_conflict="key")
            .execute()
        )

    async def get(self, key: str) -> Optional[str]:
        response = (
            self._client.table(self._table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]["value"]
