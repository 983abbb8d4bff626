"""In-process key/value record store for local development."""

from typing import Dict, Optional

from resume_analyzer.pipeline.contracts import RecordStore


class InMemoryRecordStore(RecordStore):
    """Dict-backed record store. Contents are lost on restart."""

    def __init__(self):
        self._values: Dict[str, str] = {}

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def keys(self):
        return list(self._values.keys())
