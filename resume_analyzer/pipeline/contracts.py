"""Collaborator interfaces used by the pipeline controller.

Concrete implementations live in ``resume_analyzer.auth``,
``resume_analyzer.storage``, ``resume_analyzer.processing`` and
``resume_analyzer.feedback``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Union

from resume_analyzer.feedback.content import FeedbackResponse
from resume_analyzer.pipeline.models import ResumeFile


@dataclass(frozen=True)
class StoredBlob:
    """Handle returned by a blob store upload."""
    path: str


@dataclass(frozen=True)
class RasterImage:
    filename: str
    data: bytes
    content_type: str = "image/png"
    width: int = 0
    height: int = 0

    @property
    def size(self) -> int:
        return len(self.data)

    def as_upload(self) -> ResumeFile:
        return ResumeFile(
            filename=self.filename,
            content_type=self.content_type,
            data=self.data,
        )


@dataclass(frozen=True)
class RasterResult:
    """Either ``image`` or ``error`` is set, never both."""
    image: Optional[RasterImage] = None
    error: Optional[str] = None


class AuthGate(ABC):
    """Reports whether the acting user is signed in."""

    @abstractmethod
    async def is_authenticated(self) -> bool:
        ...


class BlobStore(ABC):
    """Binary storage returning stable, addressable paths."""

    @abstractmethod
    async def upload(self, blob: ResumeFile) -> Optional[StoredBlob]:
        """Store a binary. Returns None or raises on failure."""
        ...

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Fetch a previously uploaded binary."""
        ...


class Rasterizer(ABC):
    """Turns page 1 of a PDF into an image."""

    @abstractmethod
    async def convert(self, pdf: ResumeFile) -> RasterResult:
        """Must not raise: failures are reported in ``RasterResult.error``."""
        ...


class RecordStore(ABC):
    """Key/value persistence for serialized records."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...


class FeedbackService(ABC):
    """AI-backed critique of a stored résumé."""

    @abstractmethod
    async def feedback(
        self, resume_path: str, instructions: str
    ) -> Optional[Union[FeedbackResponse, Dict]]:
        """Return the model response (or its dict form), or None if unavailable."""
        ...
