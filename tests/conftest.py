"""Shared fakes and fixtures for pipeline tests."""

from typing import Dict, List, Optional, Tuple

import pytest

from resume_analyzer.pipeline.contracts import (
    AuthGate,
    BlobStore,
    FeedbackService,
    RasterImage,
    RasterResult,
    Rasterizer,
    RecordStore,
    StoredBlob,
)
from resume_analyzer.pipeline.controller import PipelineController
from resume_analyzer.pipeline.models import AnalysisRequest, ResumeFile
from resume_analyzer.pipeline.session import Session

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


class FakeAuthGate(AuthGate):
    def __init__(self, authenticated: bool = True):
        self.authenticated = authenticated
        self.calls = 0

    async def is_authenticated(self) -> bool:
        self.calls += 1
        return self.authenticated


class RecordingBlobStore(BlobStore):
    """Records every upload. ``errors`` / ``return_none`` are keyed by call index."""

    def __init__(self):
        self.uploads: List[ResumeFile] = []
        self.blobs: Dict[str, bytes] = {}
        self.errors: Dict[int, Exception] = {}
        self.return_none: set = set()

    async def upload(self, blob: ResumeFile) -> Optional[StoredBlob]:
        index = len(self.uploads)
        self.uploads.append(blob)
        if index in self.errors:
            raise self.errors[index]
        if index in self.return_none:
            return None
        path = f"uploads/{index}/{blob.filename}"
        self.blobs[path] = blob.data
        return StoredBlob(path=path)

    async def download(self, path: str) -> bytes:
        return self.blobs[path]


class FakeRasterizer(Rasterizer):
    def __init__(self, result: Optional[RasterResult] = None):
        self.result = result or RasterResult(
            image=RasterImage(filename="resume.png", data=PNG_BYTES, width=10, height=14)
        )
        self.calls: List[ResumeFile] = []

    async def convert(self, pdf: ResumeFile) -> RasterResult:
        self.calls.append(pdf)
        return self.result


class RecordingRecordStore(RecordStore):
    """Keeps every ``set`` call in order. ``fail_on`` holds call indexes that raise."""

    def __init__(self):
        self.sets: List[Tuple[str, str]] = []
        self.values: Dict[str, str] = {}
        self.fail_on: set = set()

    async def set(self, key: str, value: str) -> None:
        index = len(self.sets)
        self.sets.append((key, value))
        if index in self.fail_on:
            raise ConnectionError("record store unreachable")
        self.values[key] = value

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)


class FakeFeedbackService(FeedbackService):
    def __init__(self, response=None, error: Optional[Exception] = None):
        self.response = response if response is not None else {
            "message": {"content": '{"score": 80}'}
        }
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    async def feedback(self, resume_path: str, instructions: str):
        self.calls.append((resume_path, instructions))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def auth():
    return FakeAuthGate()


@pytest.fixture
def blob_store():
    return RecordingBlobStore()


@pytest.fixture
def rasterizer():
    return FakeRasterizer()


@pytest.fixture
def record_store():
    return RecordingRecordStore()


@pytest.fixture
def feedback_service():
    return FakeFeedbackService()


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def controller(auth, blob_store, rasterizer, record_store, feedback_service, session):
    return PipelineController(
        auth=auth,
        blob_store=blob_store,
        rasterizer=rasterizer,
        record_store=record_store,
        feedback_service=feedback_service,
        session=session,
    )


@pytest.fixture
def pdf_request():
    return AnalysisRequest(
        company_name="Acme Corp",
        job_title="Backend Engineer",
        job_description="Build and run Python services.",
        file=ResumeFile(
            filename="resume.pdf",
            content_type="application/pdf",
            data=b"%PDF-1.4 test document",
        ),
    )
