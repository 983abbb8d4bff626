"""Data model for the upload-and-analyze pipeline."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

RECORD_KEY_PREFIX = "resume:"


class PipelineState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    UPLOADING_RESUME = "uploading_resume"
    CONVERTING_TO_IMAGE = "converting_to_image"
    UPLOADING_IMAGE = "uploading_image"
    PERSISTING_DRAFT = "persisting_draft"
    ANALYZING = "analyzing"
    PERSISTING_FINAL = "persisting_final"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.DONE, PipelineState.FAILED})


class ResumeFile(BaseModel):
    """The uploaded résumé as the caller declared it."""
    filename: str
    content_type: str = ""
    data: bytes
    last_modified: Optional[datetime] = None

    @property
    def size(self) -> int:
        return len(self.data)


class AnalysisRequest(BaseModel):
    company_name: str = ""
    job_title: str = ""
    job_description: str = ""
    file: ResumeFile


class Record(BaseModel):
    """Persisted unit of work, stored as JSON under ``resume:{id}``.

    Serialized with camelCase keys so records stay readable by the
    browser client that displays them.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(frozen=True)
    resume_path: str = Field(alias="resumePath", min_length=1)
    image_path: str = Field(alias="imagePath", min_length=1)
    company_name: str = Field(default="", alias="companyName")
    job_title: str = Field(default="", alias="jobTitle")
    job_description: str = Field(default="", alias="jobDescription")
    feedback: Any = ""

    @property
    def key(self) -> str:
        return record_key(self.id)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "Record":
        return cls.model_validate_json(raw)


def record_key(record_id: str) -> str:
    return f"{RECORD_KEY_PREFIX}{record_id}"


class FailureKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_FILE_TYPE = "invalid_file_type"
    UPLOAD_FAILED = "upload_failed"
    CONVERSION_FAILED = "conversion_failed"
    EMPTY_ARTIFACT = "empty_artifact"
    FEEDBACK_UNAVAILABLE = "feedback_unavailable"
    FEEDBACK_MALFORMED = "feedback_malformed"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class Failure:
    """Why a run stopped. ``stage`` is only set for upload failures."""
    kind: FailureKind
    cause: Optional[str] = None
    stage: Optional[str] = None


@dataclass
class PipelineOutcome:
    state: PipelineState
    record_id: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.DONE

