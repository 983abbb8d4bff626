"""Pipeline failure type and user-facing error messages."""

from typing import Optional

from resume_analyzer.pipeline.models import Failure, FailureKind

ERROR_PREFIX = "Error: "


class PipelineError(Exception):
    """Raised by a state handler to stop the run with a classified failure."""

    def __init__(
        self,
        kind: FailureKind,
        cause: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        self.failure = Failure(kind=kind, cause=cause, stage=stage)
        super().__init__(describe_failure(self.failure))


_UPLOAD_SUBJECT = {
    "resume": "file",
    "image": "image",
}


def describe_failure(failure: Failure) -> str:
    """Human-readable status text for a failed run, always ``Error: ``-prefixed."""
    kind = failure.kind
    cause = failure.cause or "Unknown error"

    if kind == FailureKind.UNAUTHENTICATED:
        message = "Please sign in to upload files"
    elif kind == FailureKind.INVALID_FILE_TYPE:
        message = "Please upload a PDF file"
    elif kind == FailureKind.UPLOAD_FAILED:
        subject = _UPLOAD_SUBJECT.get(failure.stage or "", failure.stage or "file")
        message = f"Failed to upload {subject} - {cause}"
    elif kind == FailureKind.CONVERSION_FAILED:
        message = f"Failed to convert PDF to image - {cause}"
    elif kind == FailureKind.EMPTY_ARTIFACT:
        message = "Converted image file is empty"
    elif kind == FailureKind.FEEDBACK_UNAVAILABLE:
        message = "Failed to analyze resume"
    elif kind == FailureKind.FEEDBACK_MALFORMED:
        message = f"Feedback was not valid JSON - {cause}"
    else:
        message = cause

    return f"{ERROR_PREFIX}{message}"
