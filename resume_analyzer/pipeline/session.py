"""Observable progress of a pipeline run."""

from datetime import datetime, timedelta
from typing import Optional

from resume_analyzer.pipeline.errors import describe_failure
from resume_analyzer.pipeline.models import PipelineOutcome, PipelineState

# In-progress labels. Failure text is built by describe_failure and is the
# only text that starts with "Error: ".
STATUS_TEXT = {
    PipelineState.IDLE: "",
    PipelineState.VALIDATING: "Checking the file...",
    PipelineState.UPLOADING_RESUME: "Uploading the file...",
    PipelineState.CONVERTING_TO_IMAGE: "Converting to image...",
    PipelineState.UPLOADING_IMAGE: "Uploading the image...",
    PipelineState.PERSISTING_DRAFT: "Preparing data...",
    PipelineState.ANALYZING: "Analyzing...",
    PipelineState.PERSISTING_FINAL: "Saving feedback...",
    PipelineState.DONE: "Analysis complete, redirecting...",
}


class Session:
    """Processing flag and status text for one caller.

    ``begin`` / ``set`` / ``end`` replace ad hoc flag mutation. ``end`` always
    returns the session to idle; the status text keeps the last phase (or
    the error) so the caller can still show it.
    """

    def __init__(self):
        self.processing: bool = False
        self.state: PipelineState = PipelineState.IDLE
        self.status_text: str = ""
        self.last_outcome: Optional[PipelineOutcome] = None
        self.created_at: datetime = datetime.utcnow()
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None

    def begin(self) -> None:
        self.processing = True
        self.last_outcome = None
        self.started_at = datetime.utcnow()
        self.finished_at = None

    def set(self, phase: PipelineState) -> None:
        self.state = phase
        self.status_text = STATUS_TEXT.get(phase, self.status_text)

    def end(self, outcome: PipelineOutcome) -> None:
        if outcome.succeeded:
            self.status_text = STATUS_TEXT[PipelineState.DONE]
        elif outcome.failure is not None:
            self.status_text = describe_failure(outcome.failure)
        self.last_outcome = outcome
        self.processing = False
        self.state = PipelineState.IDLE
        self.finished_at = datetime.utcnow()

    def reset(self) -> None:
        """Return to idle without an outcome (used when a run is abandoned)."""
        self.processing = False
        self.state = PipelineState.IDLE
        self.finished_at = datetime.utcnow()

    def is_expired(self, ttl: timedelta, now: Optional[datetime] = None) -> bool:
        """True when idle and nothing has happened for longer than ``ttl``."""
        if self.processing:
            return False
        last_active = self.finished_at or self.started_at or self.created_at
        return (now or datetime.utcnow()) - last_active > ttl

    def snapshot(self) -> dict:
        outcome = self.last_outcome
        data = {
            "processing": self.processing,
            "state": self.state.value,
            "status_text": self.status_text,
        }
        if outcome is not None:
            data["outcome"] = outcome.state.value
            if outcome.record_id:
                data["record_id"] = outcome.record_id
                if outcome.succeeded:
                    data["redirect_to"] = f"/resume/{outcome.record_id}"
            if outcome.failure is not None:
                data["error"] = outcome.failure.kind.value
        return data
