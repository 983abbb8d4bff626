"""Upload-and-analyze pipeline controller.

Drives one run through the states

    VALIDATING -> UPLOADING_RESUME -> CONVERTING_TO_IMAGE -> UPLOADING_IMAGE
    -> PERSISTING_DRAFT -> ANALYZING -> PERSISTING_FINAL -> DONE

Each state has one handler that does its side effect and returns the next
state, or raises PipelineError to stop at FAILED. ``advance`` is the single
transition function, so every step can be exercised on its own.

There are no retries and no timeouts here. Every failure is terminal for the
run and reported once through the Session.
"""

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Union

from pydantic import ValidationError

from resume_analyzer.feedback.content import (
    FeedbackResponse,
    classify_content,
    extract_text,
)
from resume_analyzer.feedback.instructions import prepare_instructions
from resume_analyzer.pipeline.contracts import (
    AuthGate,
    BlobStore,
    FeedbackService,
    RasterImage,
    Rasterizer,
    RecordStore,
)
from resume_analyzer.pipeline.errors import PipelineError
from resume_analyzer.pipeline.identifiers import new_record_id
from resume_analyzer.pipeline.models import (
    AnalysisRequest,
    Failure,
    FailureKind,
    PipelineOutcome,
    PipelineState,
    Record,
    ResumeFile,
    TERMINAL_STATES,
)
from resume_analyzer.pipeline.session import Session

logger = logging.getLogger(__name__)

PDF_MEDIA_MARKER = "pdf"

CompletionCallback = Callable[[str], Union[None, Awaitable[None]]]


@dataclass
class PipelineRun:
    """Working data for one run, filled in as states succeed."""
    request: AnalysisRequest
    resume_path: Optional[str] = None
    image: Optional[RasterImage] = None
    image_path: Optional[str] = None
    record: Optional[Record] = None


class PipelineController:
    def __init__(
        self,
        auth: AuthGate,
        blob_store: BlobStore,
        rasterizer: Rasterizer,
        record_store: RecordStore,
        feedback_service: FeedbackService,
        session: Optional[Session] = None,
        instructions_builder: Callable[[str, str], str] = prepare_instructions,
        on_complete: Optional[CompletionCallback] = None,
    ):
        self.auth = auth
        self.blob_store = blob_store
        self.rasterizer = rasterizer
        self.record_store = record_store
        self.feedback_service = feedback_service
        self.session = session or Session()
        self._instructions_builder = instructions_builder
        self._on_complete = on_complete

        self._handlers: Dict[PipelineState, Callable] = {
            PipelineState.VALIDATING: self._validate,
            PipelineState.UPLOADING_RESUME: self._upload_resume,
            PipelineState.CONVERTING_TO_IMAGE: self._convert_to_image,
            PipelineState.UPLOADING_IMAGE: self._upload_image,
            PipelineState.PERSISTING_DRAFT: self._persist_draft,
            PipelineState.ANALYZING: self._analyze,
            PipelineState.PERSISTING_FINAL: self._persist_final,
        }

    async def analyze(self, request: AnalysisRequest) -> Optional[PipelineOutcome]:
        """Run the pipeline once.

        Returns None without doing anything when the session is already
        processing; a second submission is ignored, not queued.
        """
        if self.session.processing:
            logger.warning("Analysis already in progress, ignoring submission")
            return None

        run = PipelineRun(request=request)
        state = PipelineState.VALIDATING
        failure: Optional[Failure] = None
        unexpected: Optional[Exception] = None
        outcome: Optional[PipelineOutcome] = None

        self.session.begin()
        try:
            while state not in TERMINAL_STATES:
                self.session.set(state)
                logger.debug(f"Entering state {state.value}")
                try:
                    state = await self.advance(state, run)
                except PipelineError as e:
                    failure = e.failure
                    state = PipelineState.FAILED
                except Exception as e:
                    unexpected = e
                    failure = Failure(
                        kind=FailureKind.UNEXPECTED_ERROR,
                        cause=str(e) or type(e).__name__,
                    )
                    state = PipelineState.FAILED

            outcome = PipelineOutcome(
                state=state,
                record_id=run.record.id if run.record else None,
                failure=failure,
            )
            if outcome.succeeded:
                logger.info(f"Analysis complete for record {outcome.record_id}")
            else:
                logger.error(
                    f"Analysis failed: {failure.kind.value}"
                    + (f" during {failure.stage}" if failure.stage else "")
                    + (f" ({failure.cause})" if failure.cause else ""),
                    exc_info=unexpected,
                )
        finally:
            if outcome is not None:
                self.session.end(outcome)
            else:
                self.session.reset()

        if outcome.succeeded and self._on_complete is not None:
            await self._notify_complete(outcome.record_id)
        return outcome

    async def _notify_complete(self, record_id: str) -> None:
        try:
            result = self._on_complete(record_id)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Completion callback failed for record {record_id}")

    async def advance(self, state: PipelineState, run: PipelineRun) -> PipelineState:
        """Perform ``state``'s step for ``run`` and return the state to enter next."""
        handler = self._handlers.get(state)
        if handler is None:
            raise ValueError(f"No transition out of state '{state.value}'")
        return await handler(run)

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    async def _validate(self, run: PipelineRun) -> PipelineState:
        if not await self.auth.is_authenticated():
            raise PipelineError(FailureKind.UNAUTHENTICATED)

        file = run.request.file
        if PDF_MEDIA_MARKER not in (file.content_type or "").lower():
            raise PipelineError(FailureKind.INVALID_FILE_TYPE, cause=file.content_type)

        logger.info(
            f"File details: name={file.filename} size={file.size} "
            f"type={file.content_type} last_modified={file.last_modified}"
        )
        return PipelineState.UPLOADING_RESUME

    async def _upload_resume(self, run: PipelineRun) -> PipelineState:
        run.resume_path = await self._upload(run.request.file, stage="resume")
        return PipelineState.CONVERTING_TO_IMAGE

    async def _convert_to_image(self, run: PipelineRun) -> PipelineState:
        result = await self.rasterizer.convert(run.request.file)
        if result.image is None:
            raise PipelineError(
                FailureKind.CONVERSION_FAILED, cause=result.error or "Unknown error"
            )

        image = result.image
        logger.info(
            f"Image file details: name={image.filename} size={image.size} "
            f"type={image.content_type} dimensions={image.width}x{image.height}"
        )
        if image.size == 0:
            raise PipelineError(FailureKind.EMPTY_ARTIFACT)

        run.image = image
        return PipelineState.UPLOADING_IMAGE

    async def _upload_image(self, run: PipelineRun) -> PipelineState:
        run.image_path = await self._upload(run.image.as_upload(), stage="image")
        return PipelineState.PERSISTING_DRAFT

    async def _persist_draft(self, run: PipelineRun) -> PipelineState:
        request = run.request
        record_id = run.record.id if run.record else new_record_id()
        run.record = Record(
            id=record_id,
            resume_path=run.resume_path,
            image_path=run.image_path,
            company_name=request.company_name,
            job_title=request.job_title,
            job_description=request.job_description,
            feedback="",
        )
        await self.record_store.set(run.record.key, run.record.to_json())
        logger.info(f"Saved draft record {run.record.key}")
        return PipelineState.ANALYZING

    async def _analyze(self, run: PipelineRun) -> PipelineState:
        request = run.request
        instructions = self._instructions_builder(
            request.job_title, request.job_description
        )
        raw = await self.feedback_service.feedback(run.resume_path, instructions)
        if not raw:
            raise PipelineError(FailureKind.FEEDBACK_UNAVAILABLE)

        try:
            response = (
                raw if isinstance(raw, FeedbackResponse)
                else FeedbackResponse.model_validate(raw)
            )
        except ValidationError as e:
            raise PipelineError(
                FailureKind.FEEDBACK_MALFORMED,
                cause=f"unexpected response shape ({e.error_count()} errors)",
            )

        text = extract_text(classify_content(response.message))
        if text is None:
            raise PipelineError(FailureKind.FEEDBACK_UNAVAILABLE)

        try:
            feedback = json.loads(text)
        except json.JSONDecodeError as e:
            raise PipelineError(FailureKind.FEEDBACK_MALFORMED, cause=str(e))

        run.record = run.record.model_copy(update={"feedback": feedback})
        return PipelineState.PERSISTING_FINAL

    async def _persist_final(self, run: PipelineRun) -> PipelineState:
        await self.record_store.set(run.record.key, run.record.to_json())
        logger.info(f"Saved feedback for record {run.record.key}")
        return PipelineState.DONE

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _upload(self, blob: ResumeFile, stage: str) -> str:
        try:
            stored = await self.blob_store.upload(blob)
        except Exception as e:
            raise PipelineError(
                FailureKind.UPLOAD_FAILED,
                cause=str(e) or type(e).__name__,
                stage=stage,
            )

        if not stored or not stored.path:
            raise PipelineError(
                FailureKind.UPLOAD_FAILED, cause="no result returned", stage=stage
            )
        logger.info(f"Uploaded {stage}: {stored.path}")
        return stored.path
