"""Browser-facing upload / status / record API.

  POST /upload                - receive a résumé + job details, start an analysis run
  GET  /status/{session_id}   - poll the caller's session (processing flag, status text)
  GET  /resume/{record_id}    - fetch a stored record (draft or with feedback)

Runs execute as background tasks after the response is sent. Each caller
(keyed by bearer token) has one Session; a submission while that session
is busy is rejected with 409 rather than queued. Idle sessions are evicted
after ``session_ttl_minutes``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Set

from fastapi import APIRouter, BackgroundTasks, File, Form, Header, HTTPException, UploadFile
from pydantic import ValidationError

from resume_analyzer.auth.supabase_auth import bearer_token, session_key
from resume_analyzer.config import settings
from resume_analyzer.pipeline.contracts import (
    AuthGate,
    BlobStore,
    FeedbackService,
    Rasterizer,
    RecordStore,
)
from resume_analyzer.pipeline.controller import PipelineController
from resume_analyzer.pipeline.models import AnalysisRequest, Record, ResumeFile, record_key
from resume_analyzer.pipeline.session import Session

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class PipelineServices:
    """Collaborators shared by every run. ``auth_factory`` builds a gate per token."""
    auth_factory: Callable[[Optional[str]], AuthGate]
    blob_store: BlobStore
    rasterizer: Rasterizer
    record_store: RecordStore
    feedback_service: FeedbackService


# Wired in during lifespan (see main.py)
_services: Optional[PipelineServices] = None
_sessions: Dict[str, Session] = {}
_scheduled: Set[str] = set()


def set_services(services: Optional[PipelineServices]):
    global _services
    _services = services


def reset_sessions():
    _sessions.clear()
    _scheduled.clear()


# ---------------------------------------------------------------------------
# POST /upload
# ---------------------------------------------------------------------------

@router.post("/upload", status_code=202)
async def upload_resume(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    company_name: str = Form("", alias="company-name"),
    job_title: str = Form("", alias="job-title"),
    job_description: str = Form("", alias="job-description"),
    last_modified: Optional[int] = Form(None, alias="last-modified"),
    authorization: str = Header(None),
):
    """Accept a résumé upload and schedule the analysis run.

    ``last-modified`` is the browser's ``File.lastModified`` (epoch millis).

    Returns:
        {session_id, status, message}
    """
    if _services is None:
        raise HTTPException(status_code=503, detail="Pipeline not ready")

    evict_idle_sessions()

    token = bearer_token(authorization)
    session_id = session_key(token)
    session = _sessions.setdefault(session_id, Session())
    if session.processing or session_id in _scheduled:
        raise HTTPException(status_code=409, detail="An analysis is already in progress")
    # Reserve before the first await so a concurrent request sees the slot taken
    _scheduled.add(session_id)

    try:
        data = await _read_upload(file)
        request = AnalysisRequest(
            company_name=company_name or "",
            job_title=job_title or "",
            job_description=job_description or "",
            file=ResumeFile(
                filename=file.filename or "resume.pdf",
                content_type=file.content_type or "",
                data=data,
                last_modified=_from_epoch_millis(last_modified),
            ),
        )

        controller = PipelineController(
            auth=_services.auth_factory(token),
            blob_store=_services.blob_store,
            rasterizer=_services.rasterizer,
            record_store=_services.record_store,
            feedback_service=_services.feedback_service,
            session=session,
        )
    except Exception:
        _scheduled.discard(session_id)
        raise

    background_tasks.add_task(_run_analysis, session_id, controller, request)

    return {
        "session_id": session_id,
        "status": "accepted",
        "message": "Upload received, analysis started",
    }


def evict_idle_sessions(now: Optional[datetime] = None) -> int:
    """Drop idle sessions untouched for longer than the session TTL. Returns count removed."""
    now = now or datetime.utcnow()
    ttl = timedelta(minutes=settings.session_ttl_minutes)
    expired = [
        session_id
        for session_id, session in _sessions.items()
        if session_id not in _scheduled and session.is_expired(ttl, now)
    ]
    for session_id in expired:
        del _sessions[session_id]
    if expired:
        logger.info(f"Evicted {len(expired)} idle session(s)")
    return len(expired)


def _from_epoch_millis(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


async def _run_analysis(
    session_id: str, controller: PipelineController, request: AnalysisRequest
) -> None:
    try:
        await controller.analyze(request)
    finally:
        _scheduled.discard(session_id)


async def _read_upload(file: UploadFile) -> bytes:
    max_bytes = settings.max_upload_mb * 1024 * 1024
    chunks = []
    total = 0
    while True:
        chunk = await file.read(1024 * 1024)  # 1 MB chunks
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large (max {settings.max_upload_mb} MB)",
            )
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# GET /status/{session_id}
# ---------------------------------------------------------------------------

@router.get("/status/{session_id}")
async def get_status(session_id: str):
    """Return the session's progress.

    Returns:
        {session_id, processing, state, status_text, outcome?, record_id?, redirect_to?, error?}
    """
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"session_id": session_id, **session.snapshot()}


# ---------------------------------------------------------------------------
# GET /resume/{record_id}
# ---------------------------------------------------------------------------

@router.get("/resume/{record_id}")
async def get_resume(record_id: str):
    """Return the stored record with camelCase keys."""
    if _services is None:
        raise HTTPException(status_code=503, detail="Pipeline not ready")

    raw = await _services.record_store.get(record_key(record_id))
    if raw is None:
        raise HTTPException(status_code=404, detail="Record not found")
    try:
        record = Record.from_json(raw)
    except ValidationError:
        raise HTTPException(status_code=500, detail="Stored record is corrupt")
    return record.model_dump(by_alias=True)
