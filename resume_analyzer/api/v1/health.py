"""Health check endpoint."""

from fastapi import APIRouter
import platform
import sys

from resume_analyzer.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Service health, configured backends, and system info."""
    return {
        "status": "healthy",
        "storage_backend": settings.storage_backend,
        "feedback_model": settings.feedback_model if settings.anthropic_api_key else None,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
