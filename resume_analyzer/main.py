"""Résumé Analyzer backend - FastAPI application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resume_analyzer.config import settings
from resume_analyzer.api.v1.router import v1_router
from resume_analyzer.api.v1.health import router as health_root_router
from resume_analyzer.api.v1 import upload as upload_api
from resume_analyzer.api.v1.upload import PipelineServices
from resume_analyzer.auth.supabase_auth import StaticAuthGate, SupabaseAuthGate
from resume_analyzer.db.supabase_client import get_supabase
from resume_analyzer.feedback.anthropic_service import (
    AnthropicFeedbackService,
    UnavailableFeedbackService,
)
from resume_analyzer.processing.rasterizer import PdfRasterizer
from resume_analyzer.storage.local_blobs import LocalBlobStore
from resume_analyzer.storage.memory_records import InMemoryRecordStore
from resume_analyzer.storage.supabase_storage import SupabaseBlobStore, SupabaseRecordStore

logger = logging.getLogger(__name__)


def build_services() -> PipelineServices:
    """Create the pipeline collaborators for the configured storage backend."""
    backend = settings.storage_backend.lower()

    if backend == "supabase":
        client = get_supabase()
        auth_client = get_supabase(anon=True)
        blob_store = SupabaseBlobStore(client, settings.resume_bucket)
        record_store = SupabaseRecordStore(client, settings.kv_table)

        def auth_factory(token):
            return SupabaseAuthGate(auth_client, token)
    elif backend == "local":
        blob_store = LocalBlobStore()
        record_store = InMemoryRecordStore()

        def auth_factory(token):
            return StaticAuthGate(token)
    else:
        raise ValueError(
            f"Unknown storage backend '{settings.storage_backend}'. Use 'local' or 'supabase'"
        )

    if settings.anthropic_api_key:
        feedback_service = AnthropicFeedbackService(
            blob_store,
            api_key=settings.anthropic_api_key,
            model=settings.feedback_model,
            max_tokens=settings.feedback_max_tokens,
        )
    else:
        logger.warning("ANTHROPIC_API_KEY not set, feedback will be unavailable")
        feedback_service = UnavailableFeedbackService()

    return PipelineServices(
        auth_factory=auth_factory,
        blob_store=blob_store,
        rasterizer=PdfRasterizer(
            scale=settings.raster_scale,
            max_dimension=settings.raster_max_dimension,
        ),
        record_store=record_store,
        feedback_service=feedback_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Starting Resume Analyzer backend on port {settings.api_port}")
    logger.info(f"Storage backend: {settings.storage_backend}")

    services = build_services()
    upload_api.set_services(services)

    yield

    logger.info("Shutting down Resume Analyzer backend")
    upload_api.set_services(None)
    upload_api.reset_sessions()
    if isinstance(services.blob_store, LocalBlobStore):
        services.blob_store.cleanup_expired()


app = FastAPI(
    title="Resume Analyzer",
    description="Upload a résumé, render a preview, and get AI feedback for a target job",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints


def run():
    """Serve the app with uvicorn (``resume-analyzer`` console script)."""
    uvicorn.run(app, host="0.0.0.0", port=settings.api_port)


if __name__ == "__main__":
    run()
