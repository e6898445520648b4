#!/usr/bin/env python
"""
FastAPI backend for the domain-restricted QA service.
Provides REST API endpoints for questions, health and cache control.

Usage:
    uvicorn siteqa.interfaces.fastapi_app:app --host 0.0.0.0 --port 3001

Endpoints:
    POST /ask           - Answer a question from the restricted domain
    GET  /health        - Health check with cache statistics
    POST /cache/clear   - Drop all cached responses
    GET  /cache/stats   - Cache counters
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..api.schemas import AskRequest, AskResponse, CacheStats, ErrorResponse, HealthResponse, MessageResponse
from ..rag import PipelineContext, QAPipeline
from ..utils.core import load_settings, setup_logging
from ..utils.validation import SiteQAConfig

logger = logging.getLogger(__name__)

# Global QA pipeline instance and the settings it was built from
qa_pipeline = None
app_settings = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - initialize QA pipeline on startup."""
    global qa_pipeline, app_settings

    setup_logging()
    logger.info("Initializing QA pipeline...")
    try:
        app_settings = load_settings()
        qa_pipeline = QAPipeline(PipelineContext.from_config(app_settings))
        logger.info(f"QA pipeline initialized, searching ONLY {qa_pipeline.domain}")
    except Exception as e:
        logger.error(f"Failed to initialize QA pipeline: {e}")
        raise

    yield

    logger.info("Shutting down QA pipeline...")
    if qa_pipeline:
        qa_pipeline.clear_cache()
        qa_pipeline = None


# Create FastAPI app
app = FastAPI(
    title="SiteQA API",
    description="Question answering restricted to one organization's web domain",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("SITEQA_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PipelineNotReady(Exception):
    """Raised by endpoints called before startup finished or after shutdown."""
    pass


def _failure_response(status_code: int, error: str) -> JSONResponse:
    """JSON failure body with the configured error answer and contact channel."""
    settings = qa_pipeline.config if qa_pipeline else (app_settings or SiteQAConfig())
    body = ErrorResponse(answer=settings.message('error'), error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(PipelineNotReady)
async def pipeline_not_ready_handler(request: Request, exc: PipelineNotReady) -> JSONResponse:
    return _failure_response(503, str(exc))


def _require_pipeline() -> QAPipeline:
    if not qa_pipeline:
        raise PipelineNotReady("QA pipeline not initialized")
    return qa_pipeline


@app.post("/ask", response_model=AskResponse, response_model_exclude_none=True)
async def ask(request: AskRequest):
    """Answer a question using only content from the restricted domain.

    Args:
        request: Ask request containing the question.

    Returns:
        AskResponse. Rejected questions and questions without evidence are
        answered with 200 and an explanatory ``answer``; failures use 500
        with the same body shape plus ``error``.

    Raises:
        PipelineNotReady: Answered with 503 if the pipeline is not initialized.
    """
    pipeline = _require_pipeline()
    logger.info(f"Question received: {request.question[:80]!r}")

    result = await pipeline.ask(request.question)

    if 'error' in result:
        logger.error(f"QA pipeline error: {result['error']}")
        return JSONResponse(
            status_code=500,
            content=AskResponse(**result).model_dump(exclude_none=True),
        )

    return AskResponse(**result)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Check service health.

    Returns:
        Status, timestamp, target domain, cache statistics and stage timings.

    Raises:
        PipelineNotReady: Answered with 503 if the pipeline is not initialized.
    """
    pipeline = _require_pipeline()
    try:
        return HealthResponse(**pipeline.health_check())
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return _failure_response(500, f"Health check error: {str(e)}")


@app.post("/cache/clear", response_model=MessageResponse)
async def clear_cache() -> MessageResponse:
    """Drop every cached response."""
    pipeline = _require_pipeline()
    pipeline.clear_cache()
    return MessageResponse(message="Cache cleared successfully")


@app.get("/cache/stats", response_model=CacheStats)
async def cache_stats() -> CacheStats:
    """Return response cache counters."""
    pipeline = _require_pipeline()
    return CacheStats(**pipeline.cache_stats())


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information.

    Returns:
        Dictionary containing API information and available endpoints.
    """
    return {
        "name": "SiteQA API",
        "version": "1.0.0",
        "description": "Question answering restricted to one organization's web domain",
        "endpoints": {
            "ask": "POST /ask - Answer a question",
            "health": "GET /health - Health check",
            "cache_clear": "POST /cache/clear - Clear the response cache",
            "cache_stats": "GET /cache/stats - Cache statistics",
            "docs": "GET /docs - Interactive API documentation"
        }
    }


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "siteqa.interfaces.fastapi_app:app",
        host=os.getenv("SITEQA_HOST", "0.0.0.0"),
        port=int(os.getenv("SITEQA_PORT", "3001")),
    )


if __name__ == "__main__":
    main()
