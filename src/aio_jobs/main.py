"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aio_jobs import __version__
from aio_jobs.api import admin_router, embeddings_router, sessions_router, translations_router
from aio_jobs.api.deps import init_services
from aio_jobs.core.config import settings
from aio_jobs.database import engine, init_db
from aio_jobs.models.job import JobKind, JobStatus
from aio_jobs.services.bulk_enqueue import BulkEnqueueOrchestrator
from aio_jobs.services.drain import EmbeddingDrain, TranslationDrain
from aio_jobs.services.embedding_client import OpenAIEmbeddingClient
from aio_jobs.services.job_queue import JobQueue
from aio_jobs.services.metrics import MetricsAggregator
from aio_jobs.services.performance import PerformanceCollector
from aio_jobs.services.session_store import SessionStore
from aio_jobs.services.translation_client import OpenAITranslationClient

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

if not settings.openai_api_key:
    logger.warning("OpenAI API key not configured, drained jobs will fail until it is set")

# Provider clients
translation_client = OpenAITranslationClient(
    api_key=settings.openai_api_key or "",
    base_url=settings.openai_base_url,
    model=settings.translation_model,
    temperature=settings.translation_temperature,
    timeout=settings.provider_timeout_seconds,
)
embedding_client = OpenAIEmbeddingClient(
    api_key=settings.openai_api_key or "",
    base_url=settings.openai_base_url,
    model=settings.embedding_model,
    timeout=settings.provider_timeout_seconds,
)

# Service instances
job_queue = JobQueue(embedding_model=settings.embedding_model)
translation_drain = TranslationDrain(provider=translation_client)
embedding_drain = EmbeddingDrain(provider=embedding_client)
bulk_enqueue = BulkEnqueueOrchestrator(job_queue)
metrics = MetricsAggregator()
session_store = SessionStore()
performance = PerformanceCollector(capacity=settings.performance_buffer_size)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting AIO Jobs v{__version__}")

    # Initialize database
    logger.info("Initializing database...")
    await init_db()
    logger.info("Database initialized")

    init_services(
        job_queue,
        translation_drain,
        embedding_drain,
        bulk_enqueue,
        metrics,
        session_store,
        performance,
    )

    logger.info(f"Server ready on {settings.host}:{settings.port}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await translation_client.close()
    await embedding_client.close()
    await engine.dispose()


app = FastAPI(
    title="AIO Jobs",
    description="Translation and embedding job pipeline with optimistic session saves",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def record_request_timing(request: Request, call_next):
    """Feed every request into the performance ring buffer."""
    started = time.perf_counter()
    response = await call_next(request)
    performance.record(
        request.method,
        request.url.path,
        response.status_code,
        round((time.perf_counter() - started) * 1000, 2),
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Invalid request bodies and parameters are client errors (400)."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# Include routers
app.include_router(translations_router)
app.include_router(embeddings_router)
app.include_router(sessions_router)
app.include_router(admin_router)


@app.get("/")
async def root() -> dict:
    """Root endpoint with server info."""
    return {
        "name": "AIO Jobs",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    queues = {}
    for kind in JobKind:
        counts = await job_queue.count_by_status(kind)
        queues[kind.value] = {
            "pending": counts[JobStatus.PENDING.value],
            "in_progress": counts[JobStatus.IN_PROGRESS.value],
        }
    return {
        "status": "healthy",
        "version": __version__,
        "queues": queues,
        "performance": performance.summary().model_dump(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "aio_jobs.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
