"""
Study Quiz API - Main Application
FILE: studyquiz/main.py
"""
from contextlib import asynccontextmanager
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from studyquiz.api.quiz import router as quiz_router
from studyquiz.core.config import Settings, settings as default_settings
from studyquiz.core.logging_config import configure_logging
from studyquiz.db.session_store import InMemorySessionStore
from studyquiz.services.content_service import ContentCatalog, load_notes
from studyquiz.services.quiz_session_service import QuizSessionService

logger = logging.getLogger(__name__)


def create_app(
    catalog: Optional[ContentCatalog] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the API application

    Args:
        catalog: Pre-loaded notes; loaded from settings.notes_dir at startup when omitted
        settings: Settings to use instead of the environment defaults
    """
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        logger.info("🚀 Starting Study Quiz API...")

        if getattr(app.state, "catalog", None) is None:
            app.state.catalog = load_notes(settings.notes_dir, settings.notes_glob)
            app.state.session_service = QuizSessionService(
                store=InMemorySessionStore(completed_ttl=settings.completed_session_ttl),
                catalog=app.state.catalog
            )

        logger.info(
            f"✓ {len(app.state.catalog.items)} quiz items ready "
            f"({len(app.state.catalog.errors)} documents with errors)"
        )

        yield

        logger.info("🛑 Shutting down Study Quiz API...")

    app = FastAPI(
        title=settings.api_title,
        description="""
    Self-test quizzes extracted from Markdown study notes.

    ## Endpoints
    - **Topics**: `/api/topics` - topics and item counts
    - **Content errors**: `/api/content/errors` - documents that failed to parse
    - **Sessions**: `/api/quiz/*` - start, answer, complete, report
    - **Health**: `/health`
    """,
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.catalog = catalog
    if catalog is not None:
        app.state.session_service = QuizSessionService(
            store=InMemorySessionStore(completed_ttl=settings.completed_session_ttl),
            catalog=catalog
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time to response headers"""
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        response.headers["X-Process-Time-Ms"] = str(round(process_time, 2))
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests"""
        logger.info(f"📨 {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(
            f"📤 {request.method} {request.url.path} - "
            f"Status: {response.status_code}"
        )
        return response

    app.include_router(quiz_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Service health and content status"""
        catalog = request.app.state.catalog
        return {
            "status": "healthy" if catalog is not None else "starting",
            "timestamp": time.time(),
            "content": {
                "items": len(catalog.items) if catalog else 0,
                "topics": len(catalog.topic_names) if catalog else 0,
                "documentErrors": len(catalog.errors) if catalog else 0
            },
            "api": {
                "title": app.title,
                "version": app.version
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "studyquiz.main:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info"
    )
