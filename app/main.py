"""
HealthSpeak API - FastAPI Application

Helps patients understand prescriptions: OCR of uploaded documents,
plain-language explanations of medical shorthand, and a history of
past translations.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.routes import router
from app.api.middleware import (
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    setup_rate_limiting
)
from app.core.llm_engine import get_llm_engine
from app.utils.logger import get_logger, configure_logging

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    configure_logging(
        log_level=settings.log_level,
        json_format=not settings.debug
    )

    logger.info(
        "Starting HealthSpeak API",
        version=settings.app_version,
        debug=settings.debug,
        **get_llm_engine().get_status()
    )

    yield

    logger.info("Shutting down HealthSpeak API")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## HealthSpeak API - Prescription Explanation Service

Turns prescriptions into instructions a patient can follow.

### Features

- **OCR**: Upload a photo, scan or PDF of a prescription and get its text
- **Simplification**: Expand shorthand such as *TDS*, *p.o* or *q8h*, list the
  medication, dose, timing and route, and flag common cautions
- **AI Provider**: Uses Google Gemini when configured, with a rule-based fallback
- **History**: Save, search and review past translations

### API Endpoints

| Endpoint | Method | Description |
|----------|--------|-------------|
| `/simplify` | POST | Explain prescription text (`rawText`) |
| `/ai-translate` | POST | Explain prescription text (`text`) |
| `/ocr` | POST | Extract text from an upload |
| `/history` | GET/POST | List or save translations |
| `/history/search` | POST | Search translations |
| `/history/stats` | GET | History statistics |
| `/history/{id}` | GET/DELETE | Read or delete a translation |
| `/health` | GET | Health check |
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.debug else None,
    )

    # Setup middleware (order matters - last added is outermost)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_rate_limiting(app)

    app.include_router(router, tags=["API"])

    return app


# Create app instance
app = create_app()


# Run with: uvicorn app.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
