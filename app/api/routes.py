"""
API routes for HealthSpeak API.

Defines all REST API endpoints for prescription simplification,
document OCR and translation history.
"""

from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.api.middleware import limiter
from app.config import settings
from app.core.llm_engine import get_llm_engine
from app.core.ocr_extractor import OCRExtractionError, ocr_extractor
from app.models.schemas import (
    ErrorResponse,
    HealthResponse,
    HistoryCreateRequest,
    HistoryItemResponse,
    HistorySearchRequest,
    HistoryStatsResponse,
    MessageResponse,
    OCRResponse,
    SimplificationResponse,
    SimplifyRequest,
    TranslateRequest,
)
from app.services.history_store import history_store, to_record
from app.services.simplifier import InputError, SimplificationResult, simplifier
from app.utils.file_validators import FileValidationError, file_validator
from app.utils.logger import get_logger

logger = get_logger("routes")

# Create router
router = APIRouter()


def to_response(result: SimplificationResult) -> SimplificationResponse:
    return SimplificationResponse.model_validate(result.to_dict())


async def run_simplification(raw_text: Optional[str]) -> SimplificationResponse:
    try:
        result = await simplifier.simplify_async(raw_text)
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return to_response(result)


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check endpoint"
)
async def health_check():
    """
    Check if the service is healthy and running.

    Returns health status, version and AI provider information.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        provider=get_llm_engine().get_status()
    )


# =============================================================================
# Simplification
# =============================================================================

@router.post(
    "/simplify",
    response_model=SimplificationResponse,
    tags=["Simplification"],
    summary="Explain a prescription in plain language",
    responses={400: {"description": "No text provided"}}
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def simplify(request: Request, body: Optional[SimplifyRequest] = None):
    """
    Simplify prescription text.

    Uses the configured AI provider when available and the rule-based
    pipeline otherwise. Returns plain text, instruction steps, extracted
    entities, a confidence score and warnings.
    """
    return await run_simplification(body.raw_text if body else None)


@router.post(
    "/ai-translate",
    response_model=SimplificationResponse,
    tags=["Simplification"],
    summary="Explain a prescription (alternate entry point)",
    responses={400: {"description": "No text provided"}}
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def ai_translate(request: Request, body: Optional[TranslateRequest] = None):
    """Same as /simplify, taking the prescription under ``text``."""
    return await run_simplification(body.text if body else None)


# =============================================================================
# OCR
# =============================================================================

@router.post(
    "/ocr",
    response_model=OCRResponse,
    tags=["OCR"],
    summary="Extract text from a prescription image or document",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid file"},
        413: {"model": ErrorResponse, "description": "File too large"},
        422: {"model": ErrorResponse, "description": "No text found"}
    }
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def extract_text(
    request: Request,
    file: UploadFile = File(..., description="Prescription image, PDF or text file")
):
    """
    Extract prescription text from an upload.

    Supports images (.png, .jpg, .jpeg, .tif, .tiff, .bmp, .webp),
    PDFs and plain text files.
    """
    content = await file.read()
    filename = file.filename or "upload"

    try:
        file_validator.validate(content, filename)
    except FileValidationError as e:
        status_code = 413 if e.error_code == "FILE_TOO_LARGE" else 400
        raise HTTPException(status_code=status_code, detail=e.message)

    try:
        result = await run_in_threadpool(ocr_extractor.extract, content, filename)
    except OCRExtractionError as e:
        logger.info("No text extracted", filename=filename, reason=e.message)
        raise HTTPException(status_code=422, detail=e.message)

    return OCRResponse(
        text=result.text,
        method=result.method,
        confidence=result.confidence,
        page_count=result.page_count,
        warnings=result.warnings
    )


# =============================================================================
# History
# =============================================================================

@router.get(
    "/history",
    response_model=List[HistoryItemResponse],
    tags=["History"],
    summary="List saved translations"
)
async def list_history(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    limit: int = Query(default=settings.history_default_limit, ge=1, le=200),
    skip: int = Query(default=0, ge=0)
):
    """Saved translations, newest first."""
    items = history_store.list_items(user_id=user_id, limit=limit, skip=skip)
    return [to_record(item) for item in items]


@router.post(
    "/history",
    response_model=HistoryItemResponse,
    status_code=201,
    tags=["History"],
    summary="Save a translation"
)
async def add_history(body: HistoryCreateRequest):
    """
    Save a translation to history.

    Tags and category are generated from the text when not supplied.
    """
    if not body.original_text or not body.simplified_text:
        raise HTTPException(
            status_code=400,
            detail="Both originalText and simplifiedText are required"
        )

    item = history_store.add(
        original_text=body.original_text,
        simplified_text=body.simplified_text,
        user_id=body.user_id,
        entities=body.entities.model_dump() if body.entities else None,
        filename=body.filename,
        processing_time=body.processing_time,
        tags=body.tags,
        category=body.category
    )
    return to_record(item)


@router.get(
    "/history/stats",
    response_model=HistoryStatsResponse,
    tags=["History"],
    summary="History statistics"
)
async def history_stats(user_id: Optional[str] = Query(default=None, alias="userId")):
    """Totals, this month's count, categories and average processing time."""
    stats = history_store.stats(user_id=user_id)
    return HistoryStatsResponse(
        total=stats.total,
        this_month=stats.this_month,
        categories=stats.categories,
        avg_processing_time=stats.avg_processing_time
    )


@router.post(
    "/history/search",
    response_model=List[HistoryItemResponse],
    tags=["History"],
    summary="Search saved translations"
)
async def search_history(body: HistorySearchRequest):
    """Case-insensitive search over text, tags, category and filename."""
    items = history_store.search(body.query, user_id=body.user_id)
    return [to_record(item) for item in items]


@router.get(
    "/history/{item_id}",
    response_model=HistoryItemResponse,
    tags=["History"],
    summary="Get a saved translation",
    responses={404: {"description": "Item not found"}}
)
async def get_history_item(item_id: str):
    """A single saved translation."""
    item = history_store.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"History item not found: {item_id}")
    return to_record(item)


@router.delete(
    "/history/{item_id}",
    response_model=MessageResponse,
    tags=["History"],
    summary="Delete a saved translation",
    responses={404: {"description": "Item not found"}}
)
async def delete_history_item(item_id: str):
    """Remove a saved translation."""
    if not history_store.delete(item_id):
        raise HTTPException(status_code=404, detail="Item not found")
    return MessageResponse(message="Item deleted successfully")
