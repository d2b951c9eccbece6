"""
Pydantic schemas for HealthSpeak API.

Defines request/response models for all API endpoints. JSON field
names are camelCase (``plainText``, ``rawText``); Python attributes are
snake_case and either form is accepted on input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


# =============================================================================
# Enums
# =============================================================================

class ResultSource(str, Enum):
    """Which path produced a simplification."""
    PROVIDER = "provider"
    PROVIDER_TEXT = "provider_text"
    LOCAL = "local"


class ExtractionMethod(str, Enum):
    """How text was obtained from an uploaded document."""
    TEXT = "text"
    NATIVE = "native"
    OCR = "ocr"


# =============================================================================
# Simplification
# =============================================================================

class SimplifyRequest(CamelModel):
    """Request body for /simplify."""

    raw_text: Optional[str] = Field(
        default=None,
        description="Unparsed prescription text"
    )


class TranslateRequest(CamelModel):
    """Request body for /ai-translate."""

    text: Optional[str] = Field(
        default=None,
        description="Unparsed prescription text"
    )


class InstructionStepModel(CamelModel):
    """A titled instruction step."""

    title: str
    body: str


class EntitiesModel(CamelModel):
    """Entities recognised in a prescription."""

    drug: List[str] = Field(default_factory=list)
    dose: List[str] = Field(default_factory=list)
    freq: List[str] = Field(default_factory=list)
    route: List[str] = Field(default_factory=list)


class SimplificationResponse(CamelModel):
    """Plain-language explanation of a prescription."""

    plain_text: str = Field(description="Prescription rewritten in plain language")
    steps: List[InstructionStepModel] = Field(description="Ordered instruction steps")
    entities: EntitiesModel = Field(description="Recognised entities")
    confidence: float = Field(ge=0.0, le=1.0, description="Reliability estimate")
    warnings: List[str] = Field(default_factory=list)
    source: ResultSource = Field(description="Path that produced the result")


class ProviderPayload(CamelModel):
    """
    Structured answer expected from the AI provider.

    Only ``plainText`` is mandatory; anything missing is filled in by
    the simplifier.
    """

    model_config = ConfigDict(extra="ignore")

    plain_text: str
    steps: List[InstructionStepModel] = Field(default_factory=list)
    entities: Optional[EntitiesModel] = None
    confidence: Optional[float] = None
    warnings: List[str] = Field(default_factory=list)


# =============================================================================
# OCR
# =============================================================================

class OCRResponse(CamelModel):
    """Text extracted from an uploaded prescription."""

    text: str
    method: ExtractionMethod
    confidence: float = Field(ge=0.0, le=1.0)
    page_count: int = 1
    warnings: List[str] = Field(default_factory=list)


# =============================================================================
# History
# =============================================================================

class HistoryCreateRequest(CamelModel):
    """A translation to store in history."""

    original_text: Optional[str] = None
    simplified_text: Optional[str] = None
    filename: Optional[str] = None
    entities: Optional[EntitiesModel] = None
    user_id: Optional[str] = None
    processing_time: float = 0.0
    tags: Optional[List[str]] = None
    category: Optional[str] = None


class HistoryItemResponse(CamelModel):
    """A stored translation."""

    id: str
    user_id: Optional[str] = None
    original_text: str
    simplified_text: str
    entities: Optional[EntitiesModel] = None
    filename: str
    processing_time: float
    tags: List[str]
    category: str
    created_at: datetime
    updated_at: datetime


class HistorySearchRequest(CamelModel):
    """History search query."""

    query: str = ""
    user_id: Optional[str] = None


class HistoryStatsResponse(CamelModel):
    """Aggregate history statistics."""

    total: int
    this_month: int
    categories: Dict[str, int]
    avg_processing_time: float


# =============================================================================
# Health & Status
# =============================================================================

class ProviderStatus(CamelModel):
    """AI provider status."""

    provider: str
    model: str
    external_configured: bool


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(description="Application version")
    timestamp: datetime = Field(default_factory=utc_now)
    provider: Optional[ProviderStatus] = None


# =============================================================================
# Generic Responses
# =============================================================================

class MessageResponse(CamelModel):
    """Simple acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(description="Error type")
    message: str = Field(description="Human-readable error message")
    error_code: str = Field(description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=utc_now)
