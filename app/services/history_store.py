"""
Translation history for HealthSpeak API.

Keeps simplified prescriptions in process memory so patients can
revisit, search and delete earlier translations. Items are tagged and
categorised automatically from their text when the caller does not
supply tags or a category.
"""

import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger("history_store")


# (tag, phrases matched as substrings, abbreviations matched as whole words)
TAG_RULES: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...]], ...] = (
    ("antibiotic", ("antibiotic", "amoxicillin", "penicillin"), ()),
    ("pain-relief", ("pain", "analgesic", "ibuprofen"), ()),
    ("blood-pressure", ("blood pressure", "hypertension"), ()),
    ("diabetes", ("diabetes", "insulin", "glucose"), ()),
    ("cardiac", ("heart", "cardiac"), ()),
    ("daily", ("daily", "once"), ("od",)),
    ("twice-daily", ("twice",), ("bd", "bid")),
    ("three-times-daily", ("three times",), ("tds", "tid")),
)

CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Antibiotics", ("antibiotic", "infection")),
    ("Pain Management", ("pain", "analgesic")),
    ("Cardiovascular", ("blood pressure", "hypertension")),
    ("Diabetes", ("diabetes", "insulin")),
    ("Supplements", ("vitamin", "supplement")),
    ("Topical", ("cream", "ointment", "topical")),
)

DEFAULT_CATEGORY = "General"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_tags(original_text: str, simplified_text: str) -> List[str]:
    """Derive topic and frequency tags from a translation."""
    text = f"{original_text} {simplified_text}".lower()
    words = set(re.findall(r"[a-z]+", text))

    tags = []
    for tag, phrases, abbreviations in TAG_RULES:
        if any(phrase in text for phrase in phrases) or words.intersection(abbreviations):
            tags.append(tag)
    return tags


def categorize(original_text: str) -> str:
    """Pick the first matching category for a prescription."""
    text = original_text.lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


@dataclass(frozen=True)
class HistoryItem:
    """A stored translation."""

    id: str
    original_text: str
    simplified_text: str
    tags: Tuple[str, ...]
    category: str
    created_at: datetime
    updated_at: datetime
    user_id: Optional[str] = None
    entities: Optional[Dict[str, List[str]]] = None
    filename: str = "Unknown"
    processing_time: float = 0.0

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match over the searchable fields."""
        haystacks = (
            self.original_text,
            self.simplified_text,
            self.category,
            self.filename,
        ) + self.tags
        return any(needle in value.lower() for value in haystacks)


@dataclass
class HistoryStats:
    """Aggregate statistics over stored translations."""

    total: int = 0
    this_month: int = 0
    categories: Dict[str, int] = field(default_factory=dict)
    avg_processing_time: float = 0.0


class HistoryStore:
    """
    In-memory translation history.

    Items are keyed by id; once ``max_items`` is reached the oldest item
    is evicted to make room.
    """

    def __init__(self, max_items: Optional[int] = None):
        self.max_items = max_items or settings.history_max_items
        self._items: Dict[str, HistoryItem] = {}
        self._lock = threading.Lock()

    def add(
        self,
        original_text: str,
        simplified_text: str,
        user_id: Optional[str] = None,
        entities: Optional[Dict[str, List[str]]] = None,
        filename: Optional[str] = None,
        processing_time: float = 0.0,
        tags: Optional[List[str]] = None,
        category: Optional[str] = None
    ) -> HistoryItem:
        """
        Store a translation.

        Args:
            original_text: Prescription text as submitted
            simplified_text: Plain-language translation
            user_id: Owner, if known
            entities: Extracted entities to keep with the item
            filename: Source document name
            processing_time: Time the translation took
            tags: Tags to use instead of generated ones
            category: Category to use instead of the generated one

        Returns:
            The stored HistoryItem
        """
        now = _utc_now()
        item = HistoryItem(
            id=uuid4().hex,
            user_id=user_id,
            original_text=original_text,
            simplified_text=simplified_text,
            entities=entities,
            filename=filename or "Unknown",
            processing_time=processing_time,
            tags=tuple(tags) if tags else tuple(generate_tags(original_text, simplified_text)),
            category=category or categorize(original_text),
            created_at=now,
            updated_at=now,
        )

        with self._lock:
            # Insertion order is creation order
            while len(self._items) >= self.max_items:
                oldest_id = next(iter(self._items))
                del self._items[oldest_id]
                logger.info("History item evicted", item_id=oldest_id)
            self._items[item.id] = item

        logger.info(
            "History item added",
            item_id=item.id,
            category=item.category,
            tags=list(item.tags)
        )
        return item

    def get(self, item_id: str) -> Optional[HistoryItem]:
        """Get an item by id."""
        return self._items.get(item_id)

    def delete(self, item_id: str) -> bool:
        """Delete an item; False when it does not exist."""
        with self._lock:
            removed = self._items.pop(item_id, None)

        if removed is not None:
            logger.info("History item deleted", item_id=item_id)
        return removed is not None

    def _newest_first(self, user_id: Optional[str]) -> List[HistoryItem]:
        with self._lock:
            items = list(reversed(self._items.values()))
        if user_id:
            items = [item for item in items if item.user_id == user_id]
        return items

    def list_items(
        self,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        skip: int = 0
    ) -> List[HistoryItem]:
        """List items newest first, skipping ``skip`` then taking ``limit``."""
        limit = settings.history_default_limit if limit is None else limit
        items = self._newest_first(user_id)
        return items[skip:skip + limit]

    def search(self, query: str, user_id: Optional[str] = None) -> List[HistoryItem]:
        """Items whose text, tags, category or filename contain ``query``."""
        needle = query.strip().lower()
        if not needle:
            return []
        return [item for item in self._newest_first(user_id) if item.matches(needle)]

    def stats(self, user_id: Optional[str] = None) -> HistoryStats:
        """Totals, this month's count, per-category counts and mean processing time."""
        items = self._newest_first(user_id)
        if not items:
            return HistoryStats()

        now = _utc_now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        categories: Dict[str, int] = {}
        for item in items:
            categories[item.category] = categories.get(item.category, 0) + 1

        return HistoryStats(
            total=len(items),
            this_month=sum(1 for item in items if item.created_at >= month_start),
            categories=categories,
            avg_processing_time=sum(item.processing_time for item in items) / len(items),
        )

    def clear(self) -> None:
        """Remove every item."""
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


def to_record(item: HistoryItem) -> Dict[str, Any]:
    """Plain dict of an item, for response models."""
    return {
        "id": item.id,
        "user_id": item.user_id,
        "original_text": item.original_text,
        "simplified_text": item.simplified_text,
        "entities": item.entities,
        "filename": item.filename,
        "processing_time": item.processing_time,
        "tags": list(item.tags),
        "category": item.category,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


# Singleton instance
history_store = HistoryStore()
