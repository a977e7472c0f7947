"""Domain model for vocabulary scheduling state.

This module defines :class:`Difficulty`, the closed set of review outcomes,
and :class:`VocabularyItem`, the immutable record the scheduler reads and
derives new values from. It also provides helpers for serialising items to
and from the JSON records that the word store persists to disk.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from vocab_scheduler.errors import InvalidDifficulty, MalformedItem

__all__ = [
    "Difficulty",
    "VocabularyItem",
    "ensure_utc",
    "format_datetime",
    "parse_datetime",
]


class Difficulty(str, Enum):
    """Learner's self-assessed recall quality for the most recent review."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def weight(self) -> int:
        return _WEIGHTS[self]

    @classmethod
    def parse(cls, value: Any) -> "Difficulty":
        """Return the :class:`Difficulty` matching *value*.

        Strings are matched after stripping whitespace and lower-casing.
        Anything else raises :class:`InvalidDifficulty`.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        raise InvalidDifficulty(value)


_WEIGHTS = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
}


def ensure_utc(value: datetime) -> datetime:
    """Normalise *value* to a UTC timezone aware datetime."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Convert a stored timestamp into a UTC :class:`datetime`.

    ``None`` and empty strings mean "absent". Integers and floats are epoch
    milliseconds, so ``0`` is the epoch rather than an absent value.
    Unparseable input raises :class:`MalformedItem`.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        raise MalformedItem(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise MalformedItem(f"Invalid timestamp: {value!r}") from exc
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1]
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError as exc:
            raise MalformedItem(f"Invalid timestamp: {value!r}") from exc
    raise MalformedItem(f"Invalid timestamp: {value!r}")


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """Serialise a datetime in ISO-8601 format (UTC) for JSON storage."""

    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class VocabularyItem:
    """Scheduling state for a single vocabulary word.

    Parameters
    ----------
    id:
        Opaque identifier, unique within the collection handed to the
        scheduler.
    difficulty:
        Outcome of the most recent review. New items default to
        :attr:`Difficulty.MEDIUM`.
    review_count:
        Number of completed reviews.
    last_reviewed_at / next_review_at:
        UTC timestamps. ``next_review_at`` being ``None`` means the item has
        never been reviewed and is due immediately.
    list_id / term / translation / notes:
        Card content. The scheduler carries these through untouched.
    """

    id: str
    difficulty: Difficulty = Difficulty.MEDIUM
    review_count: int = 0
    last_reviewed_at: Optional[datetime] = None
    next_review_at: Optional[datetime] = None
    list_id: Optional[str] = None
    term: str = ""
    translation: str = ""
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.difficulty, Difficulty):
            raise MalformedItem(
                f"Item {self.id!r} has non-enumerated difficulty {self.difficulty!r}"
            )
        if isinstance(self.review_count, bool) or not isinstance(self.review_count, int):
            raise MalformedItem(
                f"Item {self.id!r} has non-integer review_count {self.review_count!r}"
            )
        if self.review_count < 0:
            raise MalformedItem(
                f"Item {self.id!r} has negative review_count {self.review_count}"
            )
        # Frozen dataclass: normalise timestamps through object.__setattr__.
        for name in ("last_reviewed_at", "next_review_at"):
            value = getattr(self, name)
            if value is not None:
                if not isinstance(value, datetime):
                    raise MalformedItem(f"Item {self.id!r} has invalid {name} {value!r}")
                object.__setattr__(self, name, ensure_utc(value))

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_storage(cls, payload: Mapping[str, Any]) -> "VocabularyItem":
        """Create an item from a JSON record, failing fast on bad data."""

        if not isinstance(payload, Mapping):
            raise MalformedItem(f"Item record must be a mapping, got {type(payload).__name__}")
        item_id = payload.get("id")
        if item_id in (None, ""):
            raise MalformedItem("Item record without id")

        raw_difficulty = payload.get("difficulty", Difficulty.MEDIUM.value)
        try:
            difficulty = Difficulty.parse(raw_difficulty)
        except InvalidDifficulty as exc:
            raise MalformedItem(f"Item {item_id!r}: {exc}") from exc

        raw_count = payload.get("review_count", 0)
        if isinstance(raw_count, bool):
            raise MalformedItem(f"Item {item_id!r} has invalid review_count {raw_count!r}")
        try:
            review_count = int(raw_count)
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedItem(
                f"Item {item_id!r} has invalid review_count {raw_count!r}"
            ) from exc
        if isinstance(raw_count, float) and raw_count != review_count:
            raise MalformedItem(f"Item {item_id!r} has fractional review_count {raw_count!r}")

        list_id = payload.get("list_id")
        notes = payload.get("notes")
        return cls(
            id=str(item_id),
            difficulty=difficulty,
            review_count=review_count,
            last_reviewed_at=parse_datetime(payload.get("last_reviewed_at")),
            next_review_at=parse_datetime(payload.get("next_review_at")),
            list_id=str(list_id) if list_id not in (None, "") else None,
            term=str(payload.get("term") or ""),
            translation=str(payload.get("translation") or ""),
            notes=str(notes) if notes not in (None, "") else None,
        )

    def to_storage_dict(self) -> Dict[str, Any]:
        """Serialise the item into a JSON friendly dictionary."""

        data: Dict[str, Any] = {
            "id": self.id,
            "difficulty": self.difficulty.value,
            "review_count": self.review_count,
            "last_reviewed_at": format_datetime(self.last_reviewed_at),
            "next_review_at": format_datetime(self.next_review_at),
            "term": self.term,
            "translation": self.translation,
        }
        if self.list_id is not None:
            data["list_id"] = self.list_id
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    @property
    def never_reviewed(self) -> bool:
        return self.next_review_at is None

    def replace(self, **changes: Any) -> "VocabularyItem":
        """Return a new instance with *changes* applied."""

        return replace(self, **changes)
