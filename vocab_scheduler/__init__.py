"""Spaced repetition scheduling for vocabulary flashcards."""

from .errors import InvalidDifficulty, MalformedItem, SchedulerError
from .intervals import DEFAULT_INTERVALS, IntervalTable, interval_days, load_interval_table
from .scheduler import (
    Scheduler,
    apply_review,
    compute_next_review_at,
    due_count,
    hard_items,
    prioritize,
    select_due,
)
from .vocabulary_item import Difficulty, VocabularyItem

__all__ = [
    "DEFAULT_INTERVALS",
    "Difficulty",
    "IntervalTable",
    "InvalidDifficulty",
    "MalformedItem",
    "Scheduler",
    "SchedulerError",
    "VocabularyItem",
    "apply_review",
    "compute_next_review_at",
    "due_count",
    "hard_items",
    "interval_days",
    "load_interval_table",
    "prioritize",
    "select_due",
]
