"""High level helpers that drive study sessions and persist review outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from vocab_scheduler import word_store
from vocab_scheduler.scheduler import Scheduler
from vocab_scheduler.settings import DEFAULT_SESSION_SIZE
from vocab_scheduler.vocabulary_item import Difficulty, VocabularyItem, ensure_utc

logger = structlog.get_logger(__name__)

_DEFAULT_SCHEDULER = Scheduler()


def build_session_queue(
    items: Sequence[VocabularyItem],
    now: datetime,
    *,
    session_size: int = DEFAULT_SESSION_SIZE,
    scheduler: Optional[Scheduler] = None,
    fallback_to_hard: bool = False,
) -> List[VocabularyItem]:
    """Return the prioritised due items, capped at *session_size*.

    With *fallback_to_hard* the hard items are offered instead when nothing
    is due.
    """

    scheduler = scheduler or _DEFAULT_SCHEDULER
    size = max(session_size, 0)
    queue = scheduler.prioritize(scheduler.select_due(items, now))
    if not queue and fallback_to_hard:
        queue = scheduler.hard_items(items)
    return queue[:size]


@dataclass
class ProgressSnapshot:
    total: int
    due: int
    hard: int
    mastered: int


def progress_snapshot(
    items: Sequence[VocabularyItem],
    now: datetime,
    *,
    scheduler: Optional[Scheduler] = None,
) -> ProgressSnapshot:
    """Count items for progress displays.

    ``mastered`` counts items that are neither due nor hard, so no item is
    counted twice even when a hard item is also due.
    """

    scheduler = scheduler or _DEFAULT_SCHEDULER
    due_ids = {item.id for item in scheduler.select_due(items, now)}
    hard = scheduler.hard_items(items)
    hard_not_due = sum(1 for item in hard if item.id not in due_ids)
    total = len(items)
    return ProgressSnapshot(
        total=total,
        due=len(due_ids),
        hard=len(hard),
        mastered=max(total - len(due_ids) - hard_not_due, 0),
    )


@dataclass
class StudySession:
    """Walk a learner through a fixed queue of items.

    The session only remembers the reviewed copies it produced; persisting
    them is left to the caller (see :func:`submit_review`).
    """

    queue: List[VocabularyItem]
    scheduler: Scheduler = field(default_factory=Scheduler)
    index: int = 0
    results: List[VocabularyItem] = field(default_factory=list)

    @classmethod
    def start(
        cls,
        items: Sequence[VocabularyItem],
        now: datetime,
        *,
        session_size: int = DEFAULT_SESSION_SIZE,
        scheduler: Optional[Scheduler] = None,
        fallback_to_hard: bool = False,
    ) -> "StudySession":
        scheduler = scheduler or Scheduler()
        queue = build_session_queue(
            items,
            now,
            session_size=session_size,
            scheduler=scheduler,
            fallback_to_hard=fallback_to_hard,
        )
        return cls(queue=queue, scheduler=scheduler)

    @property
    def finished(self) -> bool:
        return self.index >= len(self.queue)

    def current(self) -> Optional[VocabularyItem]:
        if self.finished:
            return None
        return self.queue[self.index]

    def record(self, difficulty: Difficulty, now: datetime) -> VocabularyItem:
        """Apply *difficulty* to the current item and move to the next one."""

        item = self.current()
        if item is None:
            raise IndexError("Study session has no remaining items")
        updated = self.scheduler.apply_review(item, difficulty, now)
        self.results.append(updated)
        self.index += 1
        return updated

    def skip(self) -> VocabularyItem:
        """Move past the current item without reviewing it."""

        item = self.current()
        if item is None:
            raise IndexError("Study session has no remaining items")
        self.index += 1
        return item

    def restart(self) -> None:
        self.index = 0
        self.results = []


def submit_review(
    item: VocabularyItem,
    difficulty: Difficulty,
    now: datetime,
    *,
    words_path: Path = word_store.WORDS_FILE,
    log_path: Optional[Path] = word_store.LOG_FILE,
    scheduler: Optional[Scheduler] = None,
) -> VocabularyItem:
    """Reschedule *item*, persist the result and append a review log entry.

    An invalid *difficulty* raises before anything is written.
    """

    scheduler = scheduler or _DEFAULT_SCHEDULER
    now = ensure_utc(now)
    updated = scheduler.apply_review(item, difficulty, now)
    word_store.save_item(updated, path=words_path)

    interval = scheduler.interval_days(updated.difficulty, updated.review_count)
    if log_path is not None:
        word_store.append_review_log(
            {
                "item_id": updated.id,
                "difficulty": updated.difficulty,
                "previous_difficulty": item.difficulty.value,
                "review_count": updated.review_count,
                "interval_days": interval,
                "reviewed_at": now,
                "next_review_at": updated.next_review_at,
            },
            path=log_path,
        )
    logger.info(
        "review.applied",
        item_id=updated.id,
        difficulty=updated.difficulty.value,
        review_count=updated.review_count,
        interval_days=interval,
    )
    return updated


__all__ = [
    "ProgressSnapshot",
    "StudySession",
    "build_session_queue",
    "progress_snapshot",
    "submit_review",
]
