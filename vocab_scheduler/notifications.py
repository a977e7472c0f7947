"""Choose which word a review reminder should ask about.

Only the selection and the reminder content live here; handing the
reminder to an OS notification service is up to the caller.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from vocab_scheduler.scheduler import hard_items
from vocab_scheduler.settings import NotificationSettings
from vocab_scheduler.vocabulary_item import VocabularyItem

REMINDER_TITLE = "Time to review your vocabulary!"

__all__ = [
    "Reminder",
    "build_reminder",
    "item_id_from_payload",
    "pick_notification_item",
]


@dataclass(frozen=True)
class Reminder:
    title: str
    body: str
    item_id: str
    interval_seconds: int
    repeats: bool = True

    @property
    def data(self) -> Mapping[str, Any]:
        return {"itemId": self.item_id}


def pick_notification_item(
    items: Sequence[VocabularyItem],
    settings: NotificationSettings,
    *,
    seed: Any,
) -> Optional[VocabularyItem]:
    """Pick a word to quiz the learner on.

    Hard items are preferred when ``focus_on_difficult`` is set and at least
    one exists. The same *seed* and items always give the same pick.
    """

    if not settings.enabled or not items:
        return None
    candidates = list(items)
    if settings.focus_on_difficult:
        difficult = hard_items(candidates)
        if difficult:
            candidates = difficult
    return random.Random(seed).choice(candidates)


def build_reminder(item: VocabularyItem, settings: NotificationSettings) -> Reminder:
    return Reminder(
        title=REMINDER_TITLE,
        body=f'What does "{item.term}" mean?',
        item_id=item.id,
        interval_seconds=settings.interval * 60,
    )


def item_id_from_payload(data: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Return the item id carried by a tapped reminder, if any.

    Reminders scheduled by older releases carry the id under ``wordId``.
    """

    if not data:
        return None
    for key in ("itemId", "wordId"):
        item_id = data.get(key)
        if item_id is not None and item_id != "":
            return str(item_id)
    return None
