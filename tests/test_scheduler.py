import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from vocab_scheduler.errors import InvalidDifficulty
from vocab_scheduler.intervals import DEFAULT_INTERVALS, IntervalTable
from vocab_scheduler.scheduler import (
    Scheduler,
    apply_review,
    compute_next_review_at,
    due_count,
    hard_items,
    prioritize,
    select_due,
)
from vocab_scheduler.vocabulary_item import Difficulty, VocabularyItem

NOW = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def make_item(item_id, difficulty=Difficulty.MEDIUM, next_review_at=None, review_count=0):
    return VocabularyItem(
        id=item_id,
        difficulty=difficulty,
        review_count=review_count,
        next_review_at=next_review_at,
    )


def ids(items):
    return [item.id for item in items]


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_compute_next_review_at_adds_interval_days(difficulty):
    for count in range(10):
        expected = NOW + timedelta(days=DEFAULT_INTERVALS.interval_days(difficulty, count))
        assert compute_next_review_at(difficulty, count, NOW) == expected


def test_compute_next_review_at_treats_naive_now_as_utc():
    naive = datetime(2024, 1, 1, 9, 0)
    assert compute_next_review_at(Difficulty.EASY, 2, naive) == NOW + timedelta(days=7)


def test_select_due_keeps_absent_and_past_items_in_input_order():
    items = [
        make_item("future", next_review_at=NOW + timedelta(seconds=1)),
        make_item("new"),
        make_item("exact", next_review_at=NOW),
        make_item("past", next_review_at=NOW - timedelta(days=3)),
    ]

    assert ids(select_due(items, NOW)) == ["new", "exact", "past"]


def test_select_due_empty_input():
    assert select_due([], NOW) == []
    assert due_count([], NOW) == 0


def test_due_count_matches_select_due():
    items = [
        make_item("a"),
        make_item("b", next_review_at=NOW + timedelta(days=1)),
        make_item("c", next_review_at=NOW - timedelta(minutes=5)),
    ]
    assert due_count(items, NOW) == len(select_due(items, NOW)) == 2


def test_prioritize_places_never_reviewed_first():
    items = [
        make_item("dated-early", Difficulty.HARD, NOW - timedelta(days=5)),
        make_item("new-easy", Difficulty.EASY),
        make_item("dated-late", Difficulty.HARD, NOW - timedelta(days=1)),
        make_item("new-medium", Difficulty.MEDIUM),
    ]

    ordered = prioritize(items)

    assert ids(ordered) == ["new-medium", "new-easy", "dated-early", "dated-late"]


def test_prioritize_hard_before_easy_for_new_items():
    items = [make_item("easy", Difficulty.EASY), make_item("hard", Difficulty.HARD)]
    assert ids(prioritize(items)) == ["hard", "easy"]


def test_prioritize_difficulty_breaks_exact_timestamp_ties():
    due = NOW - timedelta(hours=2)
    items = [
        make_item("easy", Difficulty.EASY, due),
        make_item("medium", Difficulty.MEDIUM, due),
        make_item("hard", Difficulty.HARD, due),
    ]
    assert ids(prioritize(items)) == ["hard", "medium", "easy"]


def test_prioritize_earlier_due_date_beats_difficulty():
    items = [
        make_item("later-hard", Difficulty.HARD, NOW - timedelta(days=1)),
        make_item("earlier-easy", Difficulty.EASY, NOW - timedelta(days=2)),
    ]
    assert ids(prioritize(items)) == ["earlier-easy", "later-hard"]


def test_prioritize_is_stable_and_returns_new_list():
    items = [
        make_item("first", Difficulty.HARD),
        make_item("second", Difficulty.HARD),
        make_item("third", Difficulty.HARD),
    ]
    ordered = prioritize(items)
    assert ids(ordered) == ["first", "second", "third"]
    assert ordered is not items


def test_apply_review_scenario_hard_then_easy():
    item = make_item("w1", Difficulty.MEDIUM)

    first = apply_review(item, Difficulty.HARD, NOW)

    assert first.difficulty is Difficulty.HARD
    assert first.review_count == 1
    assert first.last_reviewed_at == NOW
    assert first.next_review_at == NOW + timedelta(days=1)

    later = NOW + timedelta(days=1, hours=3)
    second = apply_review(first, Difficulty.EASY, later)

    assert second.review_count == 2
    assert second.difficulty is Difficulty.EASY
    assert second.last_reviewed_at == later
    assert second.next_review_at == later + timedelta(days=7)


@pytest.mark.parametrize("difficulty", list(Difficulty))
@pytest.mark.parametrize("review_count", [0, 3, 7, 20])
def test_apply_review_increments_count_without_mutating(difficulty, review_count):
    item = VocabularyItem(
        id="w",
        difficulty=Difficulty.MEDIUM,
        review_count=review_count,
        term="neko",
        translation="cat",
        list_id="animals",
    )

    updated = apply_review(item, difficulty, NOW)

    assert updated.review_count == review_count + 1
    assert updated.next_review_at == NOW + timedelta(
        days=DEFAULT_INTERVALS.interval_days(difficulty, review_count + 1)
    )
    assert (updated.term, updated.translation, updated.list_id) == ("neko", "cat", "animals")
    assert item.review_count == review_count
    assert item.difficulty is Difficulty.MEDIUM
    assert item.next_review_at is None


def test_apply_review_accepts_string_grade():
    updated = apply_review(make_item("w"), " Easy ", NOW)
    assert updated.difficulty is Difficulty.EASY


@pytest.mark.parametrize("grade", ["impossible", "", None, 3, "again"])
def test_apply_review_rejects_unknown_difficulty(grade):
    item = make_item("w", Difficulty.MEDIUM)
    before = item.to_storage_dict()

    with pytest.raises(InvalidDifficulty):
        apply_review(item, grade, NOW)

    assert item.to_storage_dict() == before


def test_hard_items_filters_in_input_order():
    items = [
        make_item("a", Difficulty.HARD),
        make_item("b", Difficulty.EASY),
        make_item("c", Difficulty.HARD),
    ]
    assert ids(hard_items(items)) == ["a", "c"]


def test_scheduler_uses_its_table():
    table = IntervalTable(
        easy=(2,) * 8,
        medium=(4,) * 8,
        hard=(1,) * 8,
        version="flat",
    )
    scheduler = Scheduler(table)
    item = make_item("w")

    updated = scheduler.apply_review(item, Difficulty.MEDIUM, NOW)

    assert scheduler.interval_days(Difficulty.MEDIUM, 5) == 4
    assert updated.next_review_at == NOW + timedelta(days=4)
    assert scheduler.compute_next_review_at(Difficulty.EASY, 0, NOW) == NOW + timedelta(days=2)


def test_scheduler_defaults_and_delegation():
    scheduler = Scheduler()
    items = [
        make_item("later", Difficulty.HARD, NOW + timedelta(days=1)),
        make_item("new", Difficulty.EASY),
    ]
    assert scheduler.table is DEFAULT_INTERVALS
    assert ids(scheduler.prioritize(scheduler.select_due(items, NOW))) == ["new"]
    assert scheduler.due_count(items, NOW) == 1
    assert ids(scheduler.hard_items(items)) == ["later"]
