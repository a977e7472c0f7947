import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from vocab_scheduler import word_store
from vocab_scheduler.errors import MalformedItem
from vocab_scheduler.vocabulary_item import Difficulty, VocabularyItem

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_load_items_missing_file_is_empty(tmp_path):
    assert word_store.load_items(tmp_path / "words.jsonl") == []


def test_save_and_load_items(tmp_path):
    path = tmp_path / "state" / "words.jsonl"
    items = [
        VocabularyItem(id="a", term="neko", translation="cat", list_id="l1"),
        VocabularyItem(
            id="b",
            difficulty=Difficulty.HARD,
            review_count=2,
            last_reviewed_at=NOW,
            next_review_at=NOW + timedelta(days=3),
            list_id="l2",
        ),
    ]

    word_store.save_items(items, path=path)

    assert word_store.load_items(path) == items
    assert [item.id for item in word_store.items_for_list("l2", path=path)] == ["b"]


def test_save_items_rejects_duplicate_ids(tmp_path):
    path = tmp_path / "words.jsonl"
    with pytest.raises(MalformedItem):
        word_store.save_items([VocabularyItem(id="a"), VocabularyItem(id="a")], path=path)
    assert not path.exists()


def test_load_items_rejects_duplicates_and_bad_records(tmp_path):
    path = tmp_path / "words.jsonl"
    path.write_text('{"id": "a"}\n{"id": "a"}\n', encoding="utf-8")
    with pytest.raises(MalformedItem):
        word_store.load_items(path)

    path.write_text('{"id": "a", "review_count": -1}\n', encoding="utf-8")
    with pytest.raises(MalformedItem):
        word_store.load_items(path)

    path.write_text("{not json\n", encoding="utf-8")
    with pytest.raises(MalformedItem):
        word_store.load_items(path)


def test_save_item_upserts_by_id(tmp_path):
    path = tmp_path / "words.jsonl"
    word_store.save_items([VocabularyItem(id="a"), VocabularyItem(id="b")], path=path)

    updated = VocabularyItem(id="a", difficulty=Difficulty.EASY, review_count=1)
    word_store.save_item(updated, path=path)
    word_store.save_item(VocabularyItem(id="c"), path=path)

    stored = word_store.load_items(path)
    assert [item.id for item in stored] == ["a", "b", "c"]
    assert stored[0] == updated


def test_delete_item(tmp_path):
    path = tmp_path / "words.jsonl"
    word_store.save_items([VocabularyItem(id="a"), VocabularyItem(id="b")], path=path)

    assert word_store.delete_item("a", path=path) is True
    assert word_store.delete_item("missing", path=path) is False
    assert [item.id for item in word_store.load_items(path)] == ["b"]


def test_lists_round_trip(tmp_path):
    path = tmp_path / "lists.json"
    lists = [
        word_store.VocabularyList(id="l1", name="Animals", created_at=NOW, total_words=3),
        word_store.VocabularyList(id="l2", name="Food", description="JLPT N5"),
    ]

    word_store.save_lists(lists, path=path)

    assert word_store.load_lists(path) == lists
    assert word_store.load_lists(tmp_path / "missing.json") == []


def test_load_lists_requires_array(tmp_path):
    path = tmp_path / "lists.json"
    path.write_text(json.dumps({"id": "l1"}), encoding="utf-8")
    with pytest.raises(MalformedItem):
        word_store.load_lists(path)


@pytest.mark.parametrize("total_words", ["abc", [3], True, -1, 2.5, {"n": 1}])
def test_load_lists_rejects_bad_total_words(tmp_path, total_words):
    path = tmp_path / "lists.json"
    path.write_text(json.dumps([{"id": "l1", "total_words": total_words}]), encoding="utf-8")
    with pytest.raises(MalformedItem):
        word_store.load_lists(path)


@pytest.mark.parametrize("total_words, expected", [(None, 0), ("4", 4), (4.0, 4)])
def test_list_total_words_coercion(total_words, expected):
    entry = word_store.VocabularyList.from_storage({"id": "l1", "total_words": total_words})
    assert entry.total_words == expected


def test_append_review_log(tmp_path):
    path = tmp_path / "log" / "review_log.jsonl"
    record = word_store.append_review_log(
        {
            "item_id": "a",
            "difficulty": Difficulty.HARD,
            "review_count": 1,
            "interval_days": 1,
            "reviewed_at": NOW,
            "next_review_at": NOW + timedelta(days=1),
        },
        path=path,
    )

    assert record["difficulty"] == "hard"
    assert record["reviewed_at"] == "2024-01-01T00:00:00Z"
    assert "logged_at" in record
    assert word_store.read_review_log(path) == [record]


def test_append_review_log_requires_fields(tmp_path):
    with pytest.raises(ValueError, match="next_review_at"):
        word_store.append_review_log(
            {
                "item_id": "a",
                "difficulty": "hard",
                "review_count": 1,
                "interval_days": 1,
                "reviewed_at": NOW,
            },
            path=tmp_path / "log.jsonl",
        )
    with pytest.raises(TypeError):
        word_store.append_review_log(["item_id"], path=tmp_path / "log.jsonl")  # type: ignore[arg-type]


def test_import_vocabulary_from_csv(tmp_path):
    source = tmp_path / "animals.csv"
    source.write_text(
        "Term,Translation,Notes\nneko,cat,\ninu,dog,loyal\n,,\nsakana,fish,\n",
        encoding="utf-8",
    )

    items = word_store.import_vocabulary(source, list_id="animals")

    assert [(item.term, item.translation, item.notes) for item in items] == [
        ("neko", "cat", None),
        ("inu", "dog", "loyal"),
    ]
    assert all(item.list_id == "animals" for item in items)
    assert all(item.review_count == 0 and item.next_review_at is None for item in items)
    assert all(item.difficulty is Difficulty.MEDIUM for item in items)
    assert len({item.id for item in items}) == 2


def test_import_vocabulary_from_excel(tmp_path):
    pytest.importorskip("openpyxl")
    source = tmp_path / "food.xlsx"
    pd.DataFrame({"Term": ["gohan", "mizu"], "Translation": ["rice", "water"]}).to_excel(
        source, index=False
    )

    items = word_store.import_vocabulary(source, difficulty=Difficulty.HARD)

    assert [item.term for item in items] == ["gohan", "mizu"]
    assert all(item.difficulty is Difficulty.HARD for item in items)


def test_import_vocabulary_rejects_bad_input(tmp_path):
    with pytest.raises(ValueError):
        word_store.import_vocabulary(tmp_path / "words.txt")

    source = tmp_path / "bad.csv"
    source.write_text("Word,Meaning\nneko,cat\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Term"):
        word_store.import_vocabulary(source)


def test_clear_all_data(tmp_path):
    words = tmp_path / "state" / "words.jsonl"
    lists = tmp_path / "state" / "lists.json"
    word_store.save_items([VocabularyItem(id="a")], path=words)
    word_store.save_lists([], path=lists)

    removed = word_store.clear_all_data(tmp_path)

    assert sorted(removed) == sorted([words, lists])
    assert not words.exists() and not lists.exists()
