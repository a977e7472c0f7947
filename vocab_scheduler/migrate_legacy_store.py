"""Convert a storage export of the mobile app into the JSONL word store.

The export is a JSON object keyed by the app's storage keys. Values may be
the decoded arrays or the raw JSON strings the key-value store held. Words
use camelCase keys and epoch-millisecond timestamps.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

from vocab_scheduler import word_store
from vocab_scheduler.logging_config import configure_logging
from vocab_scheduler.vocabulary_item import VocabularyItem

LISTS_KEY = "vocabulary_lists"
WORDS_KEY = "vocabulary_words"

WORD_FIELD_MAP = {
    "id": "id",
    "listId": "list_id",
    "japanese": "term",
    "english": "translation",
    "notes": "notes",
    "difficulty": "difficulty",
    "reviewCount": "review_count",
    "lastStudied": "last_reviewed_at",
    "nextReview": "next_review_at",
}

LIST_FIELD_MAP = {
    "id": "id",
    "name": "name",
    "description": "description",
    "createdAt": "created_at",
    "totalWords": "total_words",
}


def _decode_entries(payload: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    raw = payload.get(key)
    if raw in (None, ""):
        return []
    if isinstance(raw, str):
        raw = json.loads(raw)
    if not isinstance(raw, list):
        raise ValueError(f"'{key}' must hold a JSON array")
    return raw


def _rename(entry: Mapping[str, Any], field_map: Mapping[str, str]) -> Dict[str, Any]:
    return {field_map[key]: value for key, value in entry.items() if key in field_map}


def convert_export(
    payload: Mapping[str, Any],
) -> Tuple[List[word_store.VocabularyList], List[VocabularyItem]]:
    """Validate and convert an export into lists and items."""

    lists = [
        word_store.VocabularyList.from_storage(_rename(entry, LIST_FIELD_MAP))
        for entry in _decode_entries(payload, LISTS_KEY)
    ]
    items = [
        VocabularyItem.from_storage(_rename(entry, WORD_FIELD_MAP))
        for entry in _decode_entries(payload, WORDS_KEY)
    ]
    return lists, items


def migrate_file(
    source: Path,
    *,
    words_path: Path = word_store.WORDS_FILE,
    lists_path: Path = word_store.LISTS_FILE,
    dry_run: bool = False,
) -> Tuple[int, int]:
    with source.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, Mapping):
        raise ValueError(f"{source} must contain a JSON object")

    lists, items = convert_export(payload)
    if not dry_run:
        word_store.save_lists(lists, path=lists_path)
        word_store.save_items(items, path=words_path)
    return len(lists), len(items)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import a mobile app storage export into the word store."
    )
    parser.add_argument("source", type=Path, help="JSON export to convert.")
    parser.add_argument(
        "--words",
        type=Path,
        default=word_store.WORDS_FILE,
        help=f"Destination word store (defaults to {word_store.WORDS_FILE}).",
    )
    parser.add_argument(
        "--lists",
        type=Path,
        default=word_store.LISTS_FILE,
        help=f"Destination list file (defaults to {word_store.LISTS_FILE}).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the export without writing anything.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(json=False)
    list_count, item_count = migrate_file(
        args.source,
        words_path=args.words,
        lists_path=args.lists,
        dry_run=args.dry_run,
    )
    action = "Would import" if args.dry_run else "Imported"
    print(f"{action} {list_count} list(s) and {item_count} word(s) from {args.source}")


if __name__ == "__main__":
    main()
