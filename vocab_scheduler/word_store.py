"""File backed persistence for vocabulary lists, items and review logs."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd
import structlog

from vocab_scheduler.errors import MalformedItem
from vocab_scheduler.settings import SETTINGS_FILE
from vocab_scheduler.vocabulary_item import (
    Difficulty,
    VocabularyItem,
    format_datetime,
    parse_datetime,
)

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Paths and constants
# ---------------------------------------------------------------------------
DATA_ROOT = Path("res")
STATE_ROOT = DATA_ROOT / "state"
WORDS_FILE = STATE_ROOT / "words.jsonl"
LISTS_FILE = STATE_ROOT / "lists.json"
LOG_FILE = DATA_ROOT / "log" / "review_log.jsonl"
IMPORT_COLUMNS = ("Term", "Translation", "Notes")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _read_jsonl(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        return []
    records: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise MalformedItem(f"{path}:{number}: invalid JSON record") from exc
    return records


def _write_jsonl(path: Path, records: Iterable[Mapping[str, Any]]) -> None:
    _ensure_parent(path)
    with path.open("w", encoding="utf-8") as handle:
        for record in records:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


# ---------------------------------------------------------------------------
# Vocabulary lists
# ---------------------------------------------------------------------------

@dataclass
class VocabularyList:
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    total_words: int = 0

    @classmethod
    def from_storage(cls, payload: Mapping[str, Any]) -> "VocabularyList":
        list_id = payload.get("id")
        if list_id in (None, ""):
            raise MalformedItem("Vocabulary list record without id")
        raw_total = payload.get("total_words") or 0
        if isinstance(raw_total, bool):
            raise MalformedItem(f"List {list_id!r} has invalid total_words {raw_total!r}")
        try:
            total_words = int(raw_total)
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedItem(f"List {list_id!r} has invalid total_words {raw_total!r}") from exc
        if total_words < 0 or (isinstance(raw_total, float) and raw_total != total_words):
            raise MalformedItem(f"List {list_id!r} has invalid total_words {raw_total!r}")
        description = payload.get("description")
        return cls(
            id=str(list_id),
            name=str(payload.get("name") or ""),
            description=str(description) if description not in (None, "") else None,
            created_at=parse_datetime(payload.get("created_at")),
            total_words=total_words,
        )

    def to_storage_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "created_at": format_datetime(self.created_at),
            "total_words": self.total_words,
        }
        if self.description is not None:
            data["description"] = self.description
        return data


def load_lists(path: Path = LISTS_FILE) -> List[VocabularyList]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise MalformedItem(f"{path} must contain a JSON array of lists")
    return [VocabularyList.from_storage(entry) for entry in payload]


def save_lists(lists: Iterable[VocabularyList], path: Path = LISTS_FILE) -> None:
    _ensure_parent(path)
    records = [entry.to_storage_dict() for entry in lists]
    with path.open("w", encoding="utf-8") as handle:
        json.dump(records, handle, indent=4, ensure_ascii=False)
    logger.info("word_store.lists_saved", path=str(path), count=len(records))


# ---------------------------------------------------------------------------
# Vocabulary items (JSONL)
# ---------------------------------------------------------------------------

def load_items(path: Path = WORDS_FILE) -> List[VocabularyItem]:
    """Load and validate every stored item.

    Raises :class:`MalformedItem` for invalid records and for ids that occur
    more than once.
    """

    items: List[VocabularyItem] = []
    seen = set()
    for record in _read_jsonl(path):
        item = VocabularyItem.from_storage(record)
        if item.id in seen:
            raise MalformedItem(f"Duplicate item id {item.id!r} in {path}")
        seen.add(item.id)
        items.append(item)
    logger.debug("word_store.loaded", path=str(path), count=len(items))
    return items


def items_for_list(list_id: str, path: Path = WORDS_FILE) -> List[VocabularyItem]:
    return [item for item in load_items(path) if item.list_id == list_id]


def save_items(items: Iterable[VocabularyItem], path: Path = WORDS_FILE) -> None:
    records = [item.to_storage_dict() for item in items]
    ids = [record["id"] for record in records]
    if len(ids) != len(set(ids)):
        raise MalformedItem("Item ids must be unique within a collection")
    _write_jsonl(path, records)
    logger.info("word_store.saved", path=str(path), count=len(records))


def save_item(item: VocabularyItem, path: Path = WORDS_FILE) -> VocabularyItem:
    """Insert or replace *item* by id."""

    records = _read_jsonl(path)
    record = item.to_storage_dict()
    updated = False
    for index, stored in enumerate(records):
        if stored.get("id") == item.id:
            records[index] = record
            updated = True
            break
    if not updated:
        records.append(record)
    _write_jsonl(path, records)
    logger.info("word_store.item_saved", path=str(path), item_id=item.id, inserted=not updated)
    return VocabularyItem.from_storage(record)


def delete_item(item_id: str, path: Path = WORDS_FILE) -> bool:
    records = _read_jsonl(path)
    remaining = [record for record in records if record.get("id") != item_id]
    if len(remaining) == len(records):
        return False
    _write_jsonl(path, remaining)
    logger.info("word_store.item_deleted", path=str(path), item_id=item_id)
    return True


# ---------------------------------------------------------------------------
# Review log
# ---------------------------------------------------------------------------

REQUIRED_LOG_FIELDS = (
    "item_id",
    "difficulty",
    "review_count",
    "interval_days",
    "reviewed_at",
    "next_review_at",
)


def append_review_log(log_entry: Mapping[str, Any], path: Path = LOG_FILE) -> Dict[str, Any]:
    if not isinstance(log_entry, Mapping):
        raise TypeError("log_entry must be a mapping containing review metadata")
    record = dict(log_entry)
    missing = [field for field in REQUIRED_LOG_FIELDS if field not in record]
    if missing:
        raise ValueError(f"log_entry is missing required fields: {', '.join(missing)}")
    for key in ("reviewed_at", "next_review_at"):
        if isinstance(record[key], datetime):
            record[key] = format_datetime(record[key])
    if isinstance(record["difficulty"], Difficulty):
        record["difficulty"] = record["difficulty"].value
    record.setdefault("logged_at", format_datetime(_utc_now()))
    _ensure_parent(path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(record, ensure_ascii=False))
        handle.write("\n")
    return record


def read_review_log(path: Path = LOG_FILE) -> List[Dict[str, Any]]:
    return _read_jsonl(path)


# ---------------------------------------------------------------------------
# Spreadsheet import
# ---------------------------------------------------------------------------

def _cell_text(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def import_vocabulary(
    path: Path,
    list_id: Optional[str] = None,
    *,
    difficulty: Difficulty = Difficulty.MEDIUM,
) -> List[VocabularyItem]:
    """Read a ``.xlsx`` or ``.csv`` word list into fresh, unscheduled items.

    The sheet needs ``Term`` and ``Translation`` columns and may have a
    ``Notes`` column. Reading stops at the first row without a term.
    """

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        frame = pd.read_excel(path)
    elif suffix == ".csv":
        frame = pd.read_csv(path)
    else:
        raise ValueError(f"Unsupported vocabulary file type: {path.suffix}")

    missing = [column for column in IMPORT_COLUMNS[:2] if column not in frame.columns]
    if missing:
        raise ValueError(f"{path} is missing column(s): {', '.join(missing)}")

    items: List[VocabularyItem] = []
    for _, row in frame.iterrows():
        term = _cell_text(row.get("Term"))
        if not term:
            break
        notes = _cell_text(row.get("Notes")) if "Notes" in frame.columns else ""
        items.append(
            VocabularyItem(
                id=uuid.uuid4().hex,
                difficulty=difficulty,
                list_id=list_id,
                term=term,
                translation=_cell_text(row.get("Translation")),
                notes=notes or None,
            )
        )
    logger.info("word_store.imported", path=str(path), list_id=list_id, count=len(items))
    return items


def clear_all_data(root: Path = DATA_ROOT) -> List[Path]:
    """Remove the store files under *root*. Returns the paths deleted."""

    removed: List[Path] = []
    for relative in (
        WORDS_FILE.relative_to(DATA_ROOT),
        LISTS_FILE.relative_to(DATA_ROOT),
        LOG_FILE.relative_to(DATA_ROOT),
        SETTINGS_FILE.relative_to(DATA_ROOT),
    ):
        target = root / relative
        if target.exists():
            target.unlink()
            removed.append(target)
    logger.info("word_store.cleared", root=str(root), removed=len(removed))
    return removed


__all__ = [
    "VocabularyList",
    "append_review_log",
    "clear_all_data",
    "delete_item",
    "import_vocabulary",
    "items_for_list",
    "load_items",
    "load_lists",
    "read_review_log",
    "save_item",
    "save_items",
    "save_lists",
]
