"""Difficulty-indexed interval table used to space out reviews."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import structlog

from vocab_scheduler.errors import MalformedItem
from vocab_scheduler.vocabulary_item import Difficulty

logger = structlog.get_logger(__name__)

INTERVALS_DIR = Path("res/intervals")
MIN_STAGES = 8

__all__ = [
    "DEFAULT_INTERVALS",
    "IntervalTable",
    "interval_days",
    "load_interval_table",
]


def _coerce_row(name: str, values: Sequence[Any]) -> Tuple[int, ...]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise ValueError(f"Interval row '{name}' must be a sequence of day counts")
    row = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"Interval row '{name}' contains a non-positive entry: {value!r}")
        row.append(value)
    if len(row) < MIN_STAGES:
        raise ValueError(
            f"Interval row '{name}' defines {len(row)} stages, at least {MIN_STAGES} required"
        )
    return tuple(row)


@dataclass(frozen=True)
class IntervalTable:
    """Gap in days before the next review, per difficulty and review stage."""

    easy: Tuple[int, ...]
    medium: Tuple[int, ...]
    hard: Tuple[int, ...]
    version: str = "default"

    def __post_init__(self) -> None:
        for name in ("easy", "medium", "hard"):
            object.__setattr__(self, name, _coerce_row(name, getattr(self, name)))

    def row(self, difficulty: Difficulty) -> Tuple[int, ...]:
        return getattr(self, Difficulty.parse(difficulty).value)

    def table_length(self, difficulty: Difficulty) -> int:
        return len(self.row(difficulty))

    def interval_days(self, difficulty: Difficulty, review_count: int) -> int:
        """Look up the interval, saturating at the last (longest) stage."""

        if review_count < 0:
            raise MalformedItem(f"review_count must be non-negative, got {review_count}")
        row = self.row(difficulty)
        return row[min(review_count, len(row) - 1)]


DEFAULT_INTERVALS = IntervalTable(
    easy=(1, 3, 7, 14, 30, 60, 120, 240),
    medium=(1, 2, 5, 10, 21, 45, 90, 180),
    hard=(1, 1, 3, 7, 14, 30, 60, 120),
)


def interval_days(
    difficulty: Difficulty,
    review_count: int,
    table: IntervalTable = DEFAULT_INTERVALS,
) -> int:
    return table.interval_days(difficulty, review_count)


_TABLE_CACHE: Dict[Tuple[Path, str], IntervalTable] = {}


def _load_table_file(path: Path) -> IntervalTable:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    try:
        return IntervalTable(
            easy=payload["easy"],
            medium=payload["medium"],
            hard=payload["hard"],
            version=str(payload.get("version") or path.stem),
        )
    except KeyError as exc:
        raise ValueError(f"Interval file {path} is missing row {exc.args[0]!r}") from exc


def _iter_table_files(directory: Path) -> Iterable[Path]:
    if not directory.exists():
        return []
    return sorted(directory.glob("*.json"))


def load_interval_table(
    version: Optional[str] = None,
    *,
    directory: Path = INTERVALS_DIR,
) -> IntervalTable:
    """Load the interval table for *version* from *directory*.

    Without a version the first table on disk is used, falling back to
    :data:`DEFAULT_INTERVALS` when the directory holds none. A malformed
    first file raises ``ValueError``. When looking up a version, malformed
    files are skipped with a warning so a valid match later in the
    directory is still found.
    """

    if version == DEFAULT_INTERVALS.version:
        return DEFAULT_INTERVALS
    root = directory.resolve()
    if version is not None and (root, version) in _TABLE_CACHE:
        return _TABLE_CACHE[(root, version)]

    if version is not None:
        for path in _iter_table_files(directory):
            try:
                table = _load_table_file(path)
            except ValueError as exc:
                logger.warning("intervals.skipped_file", path=str(path), error=str(exc))
                continue
            _TABLE_CACHE[(root, table.version)] = table
            if table.version == version:
                return table
        raise FileNotFoundError(f"No interval table found for version '{version}' in {directory}")

    for path in _iter_table_files(directory):
        table = _load_table_file(path)
        _TABLE_CACHE[(root, table.version)] = table
        return table
    return DEFAULT_INTERVALS
