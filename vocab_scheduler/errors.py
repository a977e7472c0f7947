"""Exceptions raised by the vocabulary scheduler."""

from __future__ import annotations

from typing import Any

__all__ = ["SchedulerError", "InvalidDifficulty", "MalformedItem"]


class SchedulerError(Exception):
    """Base class for scheduler errors."""


class InvalidDifficulty(SchedulerError, ValueError):
    """A review outcome outside of ``easy``/``medium``/``hard``."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Unsupported difficulty: {value!r}")


class MalformedItem(SchedulerError, ValueError):
    """A vocabulary record that fails validation at the storage boundary."""
