"""Application settings persisted as a JSON file."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

SETTINGS_FILE = Path("res/settings.json")
NOTIFICATION_INTERVALS = (30, 60, 1440)
DEFAULT_SESSION_SIZE = 10

__all__ = [
    "AppSettings",
    "NotificationSettings",
    "load_settings",
    "save_settings",
]


def _require_bool(payload: Mapping[str, Any], key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


def _require_int(payload: Mapping[str, Any], key: str, default: int) -> int:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class NotificationSettings:
    """Reminder preferences. ``interval`` is in minutes."""

    enabled: bool = True
    interval: int = 60
    focus_on_difficult: bool = True

    def __post_init__(self) -> None:
        if self.interval not in NOTIFICATION_INTERVALS:
            raise ValueError(
                f"Notification interval must be one of {NOTIFICATION_INTERVALS}, got {self.interval!r}"
            )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NotificationSettings":
        defaults = cls()
        return cls(
            enabled=_require_bool(payload, "enabled", defaults.enabled),
            interval=_require_int(payload, "interval", defaults.interval),
            focus_on_difficult=_require_bool(
                payload, "focus_on_difficult", defaults.focus_on_difficult
            ),
        )


@dataclass(frozen=True)
class AppSettings:
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    session_size: int = DEFAULT_SESSION_SIZE
    interval_version: Optional[str] = None

    def __post_init__(self) -> None:
        if self.session_size < 0:
            raise ValueError(f"session_size must be non-negative, got {self.session_size}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AppSettings":
        """Merge a (possibly partial) JSON payload over the defaults."""

        notifications = payload.get("notifications") or {}
        if not isinstance(notifications, Mapping):
            raise ValueError("'notifications' must be an object")
        interval_version = payload.get("interval_version")
        return cls(
            notifications=NotificationSettings.from_dict(notifications),
            session_size=_require_int(payload, "session_size", DEFAULT_SESSION_SIZE),
            interval_version=str(interval_version) if interval_version else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_settings(path: Path = SETTINGS_FILE) -> AppSettings:
    """Read settings from *path*, returning the defaults when it is missing."""

    if not path.exists():
        return AppSettings()
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, Mapping):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    return AppSettings.from_dict(payload)


def save_settings(settings: AppSettings, path: Path = SETTINGS_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(settings.to_dict(), handle, indent=4, ensure_ascii=False)
