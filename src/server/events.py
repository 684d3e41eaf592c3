"""Websocket wire format: event encoding, command decoding and sticky replay."""

from __future__ import annotations

import json
import threading
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from contracts.ui_protocol import STICKY_EVENT_ORDER


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def make_event(
    event_type: str,
    *,
    now_fn: Optional[Callable[[], datetime]] = None,
    **payload: Any,
) -> str:
    """Encode one outgoing event as `{"type", "timestamp", **payload}` JSON."""
    timestamp = now_fn() if now_fn is not None else datetime.now(timezone.utc)
    body = {"type": event_type, "timestamp": timestamp.isoformat()}
    body.update(payload)
    return json.dumps(body, ensure_ascii=False, default=_json_default)


def parse_command(message: str | bytes) -> Optional[dict[str, Any]]:
    """Decode a client command message; returns None for anything malformed."""
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        payload = json.loads(message)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    command = payload.get("command")
    if not isinstance(command, str) or not command.strip():
        return None
    return payload


class StickyEventStore:
    """Latest encoded message per sticky event type.

    New clients receive the snapshot right after `hello`, so a UI that connects
    mid-session immediately shows the current timer, task list and state.
    """

    def __init__(self, replay_order: Sequence[str] = STICKY_EVENT_ORDER):
        self._replay_order = tuple(replay_order)
        self._latest: dict[str, str] = {}
        self._lock = threading.Lock()

    def is_sticky(self, event_type: str) -> bool:
        return event_type in self._replay_order

    def remember(self, event_type: str, message: str) -> bool:
        if not self.is_sticky(event_type):
            return False
        with self._lock:
            self._latest[event_type] = message
        return True

    def forget(self, event_type: str) -> None:
        with self._lock:
            self._latest.pop(event_type, None)

    def snapshot(self) -> list[str]:
        with self._lock:
            latest = dict(self._latest)
        return [latest[name] for name in self._replay_order if name in latest]
