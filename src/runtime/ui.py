from __future__ import annotations

from typing import Any, Optional, Protocol

from contracts.ui_protocol import EVENT_COMMAND_RESULT, EVENT_POMODORO
from pomodoro import TimerSnapshot


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        ...


class RuntimeUIPublisher:
    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    @property
    def enabled(self) -> bool:
        return self._ui_server is not None

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        if self._ui_server:
            self._ui_server.publish_state(state, message=message, **payload)

    def publish_timer_update(
        self,
        snapshot: TimerSnapshot,
        *,
        event: str,
        accepted: Optional[bool] = None,
        reason: str = "",
        message: Optional[str] = None,
        **details: Any,
    ) -> None:
        payload: dict[str, Any] = {"event": event, **snapshot.to_payload()}
        if accepted is not None:
            payload["accepted"] = accepted
        if reason:
            payload["reason"] = reason
        if message:
            payload["message"] = message
        payload.update(details)
        self.publish(EVENT_POMODORO, **payload)

    def publish_command_result(
        self,
        command: str,
        *,
        accepted: bool,
        reason: str,
        message: Optional[str] = None,
        **details: Any,
    ) -> None:
        payload: dict[str, Any] = {
            "command": command,
            "accepted": accepted,
            "reason": reason,
        }
        if message:
            payload["message"] = message
        payload.update(details)
        self.publish(EVENT_COMMAND_RESULT, **payload)
