"""Runtime engine exports."""

from .commands import RuntimeCommandDispatcher
from .loop import RuntimeBootstrap, RuntimeEngine, RuntimeHooks
from .sinks import LoggingNotificationSink, UINotificationSink, UISoundSink
from .ui import RuntimeUIPublisher

__all__ = [
    "LoggingNotificationSink",
    "RuntimeBootstrap",
    "RuntimeCommandDispatcher",
    "RuntimeEngine",
    "RuntimeHooks",
    "RuntimeUIPublisher",
    "UINotificationSink",
    "UISoundSink",
]
