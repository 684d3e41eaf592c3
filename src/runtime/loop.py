"""Runtime orchestration loop draining UI commands and driving timer ticks."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Any, Callable, Optional

from contracts.ui_protocol import EVENT_ERROR, STATE_ERROR
from pomodoro import PomodoroTimer, TickScheduler, TickSubscription
from pomodoro.constants import COMMAND_SYNC, DEFAULT_SWEEP_INTERVAL_SECONDS, REASON_SYNC
from server import UIServer
from stats import StatsService
from tasks import CompletedTaskSweeper, TaskRegistry

from .commands import RuntimeCommandDispatcher
from .ticks import TickDependencies, TickProcessor
from .ui import RuntimeUIPublisher

# Upper bound on how long the loop blocks waiting for a command.
MAX_POLL_SECONDS = 0.2


@dataclass(frozen=True)
class RuntimeHooks:
    """Injectable lifecycle hooks used by runtime startup and shutdown flow."""
    setup_signal_handlers: Callable[[Callable[[], None]], None]


@dataclass(frozen=True)
class RuntimeBootstrap:
    """Dependency bundle required to construct the runtime engine."""
    logger: logging.Logger
    timer: PomodoroTimer
    scheduler: TickScheduler
    ui: RuntimeUIPublisher
    task_registry: Optional[TaskRegistry] = None
    stats_service: Optional[StatsService] = None
    sweeper: Optional[CompletedTaskSweeper] = None
    ui_server: Optional[UIServer] = None
    hooks: Optional[RuntimeHooks] = None
    sweep_interval_seconds: float = float(DEFAULT_SWEEP_INTERVAL_SECONDS)
    retention_hours: float = 24.0


class RuntimeEngine:
    """Single-threaded host loop: commands from the queue, then due ticks."""
    def __init__(self, bootstrap: RuntimeBootstrap):
        self._bootstrap = bootstrap
        self._logger = bootstrap.logger
        self._ui = bootstrap.ui
        self._timer = bootstrap.timer
        self._scheduler = bootstrap.scheduler
        self._commands: Queue[dict[str, Any]] = Queue()
        self._stop_requested = threading.Event()
        self._sweep_subscription: Optional[TickSubscription] = None

        self._tick_processor = TickProcessor(
            TickDependencies(logger=self._logger, ui=self._ui)
        )
        self._dispatcher = RuntimeCommandDispatcher(
            logger=self._logger,
            timer=self._timer,
            ui=self._ui,
            task_registry=bootstrap.task_registry,
            stats_service=bootstrap.stats_service,
            publish_sync=self.publish_sync,
            retention_hours=bootstrap.retention_hours,
        )
        self._unsubscribe_timer = self._timer.subscribe(
            self._tick_processor.handle_timer_event
        )

    @property
    def dispatcher(self) -> RuntimeCommandDispatcher:
        return self._dispatcher

    def submit(self, payload: dict[str, Any]) -> None:
        """Thread-safe entry point for commands coming from the UI server."""
        self._commands.put(payload)

    def stop(self) -> None:
        self._stop_requested.set()

    def run(self) -> int:
        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            ui_server.set_command_handler(self.submit)

        hooks = self._bootstrap.hooks
        if hooks is not None:
            hooks.setup_signal_handlers(self.stop)

        try:
            self._start_sweeper()
            self.publish_sync()
            self._logger.info("Ready! Focus timer is waiting for commands.")

            while not self._stop_requested.is_set():
                self.run_once(timeout=self._poll_timeout())
            self._logger.info("Shutdown requested.")
            return 0

        except KeyboardInterrupt:
            self._logger.info("Shutdown requested by keyboard interrupt.")
            return 0
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            self._ui.publish(
                EVENT_ERROR,
                state=STATE_ERROR,
                message=f"Runtime failed: {error}",
            )
            return 1
        finally:
            self._shutdown()

    def run_once(self, timeout: float = 0.0) -> int:
        """Handle queued commands, then fire due ticks; returns commands handled."""
        handled = 0
        payload = self._poll_command(timeout)
        while payload is not None:
            self._dispatcher.handle_command(payload)
            handled += 1
            payload = self._poll_command(0.0)
        self._scheduler.run_pending()
        return handled

    def publish_sync(self) -> None:
        snapshot = self._timer.snapshot()
        self._ui.publish_timer_update(
            snapshot,
            event=COMMAND_SYNC,
            accepted=True,
            reason=REASON_SYNC,
        )
        self._tick_processor.publish_state(snapshot)
        self._dispatcher.publish_tasks()

    def _poll_timeout(self) -> float:
        next_due = self._scheduler.seconds_until_next()
        if next_due is None:
            return MAX_POLL_SECONDS
        return min(next_due, MAX_POLL_SECONDS)

    def _poll_command(self, timeout: float) -> Optional[dict[str, Any]]:
        try:
            if timeout <= 0:
                return self._commands.get_nowait()
            return self._commands.get(timeout=timeout)
        except Empty:
            return None

    def _start_sweeper(self) -> None:
        sweeper = self._bootstrap.sweeper
        if sweeper is None:
            return
        sweeper.run()
        self._sweep_subscription = self._scheduler.subscribe(
            self._bootstrap.sweep_interval_seconds,
            self._on_sweep_tick,
        )

    def _on_sweep_tick(self, now) -> None:
        del now
        sweeper = self._bootstrap.sweeper
        if sweeper is not None and sweeper.run():
            self._dispatcher.publish_tasks()

    def _shutdown(self) -> None:
        if self._sweep_subscription is not None:
            self._sweep_subscription.cancel()
            self._sweep_subscription = None
        self._unsubscribe_timer()

        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            self._logger.info("Stopping UI server...")
            try:
                ui_server.stop(timeout_seconds=5.0)
            except Exception as error:
                self._logger.error("Error stopping UI server: %s", error, exc_info=True)
