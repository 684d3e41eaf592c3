import logging
import signal
from typing import Callable, Optional

from app_config import AppConfigurationError, load_app_config, log_level_value, resolve_config_path
from pomodoro import PersistenceError, PomodoroTimer, TickScheduler
from runtime import (
    LoggingNotificationSink,
    RuntimeBootstrap,
    RuntimeEngine,
    RuntimeHooks,
    RuntimeUIPublisher,
    UINotificationSink,
    UISoundSink,
)
from server import ServerConfigurationError, UIServer, UIServerConfig
from stats import StatsService
from storage import RecordStore, SettingsStore, open_database
from tasks import CompletedTaskSweeper, TaskRegistry


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("runtime")


def setup_signal_handlers(stop: Callable[[], None]) -> None:
    """Set up graceful shutdown on SIGTERM and SIGINT."""

    def signal_handler(signum: int, frame) -> None:
        del frame
        signal_name = signal.Signals(signum).name
        logging.getLogger("runtime").info("%s received, stopping...", signal_name)
        stop()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


def main() -> int:
    """Run the focus timer host loop."""
    logger = setup_logging(level=logging.INFO)

    try:
        config_path = resolve_config_path()
        app_config = load_app_config()
    except AppConfigurationError as error:
        logger.error("App configuration error: %s", error)
        return 1

    logging.getLogger().setLevel(log_level_value(app_config.logging))
    if app_config.source_file:
        logger.info("Loaded runtime config: %s", config_path)
    else:
        logger.info("No config file at %s, using defaults", config_path)

    # Storage
    try:
        db = open_database(
            app_config.storage.database_path,
            logger=logging.getLogger("storage"),
        )
        settings_store = SettingsStore(db, logger=logging.getLogger("storage.settings"))
        settings_store.seed_timer_settings(app_config.timer.to_timer_settings())
        record_store = RecordStore(db, logger=logging.getLogger("storage.records"))
    except PersistenceError as error:
        logger.error("Storage initialization error: %s", error)
        return 1

    # Optional UI server for websocket updates and commands
    ui_server: Optional[UIServer] = None
    ui_server_config: Optional[UIServerConfig] = None
    try:
        ui_server_config = UIServerConfig.from_settings(app_config.ui_server)
    except ServerConfigurationError as error:
        logger.error("UI server configuration error: %s", error)
        logger.warning("Continuing without UI server.")

    if ui_server_config and ui_server_config.enabled:
        try:
            ui_server = UIServer(
                config=ui_server_config,
                logger=logging.getLogger("ui_server"),
            )
            logger.info("Starting UI server...")
            ui_server.start(timeout_seconds=5.0)
        except Exception as error:
            logger.error("UI server initialization error: %s", error)
            logger.warning("Continuing without UI server.")
            ui_server = None

    ui = RuntimeUIPublisher(ui_server)
    notifier = (
        UINotificationSink(
            ui,
            forget_sticky=ui_server.forget,
            logger=logging.getLogger("runtime.notifications"),
        )
        if ui_server is not None
        else LoggingNotificationSink(logger=logging.getLogger("runtime.notifications"))
    )

    scheduler = TickScheduler(logger=logging.getLogger("pomodoro.clock"))
    task_registry = TaskRegistry(
        db,
        record_store,
        now_fn=scheduler.now,
        logger=logging.getLogger("tasks"),
    )
    timer = PomodoroTimer(
        settings_store=settings_store,
        record_store=record_store,
        clock=scheduler,
        task_registry=task_registry,
        sound=UISoundSink(ui),
        notifier=notifier,
        tick_interval_seconds=app_config.timer.tick_interval_seconds,
        logger=logging.getLogger("pomodoro"),
    )
    sweeper = CompletedTaskSweeper(
        record_store,
        retention_hours=app_config.maintenance.task_retention_hours,
        now_fn=scheduler.now,
        on_deleted=timer.forget_task,
        logger=logging.getLogger("tasks.sweep"),
    )
    stats_service = StatsService(
        record_store,
        now_fn=scheduler.now,
        logger=logging.getLogger("stats"),
    )

    engine = RuntimeEngine(
        RuntimeBootstrap(
            logger=logger,
            timer=timer,
            scheduler=scheduler,
            ui=ui,
            task_registry=task_registry,
            stats_service=stats_service,
            sweeper=sweeper,
            ui_server=ui_server,
            hooks=RuntimeHooks(setup_signal_handlers=setup_signal_handlers),
            sweep_interval_seconds=app_config.maintenance.sweep_interval_seconds,
            retention_hours=app_config.maintenance.task_retention_hours,
        )
    )
    try:
        return engine.run()
    finally:
        if isinstance(notifier, UINotificationSink):
            notifier.cancel()
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
