class PomodoroError(Exception):
    """Base exception for focus timer components."""


class PersistenceError(PomodoroError):
    """Raised when a settings or record store read/write fails."""


class InvalidConfigurationError(PomodoroError):
    """Raised when timer settings are outside their valid range."""


class RecordAlreadyFinalizedError(PomodoroError):
    """Raised when a session record is completed or interrupted twice."""
