# src/watchrun/exceptions.py

"""
Exception hierarchy for watchrun.
"""


class WatchrunError(Exception):
    """Base class for all watchrun errors."""

    def __init__(self, message: str, details: Exception | None = None):
        self.details = details
        super().__init__(message)
        if details and hasattr(self, "add_note"):
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class ConfigurationError(WatchrunError):
    """Raised when the configuration file is missing, unreadable, or invalid."""

    def __init__(self, message: str, path: str | None = None, details: Exception | None = None):
        self.path = path
        full_message = message
        if path:
            full_message += f" (File: '{path}')"
        super().__init__(full_message, details=details)


class MonitoringSetupError(WatchrunError):
    """Raised when the filesystem observer cannot be scheduled."""

    pass


class RunCoordinatorError(WatchrunError):
    """Raised when a test run cannot be executed at all."""

    pass


# 🔼⚙️
