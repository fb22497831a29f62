"""Exceptions raised by oomguard."""


class OomGuardError(Exception):
    """Base class for oomguard errors."""


class SourceUnavailable(OomGuardError):
    """System memory statistics could not be read or are incomplete."""


class ProcessVanished(OomGuardError):
    """A process disappeared (or became unreadable) while it was being inspected."""

    def __init__(self, pid: int, detail: str = "") -> None:
        """Initialize ProcessVanished."""
        self.pid = pid
        message = f"Process {pid} has gone away"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
