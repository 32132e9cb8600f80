"""
Exception hierarchy for the injector.

Every failure is fatal to the operation that raised it; nothing here is
retried internally.
"""
import builtins
from typing import Optional


class InjectError(Exception):
    """Base exception for all injector errors."""


class ConfigurationError(InjectError):
    """A required setting is missing or no config file could be found."""


class MissingParameterError(InjectError):
    """The caller omitted one or more required arguments."""

    def __init__(self, parameters: list[str]):
        self.parameters = list(parameters)
        super().__init__(f"Required option not specified: {' '.join(self.parameters)}")


class PermissionError(InjectError, builtins.PermissionError):
    """A target location is not readable or writable."""


class CopyError(InjectError):
    """A file copy failed; the OS-level error is kept in ``cause``."""

    def __init__(self, message: str, cause: Optional[OSError] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause.strerror or cause}"
        super().__init__(message)


class IndexOpenError(InjectError):
    """A compressed package index stream could not be opened."""


class ReadError(InjectError):
    """The module list exists but cannot be read."""


class WriteError(InjectError):
    """The module list cannot be written."""


class RemoteUnavailableError(InjectError):
    """None of the configured remote sites answered."""


class MirrorSyncError(InjectError):
    """The external mirror sync collaborator failed."""
