"""Custom exceptions for the safe file organizer."""


class OrganizerError(Exception):
    """Base exception for file organizer errors."""
    pass


class PathValidationError(OrganizerError, ValueError):
    """Raised when a path fails the safety check."""
    pass


class InvalidRootError(OrganizerError):
    """Raised when a safe path is not an existing directory."""
    pass


class FileOperationError(OrganizerError):
    """Raised when moving a single file fails."""
    pass


class LogWriteError(OrganizerError):
    """Raised when a move record cannot be appended to the log."""
    pass


class ConfigurationError(OrganizerError):
    """Raised when there's an error in configuration."""
    pass
