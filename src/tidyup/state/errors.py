"""State management errors."""


class StateError(Exception):
    """Base exception for journal and confidence model operations."""


class JournalError(StateError):
    """Raised when the journal cannot be read or appended to."""
