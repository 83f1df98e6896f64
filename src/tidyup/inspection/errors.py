"""Inspection errors."""


class InspectionError(Exception):
    """Raised when a file cannot be read or stat'ed during inspection."""
