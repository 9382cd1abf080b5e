"""Domain-specific exceptions for the expense dashboard core."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class PersistenceError(IOError):
    """Raised when the persistence layer cannot read or write an entry."""
