# core/exceptions.py

class DomainError(Exception):
    """Base class for domain-level errors."""
    def __init__(self, message: str,*, code: str | None = None):
        super().__init__(message)
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when report inputs are invalid (e.g., an inverted date window)."""


class NotFoundError(DomainError):
    """Raised when a project referenced by a report does not exist."""


class RateUnavailableError(DomainError):
    """Raised by a conversion rate service when a rate cannot be produced."""
