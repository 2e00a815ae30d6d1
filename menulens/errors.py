class MenuLensError(Exception):
    """Base error for the menulens pipeline."""


class InvalidInputError(MenuLensError, ValueError):
    """Raised when an entry point receives input it cannot work with."""


class ExternalServiceError(MenuLensError):
    """Raised by API clients when an upstream call fails or returns garbage."""
